"""CAN frames and the abstract bus interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

CAN_ERROR_TX_WARNING = 0x0001
CAN_ERROR_TX_PASSIVE = 0x0002
CAN_ERROR_TX_BUS_OFF = 0x0004
CAN_ERROR_TX_OVERFLOW = 0x0008
CAN_ERROR_PDO_LATE = 0x0080
CAN_ERROR_RX_WARNING = 0x0100
CAN_ERROR_RX_PASSIVE = 0x0200
CAN_ERROR_RX_OVERFLOW = 0x0800
CAN_ERROR_WARN_PASSIVE = 0x0303
CAN_RTR_FLAG = 0x40000000
CAN_SFF_MASK = 0x000007FF

FRAME_DATA_SIZE = 8


@dataclass
class Frame:
    """A classic CAN frame; data is always padded to eight bytes."""

    id: int
    flags: int = 0
    dlc: int = 0
    data: bytes = bytes(FRAME_DATA_SIZE)

    def __post_init__(self) -> None:
        data = bytes(self.data)
        if len(data) > FRAME_DATA_SIZE:
            raise ValueError(f"frame data holds at most {FRAME_DATA_SIZE} bytes")
        self.data = data.ljust(FRAME_DATA_SIZE, b"\x00")


FrameListener = Callable[[Frame], None]


class Bus(ABC):
    """Interface every CAN bus implementation provides."""

    @abstractmethod
    def connect(self, *args) -> None:
        """Connect to the CAN bus."""

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the CAN bus."""

    @abstractmethod
    def send(self, frame: Frame) -> None:
        """Send a frame on the bus."""

    @abstractmethod
    def subscribe(self, callback: FrameListener) -> None:
        """Register a callback for every received frame."""