"""Access to a node's standard configuration objects (0x1000 to 0x1FFF) over SDO."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from .errors import CanopenError

_log = logging.getLogger(__name__)

ENTRY_COB_ID_SYNC = 0x1005
ENTRY_COMMUNICATION_CYCLE_PERIOD = 0x1006
ENTRY_SYNCHRONOUS_WINDOW_LENGTH = 0x1007
ENTRY_MANUFACTURER_DEVICE_NAME = 0x1008
ENTRY_MANUFACTURER_HARDWARE_VERSION = 0x1009
ENTRY_MANUFACTURER_SOFTWARE_VERSION = 0x100A
ENTRY_COB_ID_TIME = 0x1012
ENTRY_CONSUMER_HEARTBEAT_TIME = 0x1016
ENTRY_PRODUCER_HEARTBEAT_TIME = 0x1017
ENTRY_IDENTITY_OBJECT = 0x1018
ENTRY_SYNCHRONOUS_COUNTER_OVERFLOW = 0x1019

MAX_STRING_SIZE = 256

_PRODUCER_BIT = 1 << 30
_CONSUMER_BIT = 1 << 31


class SdoAbort(CanopenError):
    """An SDO transfer aborted by the server or the client."""

    NOT_EXIST = 0x06020000
    TYPE_MISMATCH = 0x06070010

    def __init__(self, code: int, message: str | None = None) -> None:
        self.code = code
        super().__init__(message if message is not None else f"SDO abort {code:#010x}")


class SdoClient(Protocol):
    """What the configurator needs from an SDO client."""

    def read_raw(self, node_id: int, index: int, subindex: int) -> bytes:
        """Upload the raw bytes of an object."""

    def write_raw(
        self, node_id: int, index: int, subindex: int, data: bytes, force_segmented: bool
    ) -> None:
        """Download raw bytes to an object."""


@dataclass
class Identity:
    vendor_id: int
    product_code: int = 0
    revision_number: int = 0
    serial_number: int = 0


@dataclass
class ManufacturerInformation:
    device_name: str = ""
    hardware_version: str = ""
    software_version: str = ""


class NodeConfigurator:
    """Reads and updates the reserved configuration objects of a remote node."""

    def __init__(self, node_id: int, client: SdoClient) -> None:
        self.node_id = node_id
        self.client = client

    def _read_uint(self, index: int, subindex: int, size: int) -> int:
        data = self.client.read_raw(self.node_id, index, subindex)
        if len(data) != size:
            raise SdoAbort(
                SdoAbort.TYPE_MISMATCH,
                f"object {index:#06x}:{subindex:#04x} has {len(data)} bytes, expected {size}",
            )
        return int.from_bytes(data, "little")

    def _write_uint(self, index: int, subindex: int, value: int, size: int) -> None:
        try:
            data = value.to_bytes(size, "little")
        except OverflowError:
            raise ValueError(f"{value} does not fit in {size} unsigned bytes") from None
        self.client.write_raw(self.node_id, index, subindex, data, False)

    def _read_optional_uint(self, index: int, subindex: int, size: int) -> int:
        try:
            return self._read_uint(index, subindex, size)
        except (CanopenError, OSError):
            return 0

    def _read_string(self, index: int) -> str:
        data = self.client.read_raw(self.node_id, index, 0)[:MAX_STRING_SIZE]
        return data.decode("utf-8", errors="replace")

    def _read_optional_string(self, index: int) -> str:
        try:
            return self._read_string(index)
        except (CanopenError, OSError):
            return ""

    # General

    def read_identity(self) -> Identity:
        """Read the identity object; only the vendor id is mandatory."""
        vendor_id = self._read_uint(ENTRY_IDENTITY_OBJECT, 1, 4)
        return Identity(
            vendor_id=vendor_id,
            product_code=self._read_optional_uint(ENTRY_IDENTITY_OBJECT, 2, 4),
            revision_number=self._read_optional_uint(ENTRY_IDENTITY_OBJECT, 3, 4),
            serial_number=self._read_optional_uint(ENTRY_IDENTITY_OBJECT, 4, 4),
        )

    def read_manufacturer_device_name(self) -> str:
        return self._read_string(ENTRY_MANUFACTURER_DEVICE_NAME)

    def read_manufacturer_hardware_version(self) -> str:
        return self._read_string(ENTRY_MANUFACTURER_HARDWARE_VERSION)

    def read_manufacturer_software_version(self) -> str:
        return self._read_string(ENTRY_MANUFACTURER_SOFTWARE_VERSION)

    def read_manufacturer_information(self) -> ManufacturerInformation:
        """Read the optional manufacturer strings; missing ones are empty."""
        return ManufacturerInformation(
            device_name=self._read_optional_string(ENTRY_MANUFACTURER_DEVICE_NAME),
            hardware_version=self._read_optional_string(ENTRY_MANUFACTURER_HARDWARE_VERSION),
            software_version=self._read_optional_string(ENTRY_MANUFACTURER_SOFTWARE_VERSION),
        )

    # Heartbeat

    def read_monitored_nodes(self) -> list[tuple[int, int]]:
        """Return (node id, expected period in ms) for every consumer entry."""
        count = self.read_max_monitorable_nodes()
        monitored = []
        for subindex in range(1, count + 1):
            value = self._read_uint(ENTRY_CONSUMER_HEARTBEAT_TIME, subindex, 4)
            monitored.append(((value >> 16) & 0xFF, value & 0xFFFF))
        return monitored

    def read_max_monitorable_nodes(self) -> int:
        return self._read_uint(ENTRY_CONSUMER_HEARTBEAT_TIME, 0, 1)

    def write_monitored_node(self, index: int, node_id: int, period_ms: int) -> None:
        """Set consumer entry index (1-based) to monitor node_id with period_ms."""
        value = ((node_id & 0xFF) << 16) + (period_ms & 0xFFFF)
        self._write_uint(ENTRY_CONSUMER_HEARTBEAT_TIME, index, value, 4)

    def read_heartbeat_period(self) -> int:
        """Producer heartbeat period in milliseconds."""
        return self._read_uint(ENTRY_PRODUCER_HEARTBEAT_TIME, 0, 2)

    def write_heartbeat_period(self, period_ms: int) -> None:
        self._write_uint(ENTRY_PRODUCER_HEARTBEAT_TIME, 0, period_ms, 2)

    # SYNC

    def read_cob_id_sync(self) -> int:
        return self._read_uint(ENTRY_COB_ID_SYNC, 0, 4)

    def read_counter_overflow(self) -> int:
        return self._read_uint(ENTRY_SYNCHRONOUS_COUNTER_OVERFLOW, 0, 1)

    def read_communication_period(self) -> int:
        return self._read_uint(ENTRY_COMMUNICATION_CYCLE_PERIOD, 0, 4)

    def read_window_length_pdos(self) -> int:
        return self._read_uint(ENTRY_SYNCHRONOUS_WINDOW_LENGTH, 0, 4)

    def producer_enable_sync(self) -> None:
        cob_id = self.read_cob_id_sync() | _PRODUCER_BIT
        self._write_uint(ENTRY_COB_ID_SYNC, 0, cob_id, 4)

    def producer_disable_sync(self) -> None:
        cob_id = self.read_cob_id_sync() & ~_PRODUCER_BIT & 0xFFFFFFFF
        self._write_uint(ENTRY_COB_ID_SYNC, 0, cob_id, 4)

    def write_can_id_sync(self, can_id: int) -> None:
        """Change the SYNC CAN id; SYNC should be disabled first."""
        self._write_uint(ENTRY_COB_ID_SYNC, 0, can_id & 0xFFFF, 4)

    def write_counter_overflow(self, counter: int) -> None:
        """The communication period should be 0 before changing this."""
        self._write_uint(ENTRY_SYNCHRONOUS_COUNTER_OVERFLOW, 0, counter, 1)

    def write_communication_period(self, period_us: int) -> None:
        self._write_uint(ENTRY_COMMUNICATION_CYCLE_PERIOD, 0, period_us, 4)

    def write_window_length_pdos(self, window_period_us: int) -> None:
        self._write_uint(ENTRY_SYNCHRONOUS_WINDOW_LENGTH, 0, window_period_us, 4)

    # TIME

    def read_cob_id_time(self) -> int:
        return self._read_uint(ENTRY_COB_ID_TIME, 0, 4)

    def _update_cob_id_time(self, set_bits: int = 0, clear_bits: int = 0) -> None:
        cob_id = (self.read_cob_id_time() | set_bits) & ~clear_bits & 0xFFFFFFFF
        self._write_uint(ENTRY_COB_ID_TIME, 0, cob_id, 4)

    def producer_enable_time(self) -> None:
        self._update_cob_id_time(set_bits=_PRODUCER_BIT)

    def producer_disable_time(self) -> None:
        self._update_cob_id_time(clear_bits=_PRODUCER_BIT)

    def consumer_enable_time(self) -> None:
        self._update_cob_id_time(set_bits=_CONSUMER_BIT)

    def consumer_disable_time(self) -> None:
        self._update_cob_id_time(clear_bits=_CONSUMER_BIT)