"""Dispatch of received frames to per-identifier listeners."""

from __future__ import annotations

import logging
import threading

from .bus import CAN_RTR_FLAG, CAN_SFF_MASK, Bus, Frame, FrameListener
from .errors import InvalidStateError

_log = logging.getLogger(__name__)


class BusManager:
    """Wraps a bus: routes frames by identifier and tracks bus errors."""

    def __init__(self, bus: Bus | None = None) -> None:
        self._lock = threading.Lock()
        self._bus = bus
        self._listeners: dict[int, list[FrameListener]] = {}
        self._can_error = 0

    @property
    def bus(self) -> Bus | None:
        with self._lock:
            return self._bus

    @bus.setter
    def bus(self, bus: Bus | None) -> None:
        with self._lock:
            self._bus = bus

    def handle(self, frame: Frame) -> None:
        """Forward a received frame to the listeners of its identifier."""
        with self._lock:
            listeners = list(self._listeners.get(frame.id, ()))
        for listener in listeners:
            listener(frame)

    def send(self, frame: Frame) -> None:
        """Send a frame through the underlying bus."""
        bus = self.bus
        if bus is None:
            raise InvalidStateError()
        try:
            bus.send(frame)
        except Exception as exc:
            _log.warning("error sending frame: %s", exc)
            raise

    def process(self) -> None:
        """Refresh the bus error state; call cyclically."""
        with self._lock:
            self._can_error = 0

    def subscribe(self, ident: int, mask: int, rtr: bool, callback: FrameListener) -> None:
        """Register a callback for frames with the given 11-bit identifier."""
        key = ident & CAN_SFF_MASK
        if rtr:
            key |= CAN_RTR_FLAG
        with self._lock:
            listeners = self._listeners.setdefault(key, [])
            if any(existing == callback for existing in listeners):
                _log.warning("callback for frame already present, id=%#x", key)
                return
            listeners.append(callback)

    def error(self) -> int:
        """Return the current CAN error flags."""
        with self._lock:
            return self._can_error