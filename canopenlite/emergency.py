"""Emergency (EMCY) producer and consumer with error history."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable

from .bus import (
    CAN_ERROR_PDO_LATE,
    CAN_ERROR_RX_OVERFLOW,
    CAN_ERROR_RX_PASSIVE,
    CAN_ERROR_RX_WARNING,
    CAN_ERROR_TX_BUS_OFF,
    CAN_ERROR_TX_OVERFLOW,
    CAN_ERROR_TX_PASSIVE,
    CAN_ERROR_TX_WARNING,
    Frame,
)
from .bus_manager import BusManager
from .configurator import SdoAbort
from .emergency_codes import (
    EMERGENCY_ERROR_STATUS_BITS,
    SERVICE_ID,
    ErrorCode,
    ErrorRegister,
    ErrorStatus,
    error_code_description,
    error_status_description,
)
from .errors import CanopenError, IllegalArgumentError
from .ids import is_id_restricted

_log = logging.getLogger(__name__)

STATUS_BYTES = EMERGENCY_ERROR_STATUS_BITS // 8

ABORT_DEVICE_INCOMPATIBLE = 0x06040047
ABORT_INVALID_VALUE = 0x06090030
ABORT_NO_DATA = 0x08000024

_DISABLED_BIT = 0x80000000

# Error register byte placed in every transmitted emergency message.
_TX_ERROR_REGISTER = (
    ErrorRegister.GENERIC
    | ErrorRegister.CURRENT
    | ErrorRegister.VOLTAGE
    | ErrorRegister.TEMPERATURE
    | ErrorRegister.COMMUNICATION
    | ErrorRegister.DEV_PROFILE
    | ErrorRegister.MANUFACTURER
)

# (bus error flags, status bit, error code) checked on every bus error change
_BUS_ERROR_MAP = (
    (CAN_ERROR_TX_WARNING | CAN_ERROR_RX_WARNING, ErrorStatus.CAN_BUS_WARNING, ErrorCode.NO_ERROR),
    (CAN_ERROR_TX_PASSIVE, ErrorStatus.CAN_TX_BUS_PASSIVE, ErrorCode.CAN_PASSIVE),
    (CAN_ERROR_TX_BUS_OFF, ErrorStatus.CAN_TX_BUS_OFF, ErrorCode.BUS_OFF_RECOVERED),
    (CAN_ERROR_TX_OVERFLOW, ErrorStatus.CAN_TX_OVERFLOW, ErrorCode.CAN_OVERRUN),
    (CAN_ERROR_PDO_LATE, ErrorStatus.TPDO_OUTSIDE_WINDOW, ErrorCode.COMMUNICATION),
    (CAN_ERROR_RX_PASSIVE, ErrorStatus.CAN_RX_BUS_PASSIVE, ErrorCode.CAN_PASSIVE),
    (CAN_ERROR_RX_OVERFLOW, ErrorStatus.CAN_RXB_OVERFLOW, ErrorCode.CAN_OVERRUN),
)

EmergencyCallback = Callable[[int, int, int, int, int], None]
"""Called with (CAN id, error code, error register, error bit, info code); id 0 is own."""


@dataclass
class _HistoryEntry:
    msg: int = 0
    info: int = 0


class Emergency:
    """Queues, sends and records emergency messages of one node.

    The methods taking or returning raw bytes back the object dictionary
    entries 0x1003 (history), 0x1014 (COB-ID), 0x1015 (inhibit time) and the
    manufacturer status bits entry.
    """

    def __init__(
        self,
        bus_manager: BusManager,
        node_id: int,
        cob_id: int,
        history_size: int,
        inhibit_time_100us: int | None = None,
        callback: EmergencyCallback | None = None,
    ) -> None:
        if bus_manager is None or not 1 <= node_id <= 127 or history_size < 0:
            raise IllegalArgumentError()
        self._lock = threading.RLock()
        self._bus_manager = bus_manager
        self._node_id = node_id
        self._status_bits = bytearray(STATUS_BYTES)
        self._error_register = 0
        self._can_error_old = 0
        self._fifo = [_HistoryEntry() for _ in range(history_size)]
        self._fifo_wr = 0
        self._fifo_pp = 0
        self._fifo_overflow = 0
        self._fifo_count = 0
        self._callback = callback

        producer_can_id = cob_id & 0x7FF
        self._producer_enabled = not cob_id & _DISABLED_BIT and producer_can_id != 0
        self._producer_ident = producer_can_id
        if producer_can_id == SERVICE_ID:
            producer_can_id += node_id
        self._tx_id = producer_can_id
        self._inhibit_time_us = 0
        self._inhibit_timer = 0
        if inhibit_time_100us is not None:
            self._inhibit_time_us = inhibit_time_100us * 100
        bus_manager.subscribe(SERVICE_ID, 0x780, False, self.handle)

    @property
    def callback(self) -> EmergencyCallback | None:
        with self._lock:
            return self._callback

    @callback.setter
    def callback(self, callback: EmergencyCallback | None) -> None:
        with self._lock:
            self._callback = callback

    @property
    def tx_id(self) -> int:
        """CAN id used for transmitted emergencies."""
        with self._lock:
            return self._tx_id

    def handle(self, frame: Frame) -> None:
        """Report a received emergency frame to the callback."""
        callback = self.callback
        if callback is None or frame.id == SERVICE_ID:
            return
        data = frame.data
        callback(
            frame.id,
            int.from_bytes(data[0:2], "little"),
            data[2],
            data[3],
            int.from_bytes(data[4:8], "little"),
        )

    def process(
        self,
        nmt_is_pre_or_operational: bool,
        time_difference_us: int,
        timer_next_us: int | None = None,
    ) -> int | None:
        """Update bus error status and send queued emergencies.

        Returns timer_next_us, lowered to when the inhibit time runs out
        if that comes sooner.
        """
        with self._lock:
            can_error = self._bus_manager.error()
            if can_error != self._can_error_old:
                changed = can_error ^ self._can_error_old
                self._can_error_old = can_error
                for flags, bit, code in _BUS_ERROR_MAP:
                    if changed & flags:
                        self.error(bool(can_error & flags), bit, code, 0)

            if not nmt_is_pre_or_operational or len(self._fifo) < 2:
                return timer_next_us

            if self._inhibit_timer < self._inhibit_time_us:
                self._inhibit_timer += time_difference_us
            pp = self._fifo_pp
            if pp != self._fifo_wr and self._inhibit_timer >= self._inhibit_time_us:
                self._inhibit_timer = 0
                entry = self._fifo[pp]
                entry.msg |= int(_TX_ERROR_REGISTER) << 16
                self._transmit(entry)
                if self._callback is not None:
                    self._callback(
                        0,
                        entry.msg & 0xFFFF,
                        int(_TX_ERROR_REGISTER),
                        (entry.msg >> 24) & 0xFF,
                        entry.info,
                    )
                pp = (pp + 1) % len(self._fifo)
                self._fifo_pp = pp
                if self._fifo_overflow == 1:
                    self._fifo_overflow = 2
                    self.error_report(ErrorStatus.EMERGENCY_BUFFER_FULL, ErrorCode.GENERIC, 0)
                elif self._fifo_overflow == 2 and pp == self._fifo_wr:
                    self._fifo_overflow = 0
                    self.error_reset(ErrorStatus.EMERGENCY_BUFFER_FULL, 0)
            elif timer_next_us is not None and self._inhibit_timer < self._inhibit_time_us:
                remaining = self._inhibit_time_us - self._inhibit_timer
                timer_next_us = min(timer_next_us, remaining)
            return timer_next_us

    def _transmit(self, entry: _HistoryEntry) -> None:
        payload = entry.msg.to_bytes(4, "little") + entry.info.to_bytes(4, "little")
        try:
            self._bus_manager.send(Frame(self._tx_id, 0, 8, payload))
        except (CanopenError, OSError):
            pass

    def error(self, set_error: bool, error_bit: int, error_code: int, info_code: int) -> None:
        """Set or reset an error condition and queue the matching emergency."""
        with self._lock:
            index = error_bit >> 3
            bit_mask = 1 << (error_bit & 0x7)
            if index >= STATUS_BYTES:
                index = ErrorStatus.WRONG_ERROR_REPORT >> 3
                bit_mask = 1 << (ErrorStatus.WRONG_ERROR_REPORT & 0x7)
                error_code = ErrorCode.SOFTWARE_INTERNAL
                info_code = error_bit
            already_set = bool(self._status_bits[index] & bit_mask)
            if set_error == already_set:
                return
            if not set_error:
                error_code = ErrorCode.NO_ERROR
            self._status_bits[index] ^= bit_mask

            msg = ((error_bit & 0xFF) << 24) | (int(error_code) & 0xFFFF)
            if len(self._fifo) < 2:
                return
            following = (self._fifo_wr + 1) % len(self._fifo)
            if following == self._fifo_pp:
                self._fifo_overflow = 1
                return
            self._fifo[self._fifo_wr] = _HistoryEntry(msg, info_code & 0xFFFFFFFF)
            self._fifo_wr = following
            if self._fifo_count < len(self._fifo) - 1:
                self._fifo_count += 1

    def error_report(self, error_bit: int, error_code: int, info_code: int) -> None:
        """Set an error condition."""
        _log.info(
            "report emergency code=%#06x (%s) bit=%#04x (%s) info=%#x",
            error_code, error_code_description(error_code),
            error_bit, error_status_description(error_bit), info_code,
        )
        self.error(True, error_bit, error_code, info_code)

    def error_reset(self, error_bit: int, info_code: int) -> None:
        """Clear an error condition."""
        _log.info(
            "reset emergency bit=%#04x (%s) info=%#x",
            error_bit, error_status_description(error_bit), info_code,
        )
        self.error(False, error_bit, ErrorCode.NO_ERROR, info_code)

    def is_error(self, error_bit: int) -> bool:
        """True if the status bit is set; unknown bits count as set."""
        index = error_bit >> 3
        if index >= STATUS_BYTES:
            return True
        with self._lock:
            return bool(self._status_bits[index] & (1 << (error_bit & 0x7)))

    def error_register(self) -> int:
        """Value of the error register."""
        with self._lock:
            return self._error_register

    def producer_enabled(self) -> bool:
        with self._lock:
            return self._producer_enabled

    # Object dictionary hooks

    def read_status_bits(self, size: int) -> bytes:
        """Read up to size bytes of the error status bits."""
        with self._lock:
            return bytes(self._status_bits[: max(0, min(STATUS_BYTES, size))])

    def write_status_bits(self, data: bytes) -> int:
        """Overwrite the error status bits; return the number of bytes written."""
        count = min(STATUS_BYTES, len(data))
        with self._lock:
            self._status_bits[:count] = data[:count]
        return count

    def read_history(self, subindex: int) -> bytes:
        """Subindex 0 is the history length; 1 is the most recent entry."""
        with self._lock:
            if len(self._fifo) < 2:
                raise SdoAbort(ABORT_DEVICE_INCOMPATIBLE)
            if subindex == 0:
                return bytes([self._fifo_count])
            if subindex < 0 or subindex > self._fifo_count:
                raise SdoAbort(ABORT_NO_DATA)
            index = (self._fifo_wr - subindex) % len(self._fifo)
            return self._fifo[index].msg.to_bytes(4, "little")

    def clear_history(self, data: bytes) -> None:
        """Clear the history; only a single zero byte is accepted."""
        if len(data) != 1:
            raise SdoAbort(ABORT_DEVICE_INCOMPATIBLE)
        if data[0] != 0:
            raise SdoAbort(ABORT_INVALID_VALUE)
        with self._lock:
            self._fifo_count = 0

    def _current_can_id(self) -> int:
        if self._producer_ident == SERVICE_ID:
            return SERVICE_ID + self._node_id
        return self._producer_ident

    def read_cob_id(self) -> bytes:
        """Emergency COB-ID as four little-endian bytes."""
        with self._lock:
            cob_id = 0 if self._producer_enabled else _DISABLED_BIT
            return (cob_id | self._current_can_id()).to_bytes(4, "little")

    def write_cob_id(self, data: bytes) -> None:
        """Update the producer COB-ID; the CAN id may not change while enabled."""
        if len(data) != 4:
            raise SdoAbort(ABORT_DEVICE_INCOMPATIBLE)
        cob_id = int.from_bytes(data, "little")
        new_can_id = cob_id & 0x7FF
        with self._lock:
            current = self._current_can_id()
            new_enabled = not cob_id & _DISABLED_BIT and new_can_id != 0
            if (
                cob_id & 0x7FFFF800
                or is_id_restricted(new_can_id)
                or (self._producer_enabled and new_enabled and new_can_id != current)
            ):
                raise SdoAbort(ABORT_INVALID_VALUE)
            self._producer_enabled = new_enabled
            if new_can_id == SERVICE_ID + self._node_id:
                self._producer_ident = SERVICE_ID
            else:
                self._producer_ident = new_can_id
            if new_enabled:
                self._tx_id = new_can_id

    def write_inhibit_time(self, data: bytes) -> None:
        """Set the inhibit time from two little-endian bytes in units of 100 us."""
        if len(data) != 2:
            raise SdoAbort(ABORT_DEVICE_INCOMPATIBLE)
        with self._lock:
            self._inhibit_time_us = int.from_bytes(data, "little") * 100
            self._inhibit_timer = 0