"""Heartbeat consumer that monitors the NMT state of remote nodes."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Iterable

from .bus import Frame
from .bus_manager import BusManager
from .configurator import SdoAbort
from .emergency import ABORT_DEVICE_INCOMPATIBLE, Emergency
from .emergency_codes import ErrorCode, ErrorStatus
from .errors import IllegalArgumentError

_log = logging.getLogger(__name__)

SERVICE_ID = 0x700
ABORT_PARAMETER_INCOMPATIBLE = 0x06040043


class NmtState(IntEnum):
    """NMT states as carried in heartbeat messages."""

    INITIALIZING = 0
    STOPPED = 4
    OPERATIONAL = 5
    PRE_OPERATIONAL = 127
    UNKNOWN = 255


class HeartbeatState(IntEnum):
    UNCONFIGURED = 0x00  # consumer entry inactive
    UNKNOWN = 0x01  # enabled, no heartbeat received yet
    ACTIVE = 0x02  # heartbeat received within set time
    TIMEOUT = 0x03  # no heartbeat received for set time


class HeartbeatEvent(IntEnum):
    STARTED = 0x01
    TIMEOUT = 0x02
    CHANGED = 0x03
    BOOT = 0x04


HeartbeatCallback = Callable[[HeartbeatEvent, int, int, int], None]
"""Called with (event, monitored node id, 1-based entry index, NMT state)."""


@dataclass(frozen=True)
class MonitoredNode:
    """Snapshot of one consumer entry."""

    node_id: int
    time_us: int
    hb_state: HeartbeatState
    nmt_state: int


@dataclass
class _Entry:
    node_id: int = 0
    cob_id: int = 0
    nmt_state: int = NmtState.UNKNOWN
    nmt_state_prev: int = NmtState.UNKNOWN
    hb_state: HeartbeatState = HeartbeatState.UNCONFIGURED
    timeout_timer: int = 0
    time_us: int = 0
    rx_new: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def handle(self, frame: Frame) -> None:
        if frame.dlc != 1:
            return
        with self.lock:
            self.nmt_state = frame.data[0]
            self.rx_new = True

    def update(self, node_id: int, consumer_time_ms: int) -> None:
        self.node_id = node_id
        self.time_us = consumer_time_ms * 1000
        self.nmt_state = NmtState.UNKNOWN
        self.nmt_state_prev = NmtState.UNKNOWN
        self.rx_new = False
        if self.node_id != 0 and self.time_us != 0:
            self.cob_id = self.node_id + SERVICE_ID
            self.hb_state = HeartbeatState.UNKNOWN
        else:
            self.cob_id = 0
            self.time_us = 0
            self.hb_state = HeartbeatState.UNCONFIGURED


class HeartbeatConsumer:
    """Watches heartbeats of the nodes configured in object 0x1016.

    Each value of consumer_times is a raw 0x1016 sub-entry: node id in
    bits 16-23 and expected period in milliseconds in bits 0-15.
    """

    def __init__(
        self,
        bus_manager: BusManager,
        emergency: Emergency,
        consumer_times: Iterable[int],
    ) -> None:
        if bus_manager is None or emergency is None:
            raise IllegalArgumentError()
        self._lock = threading.RLock()
        self._bus_manager = bus_manager
        self._emcy = emergency
        values = list(consumer_times)
        self._entries = [_Entry() for _ in values]
        self._all_active = False
        self._all_operational = False
        self._nmt_prev = False
        self._callback: HeartbeatCallback | None = None
        _log.info("number of entries to monitor nodes: %d", len(values))
        for index, value in enumerate(values):
            self._update_entry(index, (value >> 16) & 0xFF, value & 0xFFFF)

    @property
    def entries(self) -> tuple[MonitoredNode, ...]:
        """Snapshot of all consumer entries, in sub-index order."""
        with self._lock:
            snapshot = []
            for entry in self._entries:
                with entry.lock:
                    snapshot.append(
                        MonitoredNode(entry.node_id, entry.time_us, entry.hb_state, entry.nmt_state)
                    )
            return tuple(snapshot)

    @property
    def all_monitored_active(self) -> bool:
        with self._lock:
            return self._all_active

    @property
    def all_monitored_operational(self) -> bool:
        with self._lock:
            return self._all_operational

    def process(
        self,
        nmt_is_pre_or_operational: bool,
        time_difference_us: int,
        timer_next_us: int | None = None,
    ) -> int | None:
        """Run the monitoring state machine; call periodically.

        Returns timer_next_us, lowered to the nearest pending timeout.
        """
        events: list[tuple[HeartbeatEvent, int, int, int]] = []
        with self._lock:
            all_active = True
            all_operational = True
            if nmt_is_pre_or_operational and self._nmt_prev:
                for i, node in enumerate(self._entries):
                    with node.lock:
                        if node.hb_state == HeartbeatState.UNCONFIGURED:
                            continue
                        elapsed = time_difference_us
                        if node.rx_new:
                            if node.nmt_state == NmtState.INITIALIZING:
                                # A boot-up after a heartbeat means the node rebooted
                                if node.hb_state == HeartbeatState.ACTIVE:
                                    self._emcy.error_report(
                                        ErrorStatus.HB_CONSUMER_REMOTE_RESET, ErrorCode.HEARTBEAT, i
                                    )
                                events.append(
                                    (HeartbeatEvent.BOOT, node.node_id, i + 1, NmtState.INITIALIZING)
                                )
                                node.hb_state = HeartbeatState.UNKNOWN
                            else:
                                if node.hb_state != HeartbeatState.ACTIVE:
                                    events.append(
                                        (HeartbeatEvent.STARTED, node.node_id, i + 1, NmtState.INITIALIZING)
                                    )
                                node.hb_state = HeartbeatState.ACTIVE
                                node.timeout_timer = 0
                                elapsed = 0
                            node.rx_new = False

                        if node.hb_state == HeartbeatState.ACTIVE:
                            node.timeout_timer += elapsed
                            if node.timeout_timer >= node.time_us:
                                self._emcy.error_report(
                                    ErrorStatus.HB_CONSUMER_REMOTE_RESET, ErrorCode.HEARTBEAT, i
                                )
                                node.nmt_state = NmtState.UNKNOWN
                                node.hb_state = HeartbeatState.TIMEOUT
                                events.append(
                                    (HeartbeatEvent.TIMEOUT, node.node_id, i + 1, NmtState.UNKNOWN)
                                )
                            elif timer_next_us is not None:
                                timer_next_us = min(timer_next_us, node.time_us - node.timeout_timer)

                        if node.hb_state != HeartbeatState.ACTIVE:
                            all_active = False
                        if node.nmt_state != NmtState.OPERATIONAL:
                            all_operational = False
                        if node.nmt_state != node.nmt_state_prev:
                            events.append(
                                (HeartbeatEvent.CHANGED, node.node_id, i + 1, node.nmt_state)
                            )
                            node.nmt_state_prev = node.nmt_state
            elif nmt_is_pre_or_operational or self._nmt_prev:
                # Local NMT state changed: forget everything seen so far
                for node in self._entries:
                    with node.lock:
                        node.nmt_state = NmtState.UNKNOWN
                        node.nmt_state_prev = NmtState.UNKNOWN
                        node.rx_new = False
                        if node.hb_state != HeartbeatState.UNCONFIGURED:
                            node.hb_state = HeartbeatState.UNKNOWN
                all_active = False
                all_operational = False

            if not self._all_active and all_active:
                self._emcy.error_reset(ErrorStatus.HEARTBEAT_CONSUMER, 0)
                self._emcy.error_reset(ErrorStatus.HB_CONSUMER_REMOTE_RESET, 0)
            self._all_active = all_active
            self._all_operational = all_operational
            self._nmt_prev = nmt_is_pre_or_operational
            callback = self._callback

        if callback is not None:
            for event, node_id, index, state in events:
                callback(event, node_id, index, state)
        return timer_next_us

    def _update_entry(self, index: int, node_id: int, consumer_time_ms: int) -> None:
        if not 0 <= index < len(self._entries):
            raise IllegalArgumentError(f"no consumer entry {index}")
        if consumer_time_ms != 0 and node_id != 0:
            for i, other in enumerate(self._entries):
                if i != index and other.time_us != 0 and other.node_id == node_id:
                    raise IllegalArgumentError(f"node {node_id} is already monitored")
        entry = self._entries[index]
        with entry.lock:
            entry.update(node_id, consumer_time_ms)
        if entry.hb_state != HeartbeatState.UNCONFIGURED:
            _log.info("will monitor node %d, timeout %d ms", entry.node_id, entry.time_us // 1000)
            self._bus_manager.subscribe(entry.cob_id, 0x7FF, False, entry.handle)

    def update_entry(self, index: int, node_id: int, consumer_time_ms: int) -> None:
        """Monitor node_id at 0-based entry index; a zero id or time disables it."""
        with self._lock:
            self._update_entry(index, node_id, consumer_time_ms)

    def on_event(self, callback: HeartbeatCallback | None) -> None:
        """Set the callback for boot-up, timeout and NMT change events."""
        with self._lock:
            self._callback = callback

    def write_entry(self, subindex: int, data: bytes) -> None:
        """Handle an SDO write of a 0x1016 sub-entry (four little-endian bytes)."""
        with self._lock:
            if subindex < 1 or subindex > len(self._entries) or len(data) != 4:
                raise SdoAbort(ABORT_DEVICE_INCOMPATIBLE)
            value = int.from_bytes(data, "little")
            try:
                self._update_entry(subindex - 1, (value >> 16) & 0xFF, value & 0xFFFF)
            except IllegalArgumentError:
                raise SdoAbort(ABORT_PARAMETER_INCOMPATIBLE) from None