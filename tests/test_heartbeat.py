import pytest

from canopenlite.bus import Bus, Frame
from canopenlite.bus_manager import BusManager
from canopenlite.configurator import SdoAbort
from canopenlite.emergency import ABORT_DEVICE_INCOMPATIBLE, Emergency
from canopenlite.emergency_codes import ErrorCode, ErrorStatus
from canopenlite.errors import IllegalArgumentError
from canopenlite.heartbeat import (
    ABORT_PARAMETER_INCOMPATIBLE,
    HeartbeatConsumer,
    HeartbeatEvent,
    HeartbeatState,
    NmtState,
)


class _FakeBus(Bus):
    def __init__(self):
        self.sent = []

    def connect(self, *args):
        pass

    def disconnect(self):
        pass

    def send(self, frame):
        self.sent.append(frame)

    def subscribe(self, callback):
        pass


def _value(node_id, period_ms):
    return (node_id << 16) | period_ms


@pytest.fixture
def setup():
    bm = BusManager(_FakeBus())
    emcy = Emergency(bm, 0x10, 0x80, 8)
    consumer = HeartbeatConsumer(bm, emcy, [_value(0x20, 100), _value(0, 0)])
    events = []
    consumer.on_event(lambda *args: events.append(args))
    return bm, emcy, consumer, events


def _heartbeat(bm, node_id, state):
    bm.handle(Frame(0x700 + node_id, 0, 1, bytes([state])))


def _make_active(bm, consumer):
    consumer.process(True, 0)
    _heartbeat(bm, 0x20, NmtState.OPERATIONAL)
    consumer.process(True, 1000)


def test_initial_entries(setup):
    _, _, consumer, _ = setup
    first, second = consumer.entries
    assert first.node_id == 0x20
    assert first.hb_state == HeartbeatState.UNKNOWN
    assert first.time_us == 100 * 1000
    assert second.hb_state == HeartbeatState.UNCONFIGURED


def test_heartbeat_starts_monitoring(setup):
    bm, _, consumer, events = setup
    _make_active(bm, consumer)
    assert events == [
        (HeartbeatEvent.STARTED, 0x20, 1, NmtState.INITIALIZING),
        (HeartbeatEvent.CHANGED, 0x20, 1, NmtState.OPERATIONAL),
    ]
    assert consumer.entries[0].hb_state == HeartbeatState.ACTIVE
    assert consumer.all_monitored_active
    assert consumer.all_monitored_operational


def test_frame_with_wrong_length_ignored(setup):
    bm, _, consumer, events = setup
    consumer.process(True, 0)
    bm.handle(Frame(0x720, 0, 2, bytes([5, 0])))
    consumer.process(True, 1000)
    assert events == []
    assert consumer.entries[0].hb_state == HeartbeatState.UNKNOWN


def test_timeout(setup):
    bm, emcy, consumer, events = setup
    _make_active(bm, consumer)
    events.clear()
    consumer.process(True, 100 * 1000)
    assert events[0] == (HeartbeatEvent.TIMEOUT, 0x20, 1, NmtState.UNKNOWN)
    assert consumer.entries[0].hb_state == HeartbeatState.TIMEOUT
    assert consumer.entries[0].nmt_state == NmtState.UNKNOWN
    assert emcy.is_error(ErrorStatus.HB_CONSUMER_REMOTE_RESET)
    assert not consumer.all_monitored_active


def test_timer_next_lowered(setup):
    bm, _, consumer, _ = setup
    _make_active(bm, consumer)
    remaining = consumer.process(True, 30000, 1_000_000)
    assert remaining == 100 * 1000 - 30000
    assert consumer.process(True, 0, 10) == 10


def test_boot_after_active_reports_reset(setup):
    bm, emcy, consumer, events = setup
    _make_active(bm, consumer)
    events.clear()
    _heartbeat(bm, 0x20, NmtState.INITIALIZING)
    consumer.process(True, 1000)
    assert events[0] == (HeartbeatEvent.BOOT, 0x20, 1, NmtState.INITIALIZING)
    assert events[1] == (HeartbeatEvent.CHANGED, 0x20, 1, NmtState.INITIALIZING)
    assert consumer.entries[0].hb_state == HeartbeatState.UNKNOWN
    assert emcy.is_error(ErrorStatus.HB_CONSUMER_REMOTE_RESET)


def test_leaving_operational_resets_entries(setup):
    bm, _, consumer, _ = setup
    _make_active(bm, consumer)
    consumer.process(False, 1000)
    entry = consumer.entries[0]
    assert entry.hb_state == HeartbeatState.UNKNOWN
    assert entry.nmt_state == NmtState.UNKNOWN
    assert not consumer.all_monitored_active
    assert consumer.entries[1].hb_state == HeartbeatState.UNCONFIGURED


def test_errors_cleared_when_all_active(setup):
    bm, emcy, consumer, _ = setup
    emcy.error_report(ErrorStatus.HEARTBEAT_CONSUMER, ErrorCode.HEARTBEAT, 0)
    assert emcy.is_error(ErrorStatus.HEARTBEAT_CONSUMER)
    _make_active(bm, consumer)
    assert not emcy.is_error(ErrorStatus.HEARTBEAT_CONSUMER)


def test_duplicate_node_rejected(setup):
    _, _, consumer, _ = setup
    with pytest.raises(IllegalArgumentError):
        consumer.update_entry(1, 0x20, 50)


def test_index_out_of_range(setup):
    _, _, consumer, _ = setup
    with pytest.raises(IllegalArgumentError):
        consumer.update_entry(2, 0x30, 50)


def test_duplicate_in_constructor():
    bm = BusManager(_FakeBus())
    emcy = Emergency(bm, 0x10, 0x80, 8)
    with pytest.raises(IllegalArgumentError):
        HeartbeatConsumer(bm, emcy, [_value(5, 10), _value(5, 20)])


def test_write_entry_updates(setup):
    bm, _, consumer, events = setup
    consumer.write_entry(2, _value(0x30, 200).to_bytes(4, "little"))
    entry = consumer.entries[1]
    assert entry.node_id == 0x30
    assert entry.time_us == 200 * 1000
    assert entry.hb_state == HeartbeatState.UNKNOWN
    consumer.process(True, 0)
    _heartbeat(bm, 0x30, NmtState.PRE_OPERATIONAL)
    consumer.process(True, 1000)
    assert (HeartbeatEvent.STARTED, 0x30, 2, NmtState.INITIALIZING) in events


@pytest.mark.parametrize("subindex,data", [(0, bytes(4)), (3, bytes(4)), (1, bytes(2))])
def test_write_entry_bad_arguments(setup, subindex, data):
    _, _, consumer, _ = setup
    with pytest.raises(SdoAbort) as info:
        consumer.write_entry(subindex, data)
    assert info.value.code == ABORT_DEVICE_INCOMPATIBLE


def test_write_entry_duplicate(setup):
    _, _, consumer, _ = setup
    with pytest.raises(SdoAbort) as info:
        consumer.write_entry(2, _value(0x20, 10).to_bytes(4, "little"))
    assert info.value.code == ABORT_PARAMETER_INCOMPATIBLE


def test_requires_emergency():
    with pytest.raises(IllegalArgumentError):
        HeartbeatConsumer(BusManager(_FakeBus()), None, [])