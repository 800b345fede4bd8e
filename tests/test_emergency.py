import pytest

from canopenlite.bus import Bus, Frame
from canopenlite.bus_manager import BusManager
from canopenlite.configurator import SdoAbort
from canopenlite.emergency import (
    ABORT_INVALID_VALUE,
    ABORT_NO_DATA,
    Emergency,
)
from canopenlite.emergency_codes import ErrorCode, ErrorStatus
from canopenlite.errors import IllegalArgumentError

NODE_ID = 0x10


class RecordingBus(Bus):
    def __init__(self, fail=False):
        self.frames = []
        self.fail = fail

    def connect(self, *args):
        pass

    def disconnect(self):
        pass

    def send(self, frame):
        if self.fail:
            raise OSError("bus down")
        self.frames.append(frame)

    def subscribe(self, callback):
        pass


def make(history=8, cob_id=0x80, inhibit=None, fail=False):
    bus = RecordingBus(fail=fail)
    received = []
    emcy = Emergency(
        BusManager(bus),
        NODE_ID,
        cob_id,
        history,
        inhibit_time_100us=inhibit,
        callback=lambda *args: received.append(args),
    )
    return emcy, bus, received


def test_invalid_arguments():
    with pytest.raises(IllegalArgumentError):
        Emergency(BusManager(RecordingBus()), 0, 0x80, 8)
    with pytest.raises(IllegalArgumentError):
        Emergency(BusManager(RecordingBus()), 128, 0x80, 8)
    with pytest.raises(IllegalArgumentError):
        Emergency(None, NODE_ID, 0x80, 8)


def test_default_cob_id_adds_node_id():
    emcy, _, _ = make()
    assert emcy.producer_enabled()
    assert emcy.tx_id == 0x80 + NODE_ID
    assert int.from_bytes(emcy.read_cob_id(), "little") == 0x80 + NODE_ID


def test_disabled_cob_id():
    emcy, _, _ = make(cob_id=0x80000080)
    assert not emcy.producer_enabled()
    assert int.from_bytes(emcy.read_cob_id(), "little") & 0x80000000


def test_report_and_send():
    emcy, bus, received = make()
    emcy.error_report(ErrorStatus.GENERIC_ERROR, ErrorCode.GENERIC, 0x1234)
    assert emcy.is_error(ErrorStatus.GENERIC_ERROR)
    emcy.process(True, 0)
    assert len(bus.frames) == 1
    frame = bus.frames[0]
    assert frame.id == 0x80 + NODE_ID
    assert frame.data[0:2] == int(ErrorCode.GENERIC).to_bytes(2, "little")
    assert frame.data[3] == ErrorStatus.GENERIC_ERROR
    assert int.from_bytes(frame.data[4:8], "little") == 0x1234
    ident, code, _register, bit, info = received[0]
    assert (ident, code, bit, info) == (0, ErrorCode.GENERIC, ErrorStatus.GENERIC_ERROR, 0x1234)


def test_nothing_sent_when_not_operational():
    emcy, bus, _ = make()
    emcy.error_report(ErrorStatus.GENERIC_ERROR, ErrorCode.GENERIC, 0)
    emcy.process(False, 0)
    assert bus.frames == []


def test_duplicate_report_queued_once():
    emcy, bus, _ = make()
    emcy.error_report(ErrorStatus.GENERIC_ERROR, ErrorCode.GENERIC, 0)
    emcy.error_report(ErrorStatus.GENERIC_ERROR, ErrorCode.GENERIC, 0)
    emcy.process(True, 0)
    emcy.process(True, 0)
    assert len(bus.frames) == 1


def test_reset_sends_no_error_code():
    emcy, bus, _ = make()
    emcy.error_report(ErrorStatus.GENERIC_ERROR, ErrorCode.GENERIC, 0)
    emcy.error_reset(ErrorStatus.GENERIC_ERROR, 0)
    assert not emcy.is_error(ErrorStatus.GENERIC_ERROR)
    emcy.process(True, 0)
    emcy.process(True, 0)
    assert len(bus.frames) == 2
    assert bus.frames[1].data[0:2] == int(ErrorCode.NO_ERROR).to_bytes(2, "little")


def test_reset_of_unset_error_is_ignored():
    emcy, bus, _ = make()
    emcy.error_reset(ErrorStatus.GENERIC_ERROR, 0)
    emcy.process(True, 0)
    assert bus.frames == []


def test_unsupported_bit_flags_wrong_report():
    emcy, bus, _ = make()
    emcy.error_report(100, ErrorCode.GENERIC, 0)
    assert emcy.is_error(ErrorStatus.WRONG_ERROR_REPORT)
    assert emcy.is_error(100)
    emcy.process(True, 0)
    assert bus.frames[0].data[0:2] == int(ErrorCode.SOFTWARE_INTERNAL).to_bytes(2, "little")
    assert int.from_bytes(bus.frames[0].data[4:8], "little") == 100


def test_history():
    emcy, _, _ = make()
    emcy.error_report(ErrorStatus.GENERIC_ERROR, ErrorCode.GENERIC, 0)
    emcy.error_report(ErrorStatus.SYNC_TIMEOUT, ErrorCode.COMMUNICATION, 0)
    assert emcy.read_history(0) == bytes([2])
    latest = int.from_bytes(emcy.read_history(1), "little")
    assert latest & 0xFFFF == ErrorCode.COMMUNICATION
    assert latest >> 24 == ErrorStatus.SYNC_TIMEOUT
    older = int.from_bytes(emcy.read_history(2), "little")
    assert older & 0xFFFF == ErrorCode.GENERIC
    with pytest.raises(SdoAbort) as info:
        emcy.read_history(3)
    assert info.value.code == ABORT_NO_DATA


def test_clear_history():
    emcy, _, _ = make()
    emcy.error_report(ErrorStatus.GENERIC_ERROR, ErrorCode.GENERIC, 0)
    emcy.clear_history(b"\x00")
    assert emcy.read_history(0) == b"\x00"
    with pytest.raises(SdoAbort) as info:
        emcy.clear_history(b"\x01")
    assert info.value.code == ABORT_INVALID_VALUE


def test_inhibit_time_delays_sending():
    emcy, bus, _ = make()
    emcy.write_inhibit_time((10).to_bytes(2, "little"))
    emcy.error_report(ErrorStatus.GENERIC_ERROR, ErrorCode.GENERIC, 0)
    emcy.error_report(ErrorStatus.SYNC_TIMEOUT, ErrorCode.COMMUNICATION, 0)
    emcy.process(True, 0)
    assert bus.frames == []
    emcy.process(True, 1000)
    assert len(bus.frames) == 1
    next_us = emcy.process(True, 100, 5000)
    assert len(bus.frames) == 1
    assert next_us < 5000


def test_buffer_overflow_reported():
    emcy, bus, _ = make(history=2)
    emcy.error_report(ErrorStatus.GENERIC_ERROR, ErrorCode.GENERIC, 0)
    emcy.error_report(ErrorStatus.SYNC_TIMEOUT, ErrorCode.COMMUNICATION, 0)
    emcy.process(True, 0)
    assert emcy.is_error(ErrorStatus.EMERGENCY_BUFFER_FULL)
    emcy.process(True, 0)
    assert bus.frames[1].data[3] == ErrorStatus.EMERGENCY_BUFFER_FULL


def test_send_failure_is_swallowed():
    emcy, _, received = make(fail=True)
    emcy.error_report(ErrorStatus.GENERIC_ERROR, ErrorCode.GENERIC, 0)
    emcy.process(True, 0)
    assert len(received) == 1


def test_handle_remote_emergency():
    emcy, _, received = make()
    payload = bytes([0x00, 0x10, 0x01, 0x2B, 0x04, 0x03, 0x02, 0x01])
    emcy.handle(Frame(0x85, 0, 8, payload))
    assert received == [(0x85, 0x1000, 0x01, 0x2B, 0x01020304)]
    emcy.handle(Frame(0x80, 0, 8, payload))
    assert len(received) == 1


def test_write_cob_id_rules():
    emcy, _, _ = make()
    with pytest.raises(SdoAbort):
        emcy.write_cob_id((0x90 + 1).to_bytes(4, "little"))
    with pytest.raises(SdoAbort):
        emcy.write_cob_id((0x10).to_bytes(4, "little"))
    with pytest.raises(SdoAbort):
        emcy.write_cob_id(b"\x00\x00")
    emcy.write_cob_id((0x80000000 | 0x90).to_bytes(4, "little"))
    assert not emcy.producer_enabled()
    emcy.write_cob_id((0xA0).to_bytes(4, "little"))
    assert emcy.producer_enabled()
    assert emcy.tx_id == 0xA0
    assert int.from_bytes(emcy.read_cob_id(), "little") == 0xA0


def test_status_bits_round_trip():
    emcy, _, _ = make()
    data = bytes(range(1, 11))
    assert emcy.write_status_bits(data + b"\xff") == 10
    assert emcy.read_status_bits(20) == data
    assert emcy.read_status_bits(3) == data[:3]
    assert emcy.is_error(0) == bool(data[0] & 1)


def test_error_register_initially_clear():
    emcy, _, _ = make()
    assert emcy.error_register() == 0