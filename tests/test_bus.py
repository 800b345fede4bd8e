import pytest

from canopenlite.bus import Bus, Frame


class LoopBus(Bus):
    def __init__(self):
        self.connected = False
        self.callback = None

    def connect(self, *args):
        self.connected = True

    def disconnect(self):
        self.connected = False

    def send(self, frame):
        if self.callback is not None:
            self.callback(frame)

    def subscribe(self, callback):
        self.callback = callback


def test_frame_defaults_to_eight_zero_bytes():
    frame = Frame(0x123)
    assert frame.data == bytes(8)
    assert frame.flags == 0
    assert frame.dlc == 0


def test_frame_pads_short_data():
    frame = Frame(0x10, 0, 2, b"\x01\x02")
    assert frame.data == b"\x01\x02" + bytes(6)


def test_frame_rejects_long_data():
    with pytest.raises(ValueError):
        Frame(0x10, 0, 9, bytes(9))


def test_bus_is_abstract():
    with pytest.raises(TypeError):
        Bus()


def test_concrete_bus_round_trip():
    bus = LoopBus()
    received = []
    bus.connect()
    bus.subscribe(received.append)
    frame = Frame(0x181, 0, 8, bytes(range(8)))
    bus.send(frame)
    bus.disconnect()
    assert received == [frame]
    assert bus.connected is False