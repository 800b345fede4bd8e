# canopenlite

A lightweight CANopen toolkit for Python with no dependencies outside the
standard library.

## What is in it

- `canopenlite.bus`: the `Frame` dataclass (`id`, `flags`, `dlc`, `data`).
  `data` is always padded to eight bytes. The module also holds the abstract
  `Bus` interface with `connect`, `disconnect`, `send` and `subscribe`, and the
  CAN error flag constants (`CAN_ERROR_TX_WARNING` and the others).
- `canopenlite.bus_manager`: `BusManager` wraps a `Bus`. It routes received
  frames to callables subscribed per 11-bit identifier and sends frames. It also
  reports the CAN error flags through `error()`.
- `canopenlite.emergency`: `Emergency` is the EMCY service of one node. It keeps
  the error status bits and queues emergencies in a history FIFO. It transmits
  them from `process()` while respecting the inhibit time. It also offers raw
  byte hooks for the objects 0x1003, 0x1014 and 0x1015 and for the status bits.
- `canopenlite.emergency_codes`: the `ErrorRegister`, `ErrorCode` and
  `ErrorStatus` enums, plus `error_code_description()` and
  `error_status_description()`.
- `canopenlite.heartbeat`: `HeartbeatConsumer` monitors remote nodes as set up
  in object 0x1016. It reports `HeartbeatEvent.BOOT`, `STARTED`, `TIMEOUT` and
  `CHANGED` to a callback. The module also defines the `NmtState` and
  `HeartbeatState` enums.
- `canopenlite.configurator`: `NodeConfigurator` reads and writes a remote
  node's standard objects through an SDO client you supply. These cover
  identity, manufacturer strings, heartbeat consumer and producer, SYNC and
  TIME. Aborts are raised as `SdoAbort`.
- `canopenlite.crc`: `Crc16`, the CRC-16 CCITT (polynomial 0x1021).
- `canopenlite.fifo`: `Fifo`, a circular byte buffer with an alternate read
  cursor.
- `canopenlite.ids`: `is_id_restricted()` tells whether a CAN id is reserved
  by CANopen.
- `canopenlite.errors`: `CanopenError` and its subclasses, such as
  `IllegalArgumentError`, `InvalidStateError` and `OdParametersError`.

## Installation

```
pip install canopenlite
```

Running the tests:

```
pip install "canopenlite[test]"
pytest
```

## Examples

### A bus and frame dispatch

Any class implementing `Bus` can be used. Here is an in-memory loopback:

```python
from canopenlite.bus import Bus, Frame
from canopenlite.bus_manager import BusManager


class LoopbackBus(Bus):
    def __init__(self):
        self._callback = None

    def connect(self, *args):
        pass

    def disconnect(self):
        pass

    def send(self, frame):
        if self._callback is not None:
            self._callback(frame)

    def subscribe(self, callback):
        self._callback = callback


bus = LoopbackBus()
manager = BusManager(bus)
bus.subscribe(manager.handle)

manager.subscribe(0x181, 0x7FF, False, lambda frame: print(hex(frame.id), frame.data))
manager.send(Frame(0x181, 0, 2, b"\x01\x02"))
```

### Emergencies

```python
from canopenlite.emergency import Emergency
from canopenlite.emergency_codes import ErrorCode, ErrorStatus

emcy = Emergency(manager, node_id=0x10, cob_id=0x80, history_size=8)
emcy.callback = lambda can_id, code, register, bit, info: print(hex(code), bit)

emcy.error_report(ErrorStatus.GENERIC_ERROR, ErrorCode.GENERIC, 0)
emcy.process(True, 1000)  # sends on CAN id 0x90; own messages reach the callback with id 0
emcy.is_error(ErrorStatus.GENERIC_ERROR)  # True
emcy.read_history(0)  # b"\x01"
```

### Heartbeat consumer

Each consumer value holds the node id in bits 16 to 23 and the period in
milliseconds in bits 0 to 15:

```python
from canopenlite.heartbeat import HeartbeatConsumer, NmtState

consumer = HeartbeatConsumer(manager, emcy, [(0x20 << 16) | 500])
consumer.on_event(lambda event, node_id, index, state: print(event.name, node_id, state))

consumer.process(True, 0)  # the first call only records the local NMT state
manager.send(Frame(0x720, 0, 1, bytes([NmtState.OPERATIONAL])))
consumer.process(True, 1000)  # STARTED, then CHANGED to OPERATIONAL
```

### Configuring a remote node

`NodeConfigurator` needs an object with these two methods:

- `read_raw(node_id, index, subindex) -> bytes`
- `write_raw(node_id, index, subindex, data, force_segmented)`

```python
from canopenlite.configurator import NodeConfigurator

config = NodeConfigurator(0x20, client)
identity = config.read_identity()
config.write_heartbeat_period(1000)
config.producer_enable_sync()
```

### CRC and FIFO

```python
from canopenlite.crc import Crc16
from canopenlite.fifo import Fifo

crc = Crc16()
crc.single(10)  # 0xA14A

fifo = Fifo(100)
fifo.write(b"12345")
fifo.read(3)  # b"123"
```

## What it does not do

- It ships no CAN drivers. You provide the `Bus` implementation for your
  hardware or test setup.
- It has no SDO client or server, no object dictionary, and no EDS parsing.
  `NodeConfigurator` relies on a client you supply. The EMCY and heartbeat
  object hooks take and return raw bytes for you to connect to your own
  dictionary.
- It does not configure PDOs. It has no NMT master, SYNC or TIME producer, and
  no network scan.
- It has no command-line tool and no gateway server.