"""Lightweight CANopen toolkit: frame dispatch, EMCY, heartbeat consumer, node configuration, CRC and FIFO."""

__version__ = "0.1.0"