"""CRC-16 CCITT (polynomial 0x1021) as used by SDO block transfers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

_POLYNOMIAL = 0x1021


def _build_table() -> tuple[int, ...]:
    table = []
    for i in range(256):
        crc = i << 8
        for _ in range(8):
            crc = ((crc << 1) ^ _POLYNOMIAL) if crc & 0x8000 else (crc << 1)
            crc &= 0xFFFF
        table.append(crc)
    return tuple(table)


_TABLE = _build_table()


@dataclass
class Crc16:
    """Running CRC-16 CCITT value."""

    value: int = 0

    def single(self, byte: int) -> int:
        """Add one byte and return the new CRC."""
        if not 0 <= byte <= 0xFF:
            raise ValueError(f"not a byte: {byte}")
        index = ((self.value >> 8) ^ byte) & 0xFF
        self.value = ((self.value << 8) & 0xFFFF) ^ _TABLE[index]
        return self.value

    def block(self, data: Iterable[int]) -> int:
        """Add a sequence of bytes and return the new CRC."""
        for byte in data:
            self.single(byte)
        return self.value

    def __int__(self) -> int:
        return self.value