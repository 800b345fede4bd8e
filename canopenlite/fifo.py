"""Circular byte FIFO with an alternate read cursor."""

from __future__ import annotations

from typing import Iterable

from .crc import Crc16


class Fifo:
    """Ring buffer; one slot is always kept free to tell full from empty."""

    def __init__(self, size: int) -> None:
        if size < 1:
            raise ValueError("fifo size must be at least 1")
        self._buffer = bytearray(size)
        self._write_pos = 0
        self._read_pos = 0
        self._alt_read_pos = 0

    def _advance(self, pos: int) -> int:
        pos += 1
        return 0 if pos == len(self._buffer) else pos

    def reset(self) -> None:
        """Empty the fifo."""
        self._read_pos = 0
        self._write_pos = 0

    def space(self) -> int:
        """Number of bytes that can still be written."""
        left = self._read_pos - self._write_pos - 1
        if left < 0:
            left += len(self._buffer)
        return left

    def occupied(self) -> int:
        """Number of bytes waiting to be read."""
        used = self._write_pos - self._read_pos
        if used < 0:
            used += len(self._buffer)
        return used

    def write(self, data: Iterable[int] | None, crc: Crc16 | None = None) -> int:
        """Write as many bytes as fit; return how many were written."""
        if data is None:
            return 0
        size = len(self._buffer)
        count = 0
        for byte in data:
            following = self._write_pos + 1
            if following == self._read_pos or (following == size and self._read_pos == 0):
                break
            self._buffer[self._write_pos] = byte
            count += 1
            if crc is not None:
                crc.single(byte)
            self._write_pos = 0 if following == size else following
        return count

    def read(self, size: int) -> bytes:
        """Read and remove up to size bytes."""
        out = bytearray()
        while len(out) < size and self._read_pos != self._write_pos:
            out.append(self._buffer[self._read_pos])
            self._read_pos = self._advance(self._read_pos)
        return bytes(out)

    def alt_begin(self, offset: int) -> int:
        """Start alternate reading offset bytes past the read position."""
        self._alt_read_pos = self._read_pos
        skipped = 0
        while skipped < offset and self._alt_read_pos != self._write_pos:
            self._alt_read_pos = self._advance(self._alt_read_pos)
            skipped += 1
        return skipped

    def alt_finish(self, crc: Crc16 | None = None) -> None:
        """Consume everything read by the alternate cursor, feeding crc if given."""
        if crc is None:
            self._read_pos = self._alt_read_pos
            return
        while self._read_pos != self._alt_read_pos:
            crc.single(self._buffer[self._read_pos])
            self._read_pos = self._advance(self._read_pos)

    def alt_read(self, size: int) -> bytes:
        """Read up to size bytes with the alternate cursor without consuming them."""
        out = bytearray()
        while len(out) < size and self._alt_read_pos != self._write_pos:
            out.append(self._buffer[self._alt_read_pos])
            self._alt_read_pos = self._advance(self._alt_read_pos)
        return bytes(out)

    def alt_occupied(self) -> int:
        """Bytes left ahead of the alternate cursor."""
        used = self._write_pos - self._alt_read_pos
        if used < 0:
            used += len(self._buffer)
        return used