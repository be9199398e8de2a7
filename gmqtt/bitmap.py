"""A fixed-size bitmap of up to 65535 bits."""

from __future__ import annotations

MAX_SIZE = 65535


class Bitmap:
    """A set of bits addressed by offset."""

    def __init__(self, size: int) -> None:
        if size == 0 or size >= MAX_SIZE:
            size = MAX_SIZE
        elif size % 8:
            size += 8 - size % 8
        self._size = size
        self._vals = bytearray((size >> 3) + 1)

    def size(self) -> int:
        """Return the number of addressable bits."""
        return self._size

    def set(self, offset: int, value: int) -> bool:
        """Set the bit at ``offset``; return False if it is out of range."""
        if offset > self._size:
            return False
        index, pos = offset >> 3, offset & 0x07
        if value == 0:
            self._vals[index] &= ~(1 << pos) & 0xFF
        else:
            self._vals[index] |= 1 << pos
        return True

    def get(self, offset: int) -> int:
        """Return the bit at ``offset``, or 0 if it is out of range."""
        if offset > self._size:
            return 0
        index, pos = offset >> 3, offset & 0x07
        return (self._vals[index] >> pos) & 0x01