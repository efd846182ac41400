"""A fixed-capacity bitmap backed by 64-bit slots."""

from __future__ import annotations

__all__ = ["BitMap", "round_to_power_of_two"]

_SLOT_SHIFT = 6
_SLOT_MASK = (1 << _SLOT_SHIFT) - 1
_UINT64_MASK = (1 << 64) - 1


def round_to_power_of_two(size: int) -> int:
    """Round ``size`` up to the next power of two, wrapping like a 64-bit unsigned value."""
    if size == 0:
        return 0
    return (1 << (size - 1).bit_length()) & _UINT64_MASK


class BitMap:
    """A set of bit positions in ``range(capacity)``."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("bitmap capacity must be positive")
        self.capacity = capacity
        self.slots = [0] * (((capacity - 1) >> _SLOT_SHIFT) + 1)
        self._size = 0

    def _check_pos(self, pos: int) -> None:
        if pos < 0 or pos >= self.capacity:
            raise IndexError("Position exceeds bitmap length")

    def set(self, pos: int) -> None:
        self._check_pos(pos)
        idx = pos >> _SLOT_SHIFT
        old = self.slots[idx]
        self.slots[idx] = old | (1 << (pos & _SLOT_MASK))
        if self.slots[idx] != old:
            self._size += 1

    def get_without_check(self, pos: int) -> bool:
        return bool(self.slots[pos >> _SLOT_SHIFT] & (1 << (pos & _SLOT_MASK)))

    def get(self, pos: int) -> bool:
        self._check_pos(pos)
        return self.get_without_check(pos)

    def clear(self, pos: int) -> None:
        self._check_pos(pos)
        idx = pos >> _SLOT_SHIFT
        old = self.slots[idx]
        self.slots[idx] = old & ~(1 << (pos & _SLOT_MASK))
        if self.slots[idx] != old:
            self._size -= 1

    def merge(self, other: "BitMap") -> None:
        """OR the bits of ``other`` into this bitmap; capacities must match."""
        if self.capacity != other.capacity:
            raise ValueError("inconsistent capacity cannot be merged")
        self.slots = [a | b for a, b in zip(self.slots, other.slots)]
        self._size = sum(bin(slot).count("1") for slot in self.slots)

    def __len__(self) -> int:
        return self._size