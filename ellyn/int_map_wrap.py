"""Read-only int-keyed mapping that filters lookups through a bitmap."""

from __future__ import annotations

from typing import Generic, Mapping, Optional, TypeVar

from ellyn.bitmap import BitMap

__all__ = ["IntMapWrap"]

T = TypeVar("T")


class IntMapWrap(Generic[T]):
    """Wraps a dict with int keys; misses are answered from a bitmap without a dict lookup."""

    def __init__(self, data: Mapping[int, T]) -> None:
        self._data = dict(data)
        if self._data:
            self._min_key = min(self._data)
            self._max_key = max(self._data)
            self._flags: Optional[BitMap] = BitMap(self._max_key - self._min_key + 1)
            for key in self._data:
                self._flags.set(key - self._min_key)
        else:
            self._min_key = 0
            self._max_key = -1
            self._flags = None

    def get(self, key: int, default: Optional[T] = None) -> Optional[T]:
        if key not in self:
            return default
        return self._data[key]

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, int) or self._flags is None:
            return False
        if key > self._max_key or key < self._min_key:
            return False
        return self._flags.get(key - self._min_key)