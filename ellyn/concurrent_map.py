"""A segmented, lock-striped mapping safe for use from many threads."""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, Generic, Hashable, List, Optional, TypeVar

from ellyn.bitmap import round_to_power_of_two

__all__ = ["ConcurrentMap", "number_key_map"]

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class _Segment(Generic[K, V]):
    __slots__ = ("lock", "entries")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.entries: Dict[K, V] = {}


class ConcurrentMap(Generic[K, V]):
    """A mapping split into a power-of-two number of independently locked segments."""

    def __init__(self, segments: int, hasher: Callable[[K], int]) -> None:
        count = round_to_power_of_two(max(segments, 1))
        self._mask = count - 1
        self._segments: List[_Segment[K, V]] = [_Segment() for _ in range(count)]
        self._hasher = hasher

    def _segment(self, key: K) -> _Segment[K, V]:
        return self._segments[self._hasher(key) & self._mask]

    def store(self, key: K, value: V) -> None:
        seg = self._segment(key)
        with seg.lock:
            seg.entries[key] = value

    def load(self, key: K, default: Optional[V] = None) -> Optional[V]:
        seg = self._segment(key)
        with seg.lock:
            return seg.entries.get(key, default)

    def delete(self, key: K) -> None:
        seg = self._segment(key)
        with seg.lock:
            seg.entries.pop(key, None)

    def __contains__(self, key: object) -> bool:
        seg = self._segment(key)  # type: ignore[arg-type]
        with seg.lock:
            return key in seg.entries

    def __len__(self) -> int:
        return sum(len(seg.entries) for seg in self._segments)

    def values(self) -> List[V]:
        res: List[V] = []
        for seg in self._segments:
            with seg.lock:
                res.extend(seg.entries.values())
        return res

    def sorted_values(self, key: Callable[[V], Any]) -> List[V]:
        return sorted(self.values(), key=key)


def number_key_map(segments: int) -> ConcurrentMap[Any, Any]:
    """A :class:`ConcurrentMap` whose keys are numbers hashed by their integer value."""
    return ConcurrentMap(segments, lambda k: int(k))