"""A thread-safe LRU cache whose evicted values are recycled."""

from __future__ import annotations

import abc
import collections
import threading
from typing import Callable, Generic, Hashable, List, Optional, OrderedDict, TypeVar

__all__ = ["Recyclable", "LRUCache"]


class Recyclable(abc.ABC):
    """A value that can release its resources when dropped from a cache."""

    @abc.abstractmethod
    def recycle(self) -> None:
        ...


K = TypeVar("K", bound=Hashable)
V = TypeVar("V", bound=Recyclable)


class LRUCache(Generic[K, V]):
    """Least-recently-used cache; values leaving the cache are recycled."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("cache capacity must be positive")
        self._capacity = capacity
        self._lock = threading.Lock()
        # Most recently used entry is at the end.
        self._table: OrderedDict[K, V] = collections.OrderedDict()

    def _get(self, key: K) -> Optional[V]:
        if key not in self._table:
            return None
        self._table.move_to_end(key)
        return self._table[key]

    def _set(self, key: K, value: V) -> None:
        if key not in self._table and len(self._table) >= self._capacity:
            _, evicted = self._table.popitem(last=False)
            evicted.recycle()
        self._table[key] = value
        self._table.move_to_end(key)

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        with self._lock:
            if key not in self._table:
                return default
            return self._get(key)

    def get_with_default(self, key: K, create_default: Callable[[], V]) -> V:
        """Return the cached value, creating and caching one if absent."""
        with self._lock:
            if key in self._table:
                return self._get(key)  # type: ignore[return-value]
            value = create_default()
            self._set(key, value)
            return value

    def set(self, key: K, value: V) -> None:
        with self._lock:
            self._set(key, value)

    def remove(self, key: K) -> None:
        """Drop ``key`` and recycle its value; raises ``KeyError`` if absent."""
        with self._lock:
            value = self._table.pop(key)
        value.recycle()

    def values(self) -> List[V]:
        """Values from most to least recently used."""
        with self._lock:
            return list(reversed(self._table.values()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._table)