"""A thread-safe append-only list with index removal."""

from __future__ import annotations

import threading
from typing import Generic, List, TypeVar

__all__ = ["LinkedList"]

T = TypeVar("T")


class LinkedList(Generic[T]):
    """An ordered, lock-protected collection."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._items: List[T] = []

    def add(self, value: T) -> None:
        with self._lock:
            self._items.append(value)

    def values(self) -> List[T]:
        with self._lock:
            return list(self._items)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def is_empty(self) -> bool:
        with self._lock:
            return not self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def remove(self, index: int) -> None:
        """Remove the item at ``index``; out-of-range indexes are ignored."""
        with self._lock:
            if 0 <= index < len(self._items):
                del self._items[index]