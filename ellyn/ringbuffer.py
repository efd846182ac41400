"""A bounded, non-blocking FIFO buffer with power-of-two capacity."""

from __future__ import annotations

import collections
import threading
from typing import Deque, TypeVar

from ellyn.bitmap import round_to_power_of_two
from ellyn.queues import Queue

__all__ = ["RingBuffer"]

T = TypeVar("T")


class RingBuffer(Queue[T]):
    """A fixed-size FIFO buffer.

    ``enqueue`` returns ``False`` when the buffer is full; ``dequeue`` raises
    ``IndexError`` when it is empty. Neither call ever waits.
    """

    def __init__(self, capacity: int) -> None:
        size = round_to_power_of_two(capacity)
        if size <= 0:
            raise ValueError("ring buffer capacity must be positive")
        self._capacity = size
        self._items: Deque[T] = collections.deque()
        self._lock = threading.Lock()

    def capacity(self) -> int:
        """The number of slots, rounded up to a power of two."""
        return self._capacity

    def enqueue(self, value: T) -> bool:
        with self._lock:
            if len(self._items) >= self._capacity:
                return False
            self._items.append(value)
            return True

    def dequeue(self) -> T:
        with self._lock:
            if not self._items:
                raise IndexError("ring buffer is empty")
            return self._items.popleft()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)