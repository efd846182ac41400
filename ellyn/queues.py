"""Queue interface and a bounded blocking linked queue."""

from __future__ import annotations

import abc
import collections
import threading
from typing import Deque, Generic, TypeVar

__all__ = ["Queue", "LinkedQueue"]

T = TypeVar("T")


class Queue(abc.ABC, Generic[T]):
    """A FIFO queue.

    ``enqueue`` returns whether the value was accepted. ``dequeue`` returns the
    oldest value; non-blocking implementations raise ``IndexError`` when empty.
    """

    @abc.abstractmethod
    def enqueue(self, value: T) -> bool:
        ...

    @abc.abstractmethod
    def dequeue(self) -> T:
        ...


class LinkedQueue(Queue[T]):
    """A blocking FIFO queue; ``capacity <= 0`` means unbounded."""

    def __init__(self, capacity: int = 0) -> None:
        self._capacity = capacity if capacity > 0 else None
        self._items: Deque[T] = collections.deque()
        lock = threading.Lock()
        self._not_full = threading.Condition(lock)
        self._not_empty = threading.Condition(lock)

    def enqueue(self, value: T) -> bool:
        """Append ``value``, waiting while the queue is full."""
        with self._not_full:
            while self._capacity is not None and len(self._items) >= self._capacity:
                self._not_full.wait()
            self._items.append(value)
            self._not_empty.notify()
        return True

    def dequeue(self) -> T:
        """Remove and return the oldest value, waiting while the queue is empty."""
        with self._not_empty:
            while not self._items:
                self._not_empty.wait()
            value = self._items.popleft()
            self._not_full.notify()
        return value

    def __len__(self) -> int:
        with self._not_full:
            return len(self._items)