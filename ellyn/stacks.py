"""Stacks: a plain one, one that merges repeated frames, and a uint32 call stack."""

from __future__ import annotations

import abc
from typing import Any, Generic, List, Optional, Tuple, TypeVar

__all__ = ["Frame", "SimpleStack", "CompressedStack", "Uint32Stack"]

T = TypeVar("T")

_UINT32_MAX = 0xFFFFFFFF


class Frame(abc.ABC):
    """A value that a :class:`CompressedStack` can merge with an equal value on top."""

    @abc.abstractmethod
    def equals(self, other: "Frame") -> bool:
        ...

    @abc.abstractmethod
    def init(self) -> None:
        """Called when the frame is pushed as a new element."""

    @abc.abstractmethod
    def re_enter(self) -> None:
        """Called when an equal frame is pushed on top of this one."""


class SimpleStack(Generic[T]):
    """A LIFO stack; ``pop`` and ``top`` raise ``IndexError`` when empty."""

    def __init__(self) -> None:
        self._items: List[T] = []

    def push(self, value: T) -> bool:
        self._items.append(value)
        return True

    def pop(self) -> T:
        if not self._items:
            raise IndexError("pop from empty stack")
        return self._items.pop()

    def top(self) -> T:
        if not self._items:
            raise IndexError("top of empty stack")
        return self._items[-1]

    def __len__(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def clear(self) -> None:
        self._items.clear()


F = TypeVar("F", bound=Frame)


class _Element(Generic[F]):
    __slots__ = ("value", "count")

    def __init__(self, value: F) -> None:
        self.value = value
        self.count = 1


class CompressedStack(Generic[F]):
    """A stack of :class:`Frame` that stores consecutive equal pushes as one element."""

    def __init__(self) -> None:
        self._elements: List[_Element[F]] = []
        self._count = 0

    def push(self, value: F) -> bool:
        """Push ``value``; returns whether a new element was created."""
        self._count += 1
        if self._elements:
            top = self._elements[-1]
            if value.equals(top.value):
                top.value.re_enter()
                top.count += 1
                return False
        value.init()
        self._elements.append(_Element(value))
        return True

    def pop(self) -> F:
        if not self._elements:
            raise IndexError("pop from empty stack")
        top = self._elements[-1]
        top.count -= 1
        if top.count == 0:
            self._elements.pop()
        self._count -= 1
        return top.value

    def top(self) -> F:
        if not self._elements:
            raise IndexError("top of empty stack")
        return self._elements[-1].value

    def __len__(self) -> int:
        return self._count

    def is_empty(self) -> bool:
        return self._count == 0

    def clear(self) -> None:
        self._elements.clear()
        self._count = 0

    def frame_count(self) -> int:
        """The number of distinct stored elements."""
        return len(self._elements)


class Uint32Stack:
    """A stack of uint32 values where repeated pushes of the top value are counted.

    Each element also carries an arbitrary ``extra`` payload.
    """

    def __init__(self) -> None:
        # Each entry is [value, count, extra].
        self._items: List[List[Any]] = []

    def push(self, value: int) -> bool:
        """Push ``value``; returns whether a new element was created."""
        if not 0 <= value <= _UINT32_MAX:
            raise ValueError(f"value out of uint32 range: {value}")
        if self._items and self._items[-1][0] == value:
            self._items[-1][1] += 1
            return False
        self._items.append([value, 1, None])
        return True

    def pop(self) -> int:
        return self.pop_with_extra()[0]

    def pop_with_extra(self) -> Tuple[int, Any]:
        if not self._items:
            raise IndexError("pop from empty stack")
        entry = self._items[-1]
        if entry[1] == 1:
            self._items.pop()
        else:
            entry[1] -= 1
        return entry[0], entry[2]

    def top(self) -> int:
        return self.top_with_extra()[0]

    def top_with_extra(self) -> Tuple[int, Any]:
        if not self._items:
            raise IndexError("top of empty stack")
        entry = self._items[-1]
        return entry[0], entry[2]

    def is_empty(self) -> bool:
        return not self._items

    def clear(self) -> None:
        self._items.clear()

    def set_top_extra(self, extra: Any) -> None:
        if self._items:
            self._items[-1][2] = extra

    def top_extra(self) -> Optional[Any]:
        """The extra payload of the top element, or ``None`` when empty."""
        if self._items:
            return self._items[-1][2]
        return None