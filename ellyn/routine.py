"""Per-thread storage and a fixed-size worker pool."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Generic, List, Optional, TypeVar

from ellyn.queues import LinkedQueue

__all__ = [
    "RoutineLocal",
    "RoutinePool",
    "get_routine_id",
    "get_routine_ctx",
    "set_routine_ctx",
]

T = TypeVar("T")

_logger = logging.getLogger(__name__)
_ctx_slot = threading.local()


def get_routine_id() -> int:
    """An identifier of the calling thread."""
    return threading.get_ident()


def get_routine_ctx() -> Optional[Any]:
    """The context object bound to the calling thread, or ``None``."""
    return getattr(_ctx_slot, "ctx", None)


def set_routine_ctx(ctx: Optional[Any]) -> None:
    """Bind ``ctx`` to the calling thread; ``None`` clears it."""
    _ctx_slot.ctx = ctx


_UNSET = object()


class RoutineLocal(Generic[T]):
    """A value slot with a separate value for each thread."""

    def __init__(self) -> None:
        self._local = threading.local()

    def set(self, value: T) -> None:
        self._local.value = value

    def get(self, default: Optional[T] = None) -> Optional[T]:
        value = getattr(self._local, "value", _UNSET)
        return default if value is _UNSET else value

    def is_set(self) -> bool:
        return hasattr(self._local, "value")

    def clear(self) -> None:
        self._local.__dict__.pop("value", None)


_STOP = object()


class RoutinePool:
    """Runs submitted callables on ``routine_num`` worker threads.

    With ``ignore_panic`` a failing task is silently dropped; otherwise the
    failure is logged. Either way the worker keeps running.
    """

    def __init__(self, routine_num: int, ignore_panic: bool = False) -> None:
        if routine_num <= 0:
            raise ValueError("routine_num must be positive")
        self._queue: LinkedQueue[Any] = LinkedQueue(0)
        self._routine_num = routine_num
        self._ignore_panic = ignore_panic
        self._closed = False
        self._workers: List[threading.Thread] = []
        for _ in range(routine_num):
            worker = threading.Thread(target=self._run, daemon=True)
            worker.start()
            self._workers.append(worker)

    def _run(self) -> None:
        while True:
            task = self._queue.dequeue()
            if task is _STOP or self._closed:
                return
            try:
                task()
            except Exception:
                if not self._ignore_panic:
                    _logger.exception("routine pool task failed")

    def submit(self, task: Callable[[], Any]) -> None:
        if self._closed:
            raise RuntimeError("routine pool has closed")
        self._queue.enqueue(task)

    def shutdown(self) -> None:
        """Stop the workers; tasks not yet started are dropped."""
        if self._closed:
            return
        self._closed = True
        for _ in self._workers:
            self._queue.enqueue(_STOP)

    def __enter__(self) -> "RoutinePool":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.shutdown()