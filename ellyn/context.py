"""Per-thread tracing context: the simulated call stack and current graph."""

from __future__ import annotations

from typing import Optional, Tuple

from ellyn.graph import Graph
from ellyn.routine import get_routine_ctx, set_routine_ctx
from ellyn.stacks import Uint32Stack

__all__ = ["EllynCtx", "DISCARDED_CTX", "get_ellyn_ctx", "set_ellyn_ctx", "clear_ellyn_ctx"]


class EllynCtx:
    """State collected on one thread for one trace."""

    def __init__(self) -> None:
        self.auto_clear = True
        self.id = 0
        self.stack: Optional[Uint32Stack] = Uint32Stack()
        self.g: Optional[Graph] = None

    def snapshot(self) -> Tuple[int, int]:
        """``(trace id, id of the method on top of the stack or 0)``."""
        if self.stack is None or self.stack.is_empty():
            return self.id, 0
        return self.id, self.stack.top()

    def recycle(self) -> None:
        """Reset this context and unbind it from the calling thread."""
        if self.stack is not None:
            self.stack.clear()
        self.g = None
        self.auto_clear = True
        clear_ellyn_ctx()


def _discarded() -> EllynCtx:
    ctx = EllynCtx()
    ctx.stack = None
    ctx.auto_clear = False
    return ctx


DISCARDED_CTX = _discarded()
"""Bound to threads whose traffic is not sampled."""


def get_ellyn_ctx() -> Optional[EllynCtx]:
    """The context bound to the calling thread, or ``None``."""
    ctx = get_routine_ctx()
    return ctx if isinstance(ctx, EllynCtx) else None


def set_ellyn_ctx(ctx: EllynCtx) -> None:
    set_routine_ctx(ctx)


def clear_ellyn_ctx() -> None:
    set_routine_ctx(None)