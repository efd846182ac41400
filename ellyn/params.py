"""Encoding of collected arguments and results for display."""

from __future__ import annotations

import contextvars
from typing import Any, Iterable, List

from ellyn.jsonutils import get_codable_map, marshal

__all__ = ["NOT_COLLECTED", "NOT_COLLECTED_DISPLAY", "MARSHAL_FAILED", "encode_vars"]


class _NotCollected:
    __slots__ = ()

    def __repr__(self) -> str:
        return "NOT_COLLECTED"


NOT_COLLECTED = _NotCollected()
"""Placeholder passed instead of a value that is not collected."""

NOT_COLLECTED_DISPLAY = marshal("[NotCollected]")
MARSHAL_FAILED = marshal("[Marshal failed]")


def encode_vars(values: Iterable[Any]) -> List[str]:
    """JSON-encode each value; context objects become their key/value maps."""
    res: List[str] = []
    for item in values:
        if item is NOT_COLLECTED:
            res.append(NOT_COLLECTED_DISPLAY)
            continue
        value = item
        if isinstance(item, contextvars.Context):
            value = {var.name: val for var, val in item.items()}
        elif isinstance(item, dict):
            value = get_codable_map(item)
        try:
            res.append(marshal(value))
        except (TypeError, ValueError):
            res.append(MARSHAL_FAILED)
    return res