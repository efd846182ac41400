"""JSON helpers."""

from __future__ import annotations

import dataclasses
import json
from typing import Any, Dict, Mapping

__all__ = ["marshal", "get_codable_map"]


def _default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    raise TypeError(f"value of type {type(value).__name__} is not JSON serializable")


def marshal(value: Any) -> str:
    """Compact JSON text of ``value``; raises ``TypeError`` if it cannot be encoded."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=_default)


def get_codable_map(mapping: Mapping[Any, Any]) -> Dict[str, Any]:
    """Keep only the entries whose keys can become JSON object keys, as strings.

    Keys with a ``marshal_text()`` method use its result; ``str`` and integer
    keys are kept; any other key is dropped.
    """
    res: Dict[str, Any] = {}
    for key, value in mapping.items():
        marshal_text = getattr(key, "marshal_text", None)
        if callable(marshal_text):
            text = marshal_text()
            str_key = text.decode("utf-8") if isinstance(text, bytes) else str(text)
        elif isinstance(key, str):
            str_key = key
        elif isinstance(key, int) and not isinstance(key, bool):
            str_key = str(key)
        else:
            continue
        res[str_key] = value
    return res