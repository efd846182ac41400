"""Mock rules: match calls by argument values and build substitute return values."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence

from ellyn.int_map_wrap import IntMapWrap
from ellyn.meta import MetaData

__all__ = ["MockRule", "Monkey"]

_TYPE_NAMES = {bool: "bool", int: "int", float: "float64", str: "string", bytes: "[]uint8"}


def _type_name(value: Any) -> str:
    return _TYPE_NAMES.get(type(value), type(value).__name__)


@dataclass
class MockRule:
    """Replace a method's results when its arguments match ``args``.

    A ``None`` entry in ``args`` matches anything.
    """

    rule_id: int
    method_id: int
    return_values: List[Any] = field(default_factory=list)
    args: List[Any] = field(default_factory=list)
    vars: List[str] = field(default_factory=list)


class Monkey:
    """Looks up mock rules for methods described by ``meta``."""

    def __init__(self, meta: MetaData, rules: Mapping[int, Sequence[MockRule]]) -> None:
        self.meta = meta
        self.rules = IntMapWrap({key: list(value) for key, value in rules.items()})

    def filter_mock_rule(self, method_id: int, *args: Any) -> Optional[MockRule]:
        """The first rule with an argument equal to the actual one of the declared type."""
        rules = self.rules.get(method_id)
        if rules is None:
            return None
        arg_list = self.meta.methods[method_id].args_list
        for rule in rules:
            for i in range(len(arg_list)):
                actual = args[i]
                if _type_name(actual) != arg_list.type_of(i):
                    continue
                expected = rule.args[i]
                if expected is None:
                    continue
                if actual == expected:
                    return rule
        return None

    def build_return(
        self, method_id: int, rule: MockRule, raw_returns: Sequence[Any]
    ) -> List[Any]:
        """Results for the method from ``rule``; only integer values of integer type are set."""
        return_list = self.meta.methods[method_id].return_list
        values: List[Any] = [None] * len(return_list)
        for i in range(len(return_list)):
            return_type = return_list.type_of(i)
            raw = rule.return_values[i]
            if isinstance(raw, bool) or not isinstance(raw, int):
                continue
            if return_type in ("int", "int64"):
                values[i] = raw
        return values