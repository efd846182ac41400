"""Call graphs: method nodes and caller-to-callee edges."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from ellyn import ctime
from ellyn.linked_list import LinkedList
from ellyn.lru_cache import Recyclable

__all__ = ["Node", "Graph", "GraphGroup", "to_edge", "split_edge"]

_UINT32_MASK = 0xFFFFFFFF


def to_edge(from_id: int, to_id: int) -> int:
    """Pack an edge: caller in the high 32 bits, callee in the low 32 bits."""
    return ((from_id & _UINT32_MASK) << 32) | (to_id & _UINT32_MASK)


def split_edge(edge: int) -> Tuple[int, int]:
    """Unpack an edge into ``(from_id, to_id)``."""
    return (edge >> 32) & _UINT32_MASK, edge & _UINT32_MASK


def _now_millis() -> int:
    return int(ctime.current_time().timestamp() * 1000)


@dataclass
class Node:
    """A method in a graph; repeated calls share one node and keep the first call's data."""

    method_id: int = 0
    recursion: bool = False
    cost: int = 0
    blocks: List[bool] = field(default_factory=list)
    args: Optional[List[str]] = None
    results: Optional[List[str]] = None

    def reset(self) -> None:
        self.recursion = False
        self.cost = 0
        self.blocks = []
        self.args = None
        self.results = None


@dataclass
class Graph:
    """A call graph of one trace.

    ``time`` is in milliseconds; ``origin`` is the packed edge from the method
    that started this graph asynchronously, if any.
    """

    id: int = 0
    time: int = field(default_factory=_now_millis)
    origin: Optional[int] = None
    nodes: Dict[int, Node] = field(default_factory=dict)
    edges: Set[int] = field(default_factory=set)

    def add_edge(self, from_id: int, to_id: int) -> None:
        self.edges.add(to_edge(from_id, to_id))

    def reset(self) -> None:
        self.origin = None
        for node in self.nodes.values():
            node.reset()
        self.nodes.clear()
        self.edges.clear()


class GraphGroup(Recyclable):
    """Graphs sharing one trace id, e.g. from asynchronous branches."""

    def __init__(self) -> None:
        self._list: LinkedList[Graph] = LinkedList()

    def add(self, graph: Graph) -> None:
        self._list.add(graph)

    def graphs(self) -> List[Graph]:
        return self._list.values()

    def recycle(self) -> None:
        for graph in self._list.values():
            graph.reset()