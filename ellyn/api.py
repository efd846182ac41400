"""Public API for reading the current trace, and the agent-backed implementation."""

from __future__ import annotations

import abc
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Optional, Set

if TYPE_CHECKING:
    from ellyn.agent import Agent

__all__ = [
    "ApiPos",
    "ApiNode",
    "ApiGraph",
    "EllynApi",
    "AgentProxy",
    "AgentApi",
    "AGENT",
    "init",
]


@dataclass
class ApiPos:
    line: int = 0
    column: int = 0
    offset: int = 0


@dataclass
class ApiNode:
    method_id: int
    method_name: str
    file: str
    package: str
    begin: ApiPos
    end: ApiPos


@dataclass
class ApiGraph:
    """A trace: nodes by method id and packed ``caller << 32 | callee`` edges."""

    nodes: Dict[int, ApiNode] = field(default_factory=dict)
    edges: Set[int] = field(default_factory=set)


class EllynApi(abc.ABC):
    """Access to the trace of the calling thread."""

    @abc.abstractmethod
    def set_auto_clear(self, auto: bool) -> None:
        """Whether the context is cleared once the trace is collected."""

    @abc.abstractmethod
    def get_graph(self) -> Optional[ApiGraph]:
        """The current trace; requires auto clear to be off to see finished calls."""

    @abc.abstractmethod
    def get_graph_id(self) -> int:
        ...

    @abc.abstractmethod
    def clear_ctx(self) -> None:
        ...

    @abc.abstractmethod
    def get_graph_cnt(self) -> int:
        """Traces collected since start."""


class AgentProxy(EllynApi):
    """Forwards to the first bound implementation; harmless defaults before that."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._target: Optional[EllynApi] = None

    def bind(self, target: EllynApi) -> None:
        """Bind ``target`` unless one is already bound."""
        with self._lock:
            if self._target is None:
                self._target = target

    def set_auto_clear(self, auto: bool) -> None:
        if self._target is not None:
            self._target.set_auto_clear(auto)

    def get_graph(self) -> Optional[ApiGraph]:
        if self._target is not None:
            return self._target.get_graph()
        return None

    def get_graph_id(self) -> int:
        if self._target is not None:
            return self._target.get_graph_id()
        return 0

    def clear_ctx(self) -> None:
        if self._target is not None:
            self._target.clear_ctx()

    def get_graph_cnt(self) -> int:
        if self._target is not None:
            return self._target.get_graph_cnt()
        return 0


AGENT = AgentProxy()


def init(target: Optional[EllynApi]) -> None:
    """Bind ``target`` to :data:`AGENT`; ``None`` and later calls are ignored."""
    if target is None:
        return
    AGENT.bind(target)


class AgentApi(EllynApi):
    """:class:`EllynApi` backed by an :class:`~ellyn.agent.Agent`."""

    def __init__(self, agent: "Agent") -> None:
        self._agent = agent

    def get_graph_cnt(self) -> int:
        return self._agent.collector.graph_count()

    def clear_ctx(self) -> None:
        ctx, ok, _ = self._agent.get_ctx()
        if ok:
            ctx.recycle()

    def get_graph_id(self) -> int:
        ctx, ok, _ = self._agent.get_ctx()
        if not ok or ctx.g is None:
            return 0
        return ctx.g.id

    def set_auto_clear(self, auto: bool) -> None:
        ctx, ok, _ = self._agent.get_ctx()
        if ok:
            ctx.auto_clear = auto

    def get_graph(self) -> Optional[ApiGraph]:
        ctx, ok, _ = self._agent.get_ctx()
        if not ok or ctx.g is None:
            return None
        meta = self._agent.meta
        nodes: Dict[int, ApiNode] = {}
        for method_id, node in ctx.g.nodes.items():
            method = meta.methods[node.method_id]
            file = meta.files[method.file_id]
            pkg = meta.packages[method.package_id]
            nodes[method_id] = ApiNode(
                method_id=method_id,
                method_name=method.full_name,
                file=file.relative_path,
                package=pkg.path,
                begin=ApiPos(method.begin.line, method.begin.column, method.begin.offset),
                end=ApiPos(method.end.line, method.end.column, method.end.offset),
            )
        return ApiGraph(nodes=nodes, edges=set(ctx.g.edges))