"""The tracing agent: per-thread call stacks, graph building and graph collection."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

from ellyn.config import Configuration, load_config
from ellyn.context import (
    DISCARDED_CTX,
    EllynCtx,
    clear_ellyn_ctx,
    get_ellyn_ctx,
    set_ellyn_ctx,
)
from ellyn.graph import Graph, GraphGroup, Node, to_edge
from ellyn.guid import GuidGenerator
from ellyn.lru_cache import LRUCache
from ellyn.meta import MetaData
from ellyn.params import encode_vars
from ellyn.ringbuffer import RingBuffer
from ellyn.sampling import RandomSampling

__all__ = ["Collector", "Agent", "init_agent"]

_logger = logging.getLogger(__name__)

_BUFFER_CAPACITY = 2048
_DISPLAY_CACHE_SIZE = 1024


class Collector:
    """Buffers finished graphs and consumes them.

    Unless ``conf.no_demo`` is set, consumed graphs are kept in an LRU cache,
    grouped by trace id, for display; otherwise they are reset and dropped.
    """

    def __init__(self, conf: Configuration, capacity: int = _BUFFER_CAPACITY) -> None:
        self.conf = conf
        self._buffer: RingBuffer[Graph] = RingBuffer(capacity)
        self._cache: LRUCache[int, GraphGroup] = LRUCache(_DISPLAY_CACHE_SIZE)
        self._count = 0
        self._count_lock = threading.Lock()
        self._stop = threading.Event()
        self._worker: Optional[threading.Thread] = None

    def add(self, graph: Graph) -> bool:
        """Queue ``graph``; returns ``False`` if the buffer is full and it was dropped."""
        return self._buffer.enqueue(graph)

    def _consume(self, graph: Graph) -> None:
        with self._count_lock:
            self._count += 1
        if not self.conf.no_demo:
            _logger.info(
                "Code:g_collect|n:%d|e:%d|c:%s",
                len(graph.nodes),
                len(graph.edges),
                "Y" if graph.origin is not None else "N",
            )
            self._cache.get_with_default(graph.id, GraphGroup).add(graph)
        else:
            graph.reset()

    def drain(self) -> int:
        """Consume every queued graph; returns how many were consumed."""
        consumed = 0
        while True:
            try:
                graph = self._buffer.dequeue()
            except IndexError:
                return consumed
            self._consume(graph)
            consumed += 1

    def _run(self) -> None:
        while not self._stop.is_set():
            if self.drain() == 0:
                self._stop.wait(0.001)

    def start(self) -> None:
        """Consume graphs on a background thread until :meth:`stop`."""
        if self._worker is not None and self._worker.is_alive():
            return
        self._stop.clear()
        self._worker = threading.Thread(target=self._run, daemon=True)
        self._worker.start()

    def stop(self) -> None:
        self._stop.set()
        if self._worker is not None:
            self._worker.join()
            self._worker = None

    def graph_count(self) -> int:
        """The number of graphs consumed so far."""
        with self._count_lock:
            return self._count

    def display_groups(self) -> List[GraphGroup]:
        """Cached graph groups, most recently used first."""
        return self._cache.values()

    def display_group(self, graph_id: int) -> Optional[GraphGroup]:
        return self._cache.get(graph_id)


class Agent:
    """The calls that instrumented code makes to record call graphs and coverage."""

    def __init__(self, meta: MetaData, conf: Configuration) -> None:
        self.meta = meta
        self.conf = conf
        self.sampling = RandomSampling(conf.sampling_rate)
        self.id_generator = GuidGenerator()
        self.global_covered: List[bool] = [False] * len(meta.blocks)
        self.collector = Collector(conf)

    def init_ctx(self, trace_id: int, from_method: int) -> None:
        """Bind a context for an asynchronous branch of trace ``trace_id``.

        A ``trace_id`` of 0 means the parent was not sampled.
        """
        if trace_id == 0:
            set_ellyn_ctx(DISCARDED_CTX)
            return
        ctx = EllynCtx()
        ctx.id = trace_id
        ctx.g = Graph(id=trace_id)
        ctx.g.origin = to_edge(from_method, 0)
        set_ellyn_ctx(ctx)

    def get_ctx(self) -> Tuple[EllynCtx, bool, Optional[Callable[[], None]]]:
        """``(ctx, collect, cleaner)`` for the calling thread, creating a context if needed.

        ``cleaner`` is set only when a discarded context was just bound; calling it
        unbinds it.
        """
        ctx = get_ellyn_ctx()
        if ctx is None:
            if not self.sampling.hit():
                set_ellyn_ctx(DISCARDED_CTX)
                return DISCARDED_CTX, False, clear_ellyn_ctx
            ctx = EllynCtx()
            trace_id = self.id_generator.gen_guid()
            ctx.id = trace_id
            ctx.g = Graph(id=trace_id)
            set_ellyn_ctx(ctx)
        return ctx, ctx is not DISCARDED_CTX, None

    def push(
        self,
        ctx: EllynCtx,
        go_ctx: Any,
        method_id: int,
        params: Optional[Sequence[Any]],
    ) -> None:
        """Record entry into ``method_id``; only the first call's arguments are kept."""
        stack = ctx.stack
        graph = ctx.g
        if stack is None or graph is None:
            raise ValueError("context is not collecting")
        if graph.origin is not None and stack.is_empty():
            graph.origin |= method_id
        if not stack.push(method_id):
            return
        node = graph.nodes.get(method_id)
        if node is None:
            node = Node(method_id=method_id, blocks=self.meta.block_flags(method_id))
            if not self.conf.no_args:
                node.args = encode_vars(params or ())
            graph.nodes[method_id] = node
        stack.set_top_extra(node)

    def pop(self, ctx: EllynCtx, results: Optional[Sequence[Any]]) -> None:
        """Record return from the method on top of the stack."""
        stack = ctx.stack
        graph = ctx.g
        if stack is None or graph is None:
            raise ValueError("context is not collecting")
        popped, node = stack.pop_with_extra()
        has_caller = not stack.is_empty()
        caller = stack.top() if has_caller else None
        if has_caller and caller == popped:
            # Still inside a recursion of the same method.
            if not node.recursion:
                node.recursion = True
                graph.add_edge(popped, popped)
            return
        if not self.conf.no_args and node.results is None:
            node.results = encode_vars(results or ())
        if has_caller:
            graph.add_edge(caller, popped)
        else:
            self.collector.add(graph)
            if ctx.auto_clear:
                ctx.recycle()

    def mark(self, ctx: EllynCtx, block_offset: int, block_id: int) -> None:
        """Mark a block of the current method as covered."""
        stack = ctx.stack
        if stack is None:
            raise ValueError("context is not collecting")
        node = stack.top_extra()
        if node is None:
            raise IndexError("no method on the stack")
        node.blocks[block_offset] = True
        self.global_covered[block_id] = True


def init_agent(meta_dir: Union[str, Path]) -> Agent:
    """Load metadata and configuration from ``meta_dir`` and start an agent."""
    meta = MetaData.load(meta_dir)
    conf = load_config(meta_dir)
    _logger.info(
        "packages:%d|files:%d|methods:%d|blocks:%d",
        len(meta.packages),
        len(meta.files),
        len(meta.methods),
        len(meta.blocks),
    )
    agent = Agent(meta, conf)
    agent.collector.start()
    return agent