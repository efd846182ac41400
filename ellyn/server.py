"""Demo web service: browse collected traffic, call graphs and coverage over HTTP."""

from __future__ import annotations

import dataclasses
import datetime as _dt
import json
import logging
import mimetypes
import posixpath
import threading
import urllib.parse
import webbrowser
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ellyn.graph import Graph, Node, split_edge
from ellyn.meta import Block, MetaData, Method, Pos, VarDefList
from ellyn.source_tree import SourceNode, SourceTree

if TYPE_CHECKING:
    from ellyn.agent import Agent

__all__ = [
    "FE_PORT",
    "SOURCES_DIR",
    "SOURCES_FILE_EXT",
    "CoveredBlock",
    "VarItem",
    "TrafficNode",
    "Edge",
    "Traffic",
    "MethodInfo",
    "TargetInfo",
    "DemoService",
    "merge_graphs",
    "to_var_item_list",
    "transfer_node",
    "to_traffic",
]

_logger = logging.getLogger(__name__)

FE_PORT = 19898
SOURCES_DIR = "sources"
SOURCES_FILE_EXT = ".src"

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS, PUT, DELETE",
    "Access-Control-Allow-Headers": (
        "Accept, Content-Type, Content-Length, Accept-Encoding, X-CSRF-Token, Authorization"
    ),
}

Response = Tuple[int, str, bytes]


def _pos_dict(pos: Pos) -> Dict[str, int]:
    return {"offset": pos.offset, "line": pos.line, "column": pos.column}


def _block_dict(block: Optional[Block]) -> Optional[Dict[str, Any]]:
    if block is None:
        return None
    return {
        "Id": block.id,
        "FileId": block.file_id,
        "MethodId": block.method_id,
        "MethodOffset": block.method_offset,
        "Begin": _pos_dict(block.begin),
        "End": _pos_dict(block.end),
    }


def _method_dict(method: Method) -> Dict[str, Any]:
    return {
        "Id": method.id,
        "Name": method.name,
        "FullName": method.full_name,
        "FileId": method.file_id,
        "PackageId": method.package_id,
        "Blocks": [_block_dict(b) for b in method.blocks] or None,
        "BlockCnt": method.block_cnt,
        "Begin": _pos_dict(method.begin),
        "End": _pos_dict(method.end),
        "ArgsList": method.args_list.encode(),
        "ReturnList": method.return_list.encode(),
    }


def _jsonable(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


@dataclass
class CoveredBlock:
    begin: Pos
    end: Pos

    def to_dict(self) -> Dict[str, Any]:
        return {"begin": _pos_dict(self.begin), "end": _pos_dict(self.end)}


@dataclass
class VarItem:
    """One collected argument or result, with its declared name and type."""

    idx: int
    type: str
    name: str
    val: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"idx": self.idx, "type": self.type, "name": self.name, "val": self.val}


@dataclass
class TrafficNode:
    """A method node as shown to the front end."""

    id: str
    name: str
    file: str
    block_cnt: int
    begin: Pos
    end: Pos
    args_list: VarDefList
    return_list: VarDefList
    cost: int = 0
    covered_blocks: Optional[List[CoveredBlock]] = None
    covered_rate: float = 0.0
    has_err: bool = False
    args: Optional[List[VarItem]] = None
    returns: Optional[List[VarItem]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "file": self.file,
            "block_cnt": self.block_cnt,
            "begin": _pos_dict(self.begin),
            "end": _pos_dict(self.end),
            "covered_blocks": _jsonable(self.covered_blocks),
            "covered_rate": self.covered_rate,
            "has_err": self.has_err,
            "cost": self.cost,
            "args_list": self.args_list.encode(),
            "return_list": self.return_list.encode(),
            "args": _jsonable(self.args),
            "returns": _jsonable(self.returns),
        }


@dataclass
class Edge:
    source: str
    target: str

    def to_dict(self) -> Dict[str, str]:
        return {"source": self.source, "target": self.target}


@dataclass
class Traffic:
    """One trace; the id is a string so that large ids survive in JavaScript."""

    id: str
    time: _dt.datetime
    nodes: List[TrafficNode]
    edges: List[Edge]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "time": self.time.isoformat(),
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


@dataclass
class MethodInfo:
    method: Method
    file: str
    package: str

    def to_dict(self) -> Dict[str, Any]:
        return {"method": _method_dict(self.method), "file": self.file, "package": self.package}


@dataclass
class TargetInfo:
    """Line totals of the instrumented project and how many lines were covered."""

    total_line_num: int = 0
    target_line_num: int = 0
    covered_line_num: int = 0
    covered_rate: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalLineNum": self.total_line_num,
            "targetLineNum": self.target_line_num,
            "coveredLineNum": self.covered_line_num,
            "coveredRate": self.covered_rate,
        }


def merge_graphs(graphs: Sequence[Graph]) -> Optional[Graph]:
    """Merge graphs of one trace into one.

    Nodes of the same method merge their block coverage and add their costs;
    an origin edge is kept when its caller is among the merged nodes. The
    inputs are left unchanged.
    """
    if not graphs:
        return None
    if len(graphs) == 1:
        return graphs[0]
    res = Graph(id=graphs[0].id)
    origins = set()
    for graph in graphs:
        for node_id, node in graph.nodes.items():
            old = res.nodes.get(node_id)
            if old is None:
                res.nodes[node_id] = dataclasses.replace(node, blocks=list(node.blocks))
            else:
                for i, flag in enumerate(node.blocks):
                    old.blocks[i] = old.blocks[i] or flag
                old.cost += node.cost
        res.edges.update(graph.edges)
        if graph.origin is not None:
            origins.add(graph.origin)
        res.time = min(res.time, graph.time)
    for origin in origins:
        from_id, _ = split_edge(origin)
        if from_id in res.nodes:
            res.edges.add(origin)
    return res


def to_var_item_list(
    values: Optional[Sequence[Any]], def_list: VarDefList
) -> Optional[List[VarItem]]:
    """Pair collected values with their declared names and types; ``None`` when nothing."""
    if values is None:
        return None
    items = [
        VarItem(idx=i, type=def_list.type_of(i), name=def_list.name_of(i), val=val)
        for i, val in enumerate(values)
    ]
    return items or None


def transfer_node(node: Node, with_detail: bool, meta: MetaData) -> TrafficNode:
    """The display form of ``node``; with detail it carries coverage and values."""
    method = meta.methods[node.method_id]
    file = meta.files[method.file_id]
    item = TrafficNode(
        id=str(node.method_id),
        name=method.full_name,
        file=file.relative_path,
        block_cnt=method.block_cnt,
        begin=method.begin,
        end=method.end,
        cost=node.cost,
        args_list=method.args_list,
        return_list=method.return_list,
    )
    if with_detail:
        covered_num = 0
        covered: List[CoveredBlock] = []
        for block in method.blocks:
            if block is None:
                continue
            if node.blocks[block.method_offset]:
                covered_num += block.end.line - block.begin.line + 1
                covered.append(CoveredBlock(begin=block.begin, end=block.end))
        item.covered_blocks = covered or None
        item.covered_rate = covered_num / (method.end.line - method.begin.line + 1) * 100
        item.args = to_var_item_list(node.args, method.args_list)
        item.returns = to_var_item_list(node.results, method.return_list)
    return item


def to_traffic(graph: Graph, with_detail: bool, meta: MetaData) -> Traffic:
    """The display form of ``graph``, nodes and edges ordered by id."""
    nodes = [
        transfer_node(graph.nodes[key], with_detail, meta) for key in sorted(graph.nodes)
    ]
    edges = []
    for edge in sorted(graph.edges):
        from_id, to_id = split_edge(edge)
        edges.append(Edge(source=str(from_id), target=str(to_id)))
    time = _dt.datetime.fromtimestamp(graph.time / 1000).astimezone()
    return Traffic(id=str(graph.id), time=time, nodes=nodes, edges=edges)


def _query_val(query: Mapping[str, Any], key: str) -> int:
    raw = query.get(key, "")
    if isinstance(raw, (list, tuple)):
        raw = raw[0] if raw else ""
    text = str(raw)
    if not text.isdigit():
        raise ValueError(f"invalid query parameter {key}: {text!r}")
    return int(text)


class DemoService:
    """Answers the demo front end's API from an agent and its metadata directory."""

    def __init__(self, agent: "Agent", meta_dir: Union[str, Path]) -> None:
        self.agent = agent
        self.meta = agent.meta
        self.meta_dir = Path(meta_dir)
        self._routes: Dict[str, Callable[[Mapping[str, Any]], Any]] = {
            "/api/meta/methods": lambda q: self.meta_methods(),
            "/api/traffic/list": lambda q: self.traffic_list(),
            "/api/traffic/detail": lambda q: self.traffic_detail(_query_val(q, "id")),
            "/api/source/file": lambda q: self.source_file(_query_val(q, "id")),
            "/api/node/detail": lambda q: self.node_detail(
                _query_val(q, "graphId"), _query_val(q, "nodeId")
            ),
            "/api/source/tree": lambda q: self.source_tree(),
            "/api/target/info": lambda q: self.target_info(),
        }

    def meta_methods(self) -> List[MethodInfo]:
        return [
            MethodInfo(
                method=m,
                file=self.meta.files[m.file_id].relative_path,
                package=self.meta.packages[m.package_id].path,
            )
            for m in self.meta.methods
        ]

    def _merged(self, graph_id: int) -> Graph:
        group = self.agent.collector.display_group(graph_id)
        if group is None:
            raise KeyError(f"graph {graph_id} not found")
        graph = merge_graphs(group.graphs())
        if graph is None:
            raise KeyError(f"graph {graph_id} is empty")
        return graph

    def traffic_list(self) -> List[Traffic]:
        res = []
        for group in self.agent.collector.display_groups():
            graph = merge_graphs(group.graphs())
            if graph is not None:
                res.append(to_traffic(graph, False, self.meta))
        return res

    def traffic_detail(self, graph_id: int) -> Traffic:
        """The trace ``graph_id`` with coverage and values; ``KeyError`` if unknown."""
        return to_traffic(self._merged(graph_id), True, self.meta)

    def node_detail(self, graph_id: int, node_id: int) -> Dict[str, Any]:
        """``{"resNode": node, "funcCode": source of the method}``."""
        graph = self._merged(graph_id)
        node = graph.nodes.get(node_id)
        if node is None:
            raise KeyError(f"node {node_id} not found in graph {graph_id}")
        method = self.meta.methods[node.method_id]
        code = self.read_code(method.file_id).decode("utf-8", errors="replace")
        lines = code.split("\n")[method.begin.line - 1:method.end.line]
        return {"resNode": transfer_node(node, True, self.meta), "funcCode": "\n".join(lines)}

    def target_info(self) -> TargetInfo:
        info = TargetInfo()
        info.total_line_num = sum(f.line_num for f in self.meta.files)
        covered_flags = self.agent.global_covered
        for block in self.meta.blocks:
            lines = block.end.line - block.begin.line + 1
            info.target_line_num += lines
            if covered_flags[block.id]:
                info.covered_line_num += lines
        if info.target_line_num:
            info.covered_rate = info.covered_line_num / info.target_line_num * 100
        return info

    def source_tree(self) -> List[SourceNode]:
        tree = SourceTree()
        for f in self.meta.files:
            tree.add(f.relative_path, str(f.file_id)).is_leaf = True
        return tree.root()

    def source_file(self, file_id: int) -> Dict[str, Any]:
        """Source text and a line map: 2 for covered lines, 1 for uncovered ones."""
        line_map: Dict[int, int] = {}
        for block in self.meta.blocks:
            if block.file_id != file_id:
                continue
            state = 2 if self.agent.global_covered[block.id] else 1
            for line in range(block.begin.line, block.end.line + 1):
                line_map[line] = state
        return {
            "code": self.read_code(file_id).decode("utf-8", errors="replace"),
            "lineMap": line_map,
        }

    def read_code(self, file_id: int) -> bytes:
        """The saved source of file ``file_id``."""
        relative = self.meta.files[file_id].relative_path.replace("\\", "/").lstrip("/")
        return (self.meta_dir / SOURCES_DIR / (relative + SOURCES_FILE_EXT)).read_bytes()

    def _static(self, path: str) -> Response:
        page_dir = self.meta_dir / "page"
        relative = posixpath.normpath("/" + path).lstrip("/")
        target = page_dir / relative
        if relative and target.is_file():
            ctype = mimetypes.guess_type(target.name)[0] or "application/octet-stream"
            return 200, ctype, target.read_bytes()
        index = page_dir / "index.html"
        if index.is_file():
            return 200, "text/html; charset=utf-8", index.read_bytes()
        return 404, "text/plain; charset=utf-8", b"404 page not found"

    def handle(self, path: str, query: Mapping[str, Any]) -> Response:
        """Answer one request: ``(status, content type, body)``."""
        route = self._routes.get(path)
        if route is None:
            return self._static(path)
        try:
            result = route(query)
            body = json.dumps(_jsonable(result), ensure_ascii=False).encode("utf-8")
        except (KeyError, ValueError, IndexError, OSError, TypeError) as err:
            return 500, "text/plain; charset=utf-8", str(err).encode("utf-8")
        return 200, "application/json", body

    def serve(self, host: str = "", port: int = FE_PORT) -> None:
        """Serve the API and pages until interrupted, opening a browser on start."""
        service = self

        class _Handler(BaseHTTPRequestHandler):
            def _cors(self) -> None:
                for name, value in _CORS_HEADERS.items():
                    self.send_header(name, value)

            def do_OPTIONS(self) -> None:  # noqa: N802
                self.send_response(200)
                self._cors()
                self.send_header("Content-Length", "0")
                self.end_headers()

            def do_GET(self) -> None:  # noqa: N802
                parsed = urllib.parse.urlsplit(self.path)
                query = {k: v[0] for k, v in urllib.parse.parse_qs(parsed.query).items()}
                status, ctype, body = service.handle(parsed.path, query)
                self.send_response(status)
                self._cors()
                self.send_header("Content-Type", ctype)
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            do_POST = do_GET

            def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
                _logger.debug(format, *args)

        server = ThreadingHTTPServer((host, port), _Handler)
        threading.Thread(
            target=self._open_browser, args=(port,), daemon=True
        ).start()
        try:
            server.serve_forever()
        finally:
            server.server_close()

    @staticmethod
    def _open_browser(port: int) -> None:
        try:
            webbrowser.open(f"http://localhost:{port}/test")
        except webbrowser.Error as err:
            _logger.debug("could not open browser: %s", err)