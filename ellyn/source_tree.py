"""A directory tree built from slash-separated file paths."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

__all__ = ["SourceNode", "SourceTree"]


@dataclass
class SourceNode:
    """One directory or file in a :class:`SourceTree`."""

    title: str
    key: str
    children: List["SourceNode"] = field(default_factory=list)
    is_leaf: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """The JSON-ready form of this node and its subtree."""
        return {
            "title": self.title,
            "key": self.key,
            "children": [child.to_dict() for child in self.children] or None,
            "isLeaf": self.is_leaf,
        }


class SourceTree:
    """Collects paths into a tree of :class:`SourceNode`, creating parents as needed."""

    def __init__(self) -> None:
        self._nodes: Dict[str, SourceNode] = {}
        self._root: List[SourceNode] = []

    def root(self) -> List[SourceNode]:
        """The top-level nodes."""
        return self._root

    def add(self, path: str, key: str) -> SourceNode:
        """Add ``path`` under ``key`` and return its node; an existing node is returned as is."""
        path = path.replace("\\", "/").strip("/")
        existing = self._nodes.get(path)
        if existing is not None:
            return existing
        items = path.split("/")
        node = SourceNode(title=items[-1], key=key)
        if len(items) >= 2:
            parent_path = "/".join(items[:-1])
            self.add(parent_path, parent_path).children.append(node)
        else:
            self._root.append(node)
        self._nodes[path] = node
        return node