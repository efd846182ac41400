"""Instrumentation metadata: packages, files, methods and blocks, encoded as gzipped CSV."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Protocol, Sequence, TypeVar, Union

from ellyn import osutils

__all__ = [
    "META_RELATIVE_PATH",
    "META_BLOCKS",
    "META_FILES",
    "META_METHODS",
    "META_PACKAGES",
    "RUNTIME_CONF_FILE",
    "Pos",
    "Package",
    "File",
    "VarDef",
    "VarDefList",
    "Method",
    "Block",
    "MetaData",
    "parse_pos",
    "decode_var_def",
    "encode_csv_rows",
]

META_RELATIVE_PATH = "meta"
META_BLOCKS = "blocks.dat"
META_FILES = "files.dat"
META_METHODS = "methods.dat"
META_PACKAGES = "packages.dat"

RUNTIME_CONF_FILE = "config.json"

_UINT_RE = re.compile(r"[0-9]+")
_UINT32_LIMIT = 1 << 32


def _parse_uint32(col: str) -> int:
    if not _UINT_RE.fullmatch(col):
        raise ValueError(f"invalid unsigned integer: {col!r}")
    value = int(col)
    if value >= _UINT32_LIMIT:
        raise ValueError(f"value out of uint32 range: {col!r}")
    return value


@dataclass
class Pos:
    """A position in a source file."""

    offset: int = 0
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        return f"L{self.line}C{self.column}:{self.offset}"


def parse_pos(encoded: str) -> Pos:
    """Decode a position written as ``L<line>C<column>:<offset>``."""
    col_idx = encoded.find("C")
    offset_idx = encoded.find(":")
    if not encoded.startswith("L") or col_idx < 0 or offset_idx < col_idx:
        raise ValueError(f"invalid position: {encoded!r}")
    return Pos(
        line=_parse_uint32(encoded[1:col_idx]),
        column=_parse_uint32(encoded[col_idx + 1:offset_idx]),
        offset=_parse_uint32(encoded[offset_idx + 1:]),
    )


@dataclass
class Package:
    """A Go package of the target project."""

    id: int = 0
    name: str = ""
    path: str = ""
    dir: str = ""

    @classmethod
    def from_path(cls, directory: str, path: str) -> "Package":
        """A package whose name is the last segment of its import path."""
        return cls(dir=directory, name=path.split("/")[-1], path=path)

    def encode_row(self) -> str:
        return f"{self.id},{self.name},{self.path}"

    @classmethod
    def parse(cls, cols: Sequence[str]) -> "Package":
        return cls(id=_parse_uint32(cols[0]), name=cols[1], path=cols[2])


@dataclass
class File:
    """A source file of the target project."""

    file_id: int = 0
    package_id: int = 0
    relative_path: str = ""
    line_num: int = 0

    def encode_row(self) -> str:
        return f"{self.file_id},{self.package_id},{self.relative_path},{self.line_num}"

    @classmethod
    def parse(cls, cols: Sequence[str]) -> "File":
        return cls(
            file_id=_parse_uint32(cols[0]),
            package_id=_parse_uint32(cols[1]),
            relative_path=cols[2],
            line_num=_parse_uint32(cols[3]),
        )


@dataclass
class VarDef:
    """One declaration in a parameter list: several names sharing one type."""

    names: List[str]
    type: str


class VarDefList:
    """A parameter or result list, addressable by flat variable index."""

    def __init__(self, defs: Optional[Iterable[VarDef]] = None) -> None:
        self.defs: List[VarDef] = list(defs) if defs is not None else []
        self._names: List[str] = []
        self._types: List[str] = []
        for var_def in self.defs:
            for name in var_def.names:
                self._names.append(name)
                self._types.append(var_def.type)

    def encode(self) -> str:
        """Encode as ``{a:b}type;{c}type``."""
        return ";".join(f"{{{':'.join(d.names)}}}{d.type}" for d in self.defs)

    def type_of(self, idx: int) -> str:
        return self._types[idx]

    def name_of(self, idx: int) -> str:
        return self._names[idx]

    def __len__(self) -> int:
        return len(self._names)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VarDefList):
            return NotImplemented
        return self.defs == other.defs

    def __repr__(self) -> str:
        return f"VarDefList({self.encode()!r})"


def decode_var_def(text: str) -> VarDefList:
    """Decode the output of :meth:`VarDefList.encode`."""
    if text == "":
        return VarDefList()
    defs = []
    for item in text.split(";"):
        idx = item.find("}")
        if not item.startswith("{") or idx < 0:
            raise ValueError(f"invalid variable declaration: {item!r}")
        defs.append(VarDef(item[1:idx].split(":"), item[idx + 1:]))
    return VarDefList(defs)


@dataclass
class Method:
    """A function or method of the target project."""

    id: int = 0
    full_name: str = ""
    file_id: int = 0
    package_id: int = 0
    begin: Pos = field(default_factory=Pos)
    end: Pos = field(default_factory=Pos)
    args_list: VarDefList = field(default_factory=VarDefList)
    return_list: VarDefList = field(default_factory=VarDefList)
    name: str = ""
    blocks: List[Optional["Block"]] = field(default_factory=list)
    block_cnt: int = 0

    def encode_row(self) -> str:
        return (
            f"{self.id},{self.full_name},{self.file_id},{self.package_id},"
            f"{len(self.blocks)},{self.begin},{self.end},"
            f"{self.args_list.encode()},{self.return_list.encode()}"
        )

    @classmethod
    def parse(cls, cols: Sequence[str]) -> "Method":
        block_cnt = _parse_uint32(cols[4])
        return cls(
            id=_parse_uint32(cols[0]),
            full_name=cols[1],
            file_id=_parse_uint32(cols[2]),
            package_id=_parse_uint32(cols[3]),
            block_cnt=block_cnt,
            blocks=[None] * block_cnt,
            begin=parse_pos(cols[5]),
            end=parse_pos(cols[6]),
            args_list=decode_var_def(cols[7]),
            return_list=decode_var_def(cols[8]),
        )


@dataclass
class Block:
    """A basic block: code that runs straight through without branching."""

    id: int = 0
    file_id: int = 0
    method_id: int = 0
    method_offset: int = 0
    begin: Pos = field(default_factory=Pos)
    end: Pos = field(default_factory=Pos)

    def encode_row(self) -> str:
        return (
            f"{self.id},{self.method_id},{self.method_offset},"
            f"{self.begin},{self.end},{self.file_id}"
        )

    @classmethod
    def parse(cls, cols: Sequence[str], methods: Sequence[Method]) -> "Block":
        """Decode a block and register it in its method's block list."""
        block = cls(
            id=_parse_uint32(cols[0]),
            method_id=_parse_uint32(cols[1]),
            method_offset=_parse_uint32(cols[2]),
            begin=parse_pos(cols[3]),
            end=parse_pos(cols[4]),
            file_id=_parse_uint32(cols[5]),
        )
        methods[block.method_id].blocks[block.method_offset] = block
        return block


class _CsvRow(Protocol):
    def encode_row(self) -> str:
        ...


def encode_csv_rows(rows: Iterable[_CsvRow]) -> bytes:
    """Encode rows one per line and gzip the result."""
    return osutils.compress("".join(row.encode_row() + "\n" for row in rows))


R = TypeVar("R")


def _decode_csv(compressed: bytes, parse: Callable[[List[str]], R]) -> List[R]:
    if not compressed:
        return []
    text = osutils.uncompress(compressed).decode("utf-8")
    res = []
    for line in text.split("\n"):
        line = line.strip()
        if not line:
            continue
        res.append(parse(line.split(",")))
    return res


@dataclass
class MetaData:
    """All metadata of an instrumented project; lists are indexed by id."""

    packages: List[Package] = field(default_factory=list)
    files: List[File] = field(default_factory=list)
    methods: List[Method] = field(default_factory=list)
    blocks: List[Block] = field(default_factory=list)

    @classmethod
    def decode(
        cls, packages: bytes, files: bytes, methods: bytes, blocks: bytes
    ) -> "MetaData":
        """Decode the four gzipped CSV payloads."""
        method_list = _decode_csv(methods, Method.parse)
        return cls(
            packages=_decode_csv(packages, Package.parse),
            files=_decode_csv(files, File.parse),
            methods=method_list,
            blocks=_decode_csv(blocks, lambda cols: Block.parse(cols, method_list)),
        )

    @classmethod
    def load(cls, meta_dir: Union[str, Path]) -> "MetaData":
        """Read the ``*.dat`` files from ``meta_dir``; missing files count as empty."""
        base = Path(meta_dir)

        def read(name: str) -> bytes:
            try:
                return (base / name).read_bytes()
            except FileNotFoundError:
                return b""

        return cls.decode(
            read(META_PACKAGES), read(META_FILES), read(META_METHODS), read(META_BLOCKS)
        )

    def block_flags(self, method_id: int) -> List[bool]:
        """A fresh coverage flag per block of the method."""
        return [False] * self.methods[method_id].block_cnt