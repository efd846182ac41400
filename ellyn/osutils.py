"""File-system and gzip helpers."""

from __future__ import annotations

import gzip
import os
import shutil
from pathlib import Path
from typing import Union

__all__ = [
    "get_work_dir",
    "write_to",
    "mkdirs",
    "copy_file",
    "remove",
    "not_exists",
    "exists",
    "file_info",
    "format_file_path",
    "compress",
    "uncompress",
]

PathLike = Union[str, Path]


def get_work_dir() -> str:
    return os.getcwd()


def mkdirs(directory: PathLike) -> None:
    """Create ``directory`` and its parents if missing."""
    Path(directory).mkdir(parents=True, exist_ok=True)


def write_to(file: PathLike, content: Union[bytes, str]) -> None:
    """Write ``content`` to ``file``, creating parent directories first."""
    path = Path(file)
    mkdirs(path.parent)
    if isinstance(content, str):
        content = content.encode("utf-8")
    path.write_bytes(content)


def copy_file(source: PathLike, target: PathLike) -> None:
    """Copy the contents of ``source`` to ``target``, creating parent directories."""
    write_to(target, Path(source).read_bytes())


def remove(file: PathLike) -> None:
    """Remove a file or a whole directory tree; a missing path is not an error."""
    path = Path(file)
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        try:
            path.unlink()
        except FileNotFoundError:
            pass


def not_exists(file: PathLike) -> bool:
    try:
        os.stat(file)
    except FileNotFoundError:
        return True
    except OSError:
        return False
    return False


def exists(file: PathLike) -> bool:
    try:
        os.stat(file)
    except OSError:
        return False
    return True


def file_info(file: PathLike) -> os.stat_result:
    """The stat result of ``file``; raises ``OSError`` if it cannot be read."""
    return os.stat(file)


def format_file_path(file: str) -> str:
    """Turn backslashes into forward slashes."""
    return file.replace("\\", "/")


def compress(content: Union[bytes, str]) -> bytes:
    """Gzip ``content``."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    return gzip.compress(content)


def uncompress(compressed: bytes) -> bytes:
    """Un-gzip ``compressed``; invalid data raises ``OSError``."""
    return gzip.decompress(compressed)