"""Helpers that run external commands and query the Go toolchain."""

from __future__ import annotations

import os
import re
import subprocess
import sys
from pathlib import Path
from typing import Dict, List, Optional, Union

__all__ = [
    "exec_command",
    "all_packages",
    "get_go_env",
    "mod_tidy",
    "get_mod_file",
    "get_go_root_dir",
    "is_test_file",
    "is_source_file",
    "is_auto_gen_file",
    "is_auto_gen_content",
    "build",
    "is_unittest_env",
    "is_std_pkg",
]

_PKG_SEPARATOR = "|#|"
_AUTO_GEN_MARK = re.compile(rb"[\r\n]// Code generated .* DO NOT EDIT.[\r\n]")


def _to_slash(path: str) -> str:
    return path.replace(os.sep, "/") if os.sep != "/" else path


def exec_command(work_dir: Optional[str], name: str, *args: str) -> str:
    """Run ``name`` with ``args`` in ``work_dir`` and return its standard output.

    Standard error is passed through. A non-zero exit raises
    :class:`subprocess.CalledProcessError`.
    """
    result = subprocess.run(
        [name, *args],
        cwd=work_dir or None,
        stdout=subprocess.PIPE,
        check=True,
    )
    return result.stdout.decode("utf-8", errors="replace")


def all_packages(main_pkg_path: str) -> Dict[str, str]:
    """Map every import path the main package depends on to its directory."""
    out = exec_command(
        main_pkg_path,
        "go",
        "list",
        "-test=false",
        "-deps=true",
        "-f",
        "{{.ImportPath}}" + _PKG_SEPARATOR + "{{.Dir}}",
    )
    res: Dict[str, str] = {}
    for line in out.split("\n"):
        line = line.strip()
        if not line:
            continue
        pkg_path, pkg_dir = line.split(_PKG_SEPARATOR)[:2]
        res[pkg_path] = _to_slash(pkg_dir)
    return res


def get_go_env(work_dir: Optional[str], env_key: str) -> str:
    """The value of one ``go env`` variable."""
    return exec_command(work_dir, "go", "env", env_key).strip()


def mod_tidy(work_dir: str) -> None:
    exec_command(work_dir, "go", "mod", "tidy")


def get_mod_file(main_pkg_path: str) -> str:
    """Absolute path of the go.mod that governs ``main_pkg_path``."""
    return get_go_env(main_pkg_path, "GOMOD")


def get_go_root_dir() -> str:
    return get_go_env(os.getcwd(), "GOROOT")


def is_test_file(file: str) -> bool:
    return file.endswith("_test.go")


def is_source_file(file: str) -> bool:
    return file.endswith(".go") and not is_test_file(file)


def is_auto_gen_content(content: Union[bytes, str]) -> bool:
    """Whether the text before ``package`` carries a "Code generated ... DO NOT EDIT." mark."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    idx = content.find(b"package")
    if idx < 0:
        return False
    return _AUTO_GEN_MARK.search(content[:idx]) is not None


def is_auto_gen_file(file: Union[str, Path]) -> bool:
    return is_auto_gen_content(Path(file).read_bytes())


def build(main_pkg_dir: str) -> None:
    exec_command(main_pkg_dir, "go", "build", "./...")


def is_unittest_env(argv: Optional[List[str]] = None) -> bool:
    """Whether the first command-line argument is a ``-test...`` flag."""
    if argv is None:
        argv = sys.argv
    return len(argv) > 1 and argv[1].startswith("-test")


def is_std_pkg(path: str) -> bool:
    """Whether ``path`` names a package of the Go standard library."""
    try:
        out = exec_command("", "go", "list", "-f", "{{.Goroot}}", path)
    except (subprocess.CalledProcessError, OSError):
        return False
    return out.strip() == "true"