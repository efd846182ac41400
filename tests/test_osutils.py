from pathlib import Path

import pytest

from ellyn import osutils


def test_gzip_round_trip():
    text = "lvyahui"
    assert osutils.uncompress(osutils.compress(text.encode())).decode() == text


def test_gzip_magic_header():
    assert osutils.compress(b"abc")[:2] == b"\x1f\x8b"


def test_uncompress_invalid_raises():
    with pytest.raises(OSError):
        osutils.uncompress(b"not gzip")


def test_write_to_creates_parents(tmp_path):
    target = tmp_path / "a" / "b" / "c.txt"
    osutils.write_to(target, "hello")
    assert target.read_text() == "hello"


def test_copy_file(tmp_path):
    src = tmp_path / "src.txt"
    src.write_bytes(b"data")
    dst = tmp_path / "x" / "dst.txt"
    osutils.copy_file(src, dst)
    assert dst.read_bytes() == b"data"


def test_exists_and_remove(tmp_path):
    f = tmp_path / "f.txt"
    assert osutils.not_exists(f)
    assert not osutils.exists(f)
    f.write_text("x")
    assert osutils.exists(f)
    assert not osutils.not_exists(f)
    osutils.remove(f)
    assert osutils.not_exists(f)
    osutils.remove(f)
    assert osutils.not_exists(f)


def test_remove_directory_tree(tmp_path):
    d = tmp_path / "tree"
    (d / "sub").mkdir(parents=True)
    (d / "sub" / "f").write_text("x")
    osutils.remove(d)
    assert not d.exists()


def test_mkdirs_and_file_info(tmp_path):
    d = tmp_path / "m" / "n"
    osutils.mkdirs(d)
    assert d.is_dir()
    f = d / "f"
    f.write_bytes(b"12345")
    assert osutils.file_info(f).st_size == 5
    with pytest.raises(OSError):
        osutils.file_info(d / "missing")


def test_format_file_path():
    assert osutils.format_file_path("a\\b\\c.go") == "a/b/c.go"


def test_get_work_dir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert Path(osutils.get_work_dir()).resolve() == tmp_path.resolve()