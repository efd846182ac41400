import datetime as dt
import os

import pytest

from ellyn import asynclog, ctime


@pytest.fixture
def log_file(tmp_path):
    f = asynclog.RotatingLogFile(tmp_path / "logs")
    yield f
    f.close()


@pytest.fixture
def logger(log_file):
    lg = asynclog.AsyncLogger(log_file)
    yield lg
    lg.close()


def _read(log_file):
    with open(log_file.base_log_file(), encoding="utf-8") as fh:
        return fh.read()


def test_schema_build():
    s = asynclog.empty().add_str("Code", "g_collect").add_int("n", 3).add_int("e", 0).add_bool("c", True)
    assert s.build() == "Code:g_collect|n:3|e:0|c:Y"
    assert asynclog.empty().add_str("name", "yah").add_bool("ok", False).build() == "name:yah|ok:N"
    assert asynclog.empty().build() == ""


def test_level_labels(logger, log_file):
    logger.info("a")
    logger.warn("b")
    logger.error("c")
    logger.flush()
    lines = _read(log_file).splitlines()
    assert len(lines) == 3
    assert lines[0].endswith(" [Info] a")
    assert lines[1].endswith(" [Warn] b")
    assert lines[2].endswith(" [Error] c")


def test_log_file_dump_name(log_file):
    base = log_file.base_log_file()
    name = log_file.dump_file_name()
    assert name.startswith(base)
    idx = int(name[len(base) + len(f".{ctime.date()}."):])
    assert idx >= 0


def test_dump_name_picks_next_index(log_file):
    base = log_file.base_log_file()
    for i in (0, 3):
        open(f"{base}.{log_file.date}.{i}", "w").close()
    assert log_file.dump_file_name() == f"{base}.{log_file.date}.4"


def test_rotate_on_size(log_file):
    log_file.max_size = 10
    log_file.write(b"0123456789abc")
    base = log_file.base_log_file()
    dumped = f"{base}.{log_file.date}.0"
    assert os.path.exists(dumped)
    with open(dumped, "rb") as fh:
        assert fh.read() == b"0123456789abc"
    assert log_file.size == 0


def test_clean_expired(log_file):
    base = log_file.base_log_file()
    old = f"{base}.20000101.0"
    now = dt.datetime(2024, 11, 1, 12, 0, 0)
    recent = f"{base}.{ctime.get_date(now)}.0"
    open(old, "w").close()
    open(recent, "w").close()
    log_file.clean_expired(now)
    remaining = sorted(os.listdir(os.path.dirname(log_file.base_log_file())))
    assert remaining == sorted([os.path.basename(base), os.path.basename(recent)])
    assert log_file.dump_file_name() == f"{base}.{log_file.date}.0"


def test_logger_info_and_kv(logger, log_file):
    logger.info("hello world")
    logger.info("name:%s|age:%d", "yah", 1)
    logger.info_kv(asynclog.empty().add_str("name", "yah").add_int("age", 1))
    logger.flush()
    content = _read(log_file)
    lines = content.splitlines()
    assert len(lines) == 3
    assert lines[0].endswith(" [Info] hello world")
    assert lines[1].endswith(" [Info] name:yah|age:1")
    assert lines[2].endswith(" [Info] name:yah|age:1")


def test_logger_level_filter(logger, log_file):
    logger.current_level = asynclog.LogLevel.ERROR
    logger.info("dropped")
    logger.warn("dropped too")
    logger.error("kept %d", 7)
    logger.flush()
    content = _read(log_file)
    assert "dropped" not in content
    assert "[Error] kept 7" in content


def test_get_logger_is_singleton(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    ids = {id(asynclog.get_logger()) for _ in range(3)}
    assert len(ids) == 1