"""An asynchronous logger writing to a daily and size-rotated file."""

from __future__ import annotations

import datetime as _dt
import enum
import os
import threading
import time
from pathlib import Path
from typing import IO, Any, List, Optional, Union

from ellyn import ctime, osutils
from ellyn.ringbuffer import RingBuffer

__all__ = [
    "LogLevel",
    "Schema",
    "RotatingLogFile",
    "AsyncLogger",
    "empty",
    "code",
    "get_logger",
    "LOG_FILE_MAX_SIZE",
    "LOG_FILE_MAINTAIN_DAY",
]

LOG_FILE_MAX_SIZE = 100 * 1024 * 1024
LOG_FILE_MAINTAIN_DAY = 7
_QUEUE_CAPACITY = 4096


class LogLevel(enum.IntEnum):
    INFO = 0
    WARN = 1
    ERROR = 2

    @property
    def label(self) -> str:
        return f"[{self.name.capitalize()}]"


class Schema:
    """Builds a ``key:value|key:value`` log message."""

    def __init__(self) -> None:
        self._parts: List[str] = []

    def _append(self, key: str, value: str) -> "Schema":
        self._parts.append(f"{key}:{value}")
        return self

    def add_int(self, key: str, value: int) -> "Schema":
        return self._append(key, str(int(value)))

    def add_str(self, key: str, value: str) -> "Schema":
        return self._append(key, value)

    def add_bool(self, key: str, ok: bool) -> "Schema":
        return self._append(key, "Y" if ok else "N")

    def build(self) -> str:
        return "|".join(self._parts)


def empty() -> Schema:
    """A schema with no fields."""
    return Schema()


def code(c: str) -> Schema:
    """A schema starting with the field ``Code``."""
    return Schema().add_str("Code", c)


class RotatingLogFile:
    """``run.log`` in ``log_dir``, renamed to ``run.log.<date>.<n>`` on day change or overflow.

    Not thread-safe; :class:`AsyncLogger` serialises access.
    """

    def __init__(self, log_dir: Optional[Union[str, Path]] = None) -> None:
        self.log_dir = Path(log_dir) if log_dir is not None else Path(os.getcwd()) / "logs"
        self.max_size = LOG_FILE_MAX_SIZE
        self.size = 0
        self.date = 0
        self._file: Optional[IO[bytes]] = None
        self.check_rotate()
        self.clean_expired()

    def base_log_file(self) -> str:
        if osutils.not_exists(self.log_dir):
            osutils.mkdirs(self.log_dir)
        return str(self.log_dir / "run.log")

    def write(self, data: Union[bytes, str]) -> int:
        if isinstance(data, str):
            data = data.encode("utf-8")
        assert self._file is not None
        n = self._file.write(data)
        self.size += n
        self.check_rotate()
        return n

    def check_rotate(self) -> None:
        today = ctime.date()
        if self.date != today:
            self.date = today
            self.rotate()
        elif self.size >= self.max_size:
            self.rotate()

    def rotate(self) -> None:
        """Rename the current file aside and open a fresh one."""
        if self._file is not None:
            self._file.flush()
            self._file.close()
            os.replace(self._file.name, self.dump_file_name())
            self._file = None
        log_file = self.base_log_file()
        try:
            init_size = os.stat(log_file).st_size
        except OSError:
            init_size = 0
        self._file = open(log_file, "ab")
        self.size = init_size

    def dump_file_name(self) -> str:
        """The next free ``run.log.<date>.<n>`` name."""
        base = self.base_log_file()
        directory = os.path.dirname(base)
        prefix = f"{base}.{self.date}."
        max_idx = -1
        for entry in os.scandir(directory):
            if entry.is_dir():
                continue
            name = os.path.join(directory, entry.name)
            if not name.startswith(prefix):
                continue
            try:
                idx = int(name[len(prefix):])
            except ValueError:
                continue
            max_idx = max(max_idx, idx)
        return f"{prefix}{max_idx + 1}"

    def clean_expired(self, now: Optional[_dt.datetime] = None) -> None:
        """Delete dumped files older than the retention period."""
        if now is None:
            now = ctime.current_time()
        min_day = ctime.get_date(now - _dt.timedelta(days=LOG_FILE_MAINTAIN_DAY))
        base = self.base_log_file()
        directory = os.path.dirname(base)
        try:
            entries = list(os.scandir(directory))
        except OSError:
            return
        begin = len(base)
        for entry in entries:
            name = os.path.join(directory, entry.name)
            if not name.startswith(base) or len(name) < begin + 10:
                continue
            try:
                day = int(name[begin + 1:begin + 9])
            except ValueError:
                continue
            if day < min_day:
                osutils.remove(name)

    def flush(self) -> None:
        if self._file is not None:
            self._file.flush()

    def close(self) -> None:
        if self._file is not None:
            self._file.flush()
            self._file.close()
            self._file = None


class AsyncLogger:
    """Queues log lines and writes them on a background thread.

    Lines are dropped when the queue is full. The file is flushed after a
    second without output and expired dumps are cleaned once a second.
    """

    def __init__(self, log_file: Optional[RotatingLogFile] = None) -> None:
        self._file = log_file if log_file is not None else RotatingLogFile()
        self._queue: RingBuffer[str] = RingBuffer(_QUEUE_CAPACITY)
        self.current_level = LogLevel.INFO
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._worker = threading.Thread(target=self._run, daemon=True)
        self._worker.start()

    def _write_one(self) -> bool:
        with self._lock:
            try:
                line = self._queue.dequeue()
            except IndexError:
                return False
            self._file.write(line)
            return True

    def _run(self) -> None:
        last_output = time.monotonic()
        last_clean = last_output
        while not self._stop.is_set():
            if self._write_one():
                last_output = time.monotonic()
                continue
            self._stop.wait(0.001)
            now = time.monotonic()
            if now - last_output > 1:
                with self._lock:
                    self._file.flush()
                last_output = now
            if now - last_clean >= 1:
                with self._lock:
                    self._file.clean_expired()
                last_clean = now

    def _emit(self, level: LogLevel, message: str) -> None:
        line = f"{ctime.current_datetime()} {level.label} {message}\n"
        self._queue.enqueue(line)

    def info_kv(self, schema: Schema) -> None:
        self._emit(LogLevel.INFO, schema.build())

    def _log(self, level: LogLevel, fmt: str, args: tuple) -> None:
        if self.current_level > level:
            return
        self._emit(level, fmt % args if args else fmt)

    def error(self, fmt: str, *args: Any) -> None:
        self._log(LogLevel.ERROR, fmt, args)

    def warn(self, fmt: str, *args: Any) -> None:
        self._log(LogLevel.WARN, fmt, args)

    def info(self, fmt: str, *args: Any) -> None:
        self._log(LogLevel.INFO, fmt, args)

    def flush(self) -> None:
        """Write every queued line and flush the file."""
        with self._lock:
            while True:
                try:
                    line = self._queue.dequeue()
                except IndexError:
                    break
                self._file.write(line)
            self._file.flush()

    def close(self) -> None:
        self._stop.set()
        self._worker.join()
        self.flush()
        with self._lock:
            self._file.close()


_logger: Optional[AsyncLogger] = None
_logger_lock = threading.Lock()


def get_logger() -> AsyncLogger:
    """The process-wide logger, writing to ``logs/run.log`` under the working directory."""
    global _logger
    with _logger_lock:
        if _logger is None:
            _logger = AsyncLogger()
        return _logger