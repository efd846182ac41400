"""64-bit unique id generator: seconds, server id, reserved flag and sequence."""

from __future__ import annotations

import os
import secrets
import threading
import time

__all__ = ["GuidGenerator", "get_reverse_flag", "get_svr_id"]

LOG_ID_LEN = 64
TIMESTAMP_LEN = 32
SVR_ID_LEN = 13
REVERSE_LEN = 3
SEQ_LEN = LOG_ID_LEN - TIMESTAMP_LEN - SVR_ID_LEN - REVERSE_LEN
SEQ_MASK = (1 << SEQ_LEN) - 1


def get_reverse_flag() -> int:
    """The reserved flag from the ``REVERSE_FLAG`` environment variable, 0 if unset or invalid."""
    flag = os.environ.get("REVERSE_FLAG", "")
    try:
        value = int(flag)
    except ValueError:
        return 0
    return value & ((1 << REVERSE_LEN) - 1)


def get_svr_id() -> int:
    """A random server id in ``range(2**13)``."""
    return secrets.randbelow(1 << SVR_ID_LEN)


class GuidGenerator:
    """Generates ids unique per process: up to 65536 per second."""

    def __init__(self) -> None:
        self._seq = 0
        self._lock = threading.Lock()
        self.svr_id = get_svr_id()
        self._svr_id_mask = self.svr_id << (REVERSE_LEN + SEQ_LEN)
        self.reverse_flag = get_reverse_flag()

    def gen_guid(self) -> int:
        return (
            (int(time.time()) << (LOG_ID_LEN - TIMESTAMP_LEN))
            | self._svr_id_mask
            | (self.reverse_flag << SEQ_LEN)
            | self.next_seq()
        )

    def next_seq(self) -> int:
        """The next sequence number, cycling through ``range(2**16)``."""
        with self._lock:
            cur = self._seq
            self._seq = (cur + 1) & SEQ_MASK
            return cur