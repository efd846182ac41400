"""Rate-based sampling driven by a xorshift generator."""

from __future__ import annotations

import struct
import time
from typing import Optional

__all__ = ["RandomSampling", "MAX_UINT64"]

MAX_UINT64 = (1 << 64) - 1
_PRECISION = 100000000


def _f32(value: float) -> float:
    return struct.unpack("f", struct.pack("f", value))[0]


def _now_micros() -> int:
    return time.time_ns() // 1000


class RandomSampling:
    """Decides per call whether to sample, hitting roughly ``sampling_rate`` of the time."""

    def __init__(self, sampling_rate: float, seed: Optional[int] = None) -> None:
        rate = _f32(min(max(sampling_rate, 0.0), 1.0))
        if rate == 1:
            self.target = MAX_UINT64
        else:
            self.target = (MAX_UINT64 // _PRECISION) * int(_f32(_f32(_PRECISION) * rate))
        self.cur = (seed if seed is not None else _now_micros()) & MAX_UINT64

    def hit(self) -> bool:
        return self.random() < self.target

    def random(self) -> int:
        """The next 64-bit xorshift value."""
        x = self.cur
        if x == 0:
            x = _now_micros() & MAX_UINT64
        x ^= (x << 13) & MAX_UINT64
        x ^= x >> 7
        x ^= (x << 17) & MAX_UINT64
        self.cur = x
        return x