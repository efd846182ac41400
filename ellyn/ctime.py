"""Clock helpers: current time, a formatted timestamp and YYYYMMDD dates."""

from __future__ import annotations

import datetime as _dt
from typing import Union

__all__ = ["current_time", "current_datetime", "date", "get_date"]


def current_time() -> _dt.datetime:
    """The current local time."""
    return _dt.datetime.now()


def current_datetime() -> str:
    """The current local time as ``YYYY-MM-DD HH:MM:SS.mmm``."""
    now = current_time()
    return f"{now:%Y-%m-%d %H:%M:%S}.{now.microsecond // 1000:03d}"


def get_date(t: Union[_dt.datetime, _dt.date]) -> int:
    """The date of ``t`` as the integer ``YYYYMMDD``."""
    return t.year * 10000 + t.month * 100 + t.day


def date() -> int:
    """Today's local date as ``YYYYMMDD``."""
    return get_date(current_time())