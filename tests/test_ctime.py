import datetime as dt
import time

from ellyn.ctime import current_datetime, current_time, date, get_date

_CST = dt.timezone(dt.timedelta(hours=8))


def test_time_advances():
    before = int(current_time().timestamp())
    time.sleep(1.01)
    now = int(current_time().timestamp())
    assert now - before >= 1


def test_get_date():
    assert get_date(dt.datetime.fromtimestamp(1730475387, tz=_CST)) == 20241101
    assert get_date(dt.datetime.fromtimestamp(1735572987, tz=_CST)) == 20241230
    assert get_date(dt.datetime.fromtimestamp(1709220987, tz=_CST)) == 20240229


def test_get_date_accepts_date():
    assert get_date(dt.date(2023, 1, 5)) == 20230105


def test_date_is_today():
    assert date() == get_date(dt.date.today())


def test_current_datetime_format():
    value = current_datetime()
    assert len(value) == 23
    parsed = dt.datetime.strptime(value, "%Y-%m-%d %H:%M:%S.%f")
    assert parsed.strftime("%Y-%m-%d %H:%M:%S.%f")[:23] == value