"""Date and time helpers built around the trading-day clock.

A *daytm* is a number of milliseconds within a trading day, shifted so that
16:00 local time counts as zero. The night session, which opens at 21:00,
therefore sorts before the day session of the same trading day.
"""

from __future__ import annotations

import re
import time as _time

ONE_DAY_SECONDS = 86400
ONE_MINUTE_SECONDS = 60
ONE_HOUR_SECONDS = 3600
ONE_HOUR_MILLISECONDS = 3600000
ONE_DAY_MILLISECONDS = 86400000
ONE_MINUTE_MILLISECONDS = 60000
ONE_SECOND_MILLISECONDS = 1000

_SESSION_SHIFT = 16 * ONE_HOUR_MILLISECONDS
_UTC_OFFSET_SECONDS = 28800
_LEADING_INT = re.compile(r"\s*[+-]?\d+")


def _atoi(text: str) -> int:
    """Parse the leading integer of ``text``; 0 when there is none."""
    match = _LEADING_INT.match(text)
    return int(match.group()) if match else 0


def datetime_to_string(timestamp: int, fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
    """Format a Unix timestamp in local time."""
    return _time.strftime(fmt, _time.localtime(timestamp))


def make_date(year: int, month: int, day: int) -> int:
    """Return the Unix timestamp of local midnight on the given date."""
    return int(_time.mktime((year, month, day, 0, 0, 0, 0, 0, -1)))


def make_date_from_int(date: int) -> int:
    """Return local midnight for a date written as ``yyyymmdd``."""
    return make_date(date // 10000, date % 10000 // 100, date % 100)


def make_time(value: int | str) -> int:
    """Seconds since midnight from ``hhmmss`` (int) or ``"hh:mm:ss"`` (str)."""
    if isinstance(value, str):
        parts = [_atoi(part) for part in value.split(":")[:3]]
        parts += [0] * (3 - len(parts))
        hour, minute, second = parts
    else:
        hour, minute, second = value // 10000, value % 10000 // 100, value % 100
    return hour * ONE_HOUR_SECONDS + minute * ONE_MINUTE_SECONDS + second


def make_datetime(date: int | str, time: str | int | None) -> int:
    """Combine a ``yyyymmdd`` date with a time of day.

    ``time`` is either a ``"hh:mm:ss"`` string or a daytm value. An empty or
    missing time string gives -1.
    """
    if isinstance(date, str):
        date = _atoi(date)
    if time is None:
        return -1
    if isinstance(time, str):
        if not time:
            return -1
        return make_date_from_int(date) + make_time(time)
    return make_date_from_int(date) + daytm_really(time) // ONE_SECOND_MILLISECONDS


def daytm_offset(tm: int, milliseconds: int) -> int:
    """Move a daytm by ``milliseconds``, wrapping around the day."""
    return (tm + milliseconds) % ONE_DAY_MILLISECONDS


def daytm_sequence(tm: int) -> int:
    """Convert milliseconds since midnight into a daytm (16:00 becomes 0)."""
    if tm < _SESSION_SHIFT:
        return tm + ONE_DAY_MILLISECONDS - _SESSION_SHIFT
    return tm - _SESSION_SHIFT


def daytm_really(tm: int) -> int:
    """Convert a daytm back into milliseconds since midnight."""
    return (tm + _SESSION_SHIFT) % ONE_DAY_MILLISECONDS


def make_daytm(time: int | str, tick: int) -> int:
    """Build a daytm from a time of day and a millisecond part."""
    return daytm_sequence(make_time(time) * ONE_SECOND_MILLISECONDS + tick)


def parse_daytm(text: str, is_str: bool = False) -> int:
    """Parse ``"21:12:30.500"`` (``is_str``) or ``"211230.500"`` into a daytm.

    The part after the dot is taken as milliseconds; without a dot it is 0.
    """
    head, sep, fraction = text[:13].partition(".")
    tick = _atoi(text[len(head) + 1:]) if sep else 0
    if is_str:
        return make_daytm(head, tick)
    return make_daytm(_atoi(head), tick)


def get_day_begin(cur: int) -> int:
    """Return the start of the local (UTC+8) day containing ``cur``."""
    if cur < ONE_DAY_SECONDS:
        return 0
    begin = cur // ONE_DAY_SECONDS * ONE_DAY_SECONDS - _UTC_OFFSET_SECONDS
    if begin <= cur - ONE_DAY_SECONDS:
        begin += ONE_DAY_SECONDS
    return begin


def get_day_time(cur: int) -> int:
    """Return the daytm of the timestamp ``cur``."""
    return daytm_sequence((cur - get_day_begin(cur)) * ONE_SECOND_MILLISECONDS)


def get_next_time(cur: int, time: str) -> int:
    """Return the next timestamp at or after ``cur`` falling at ``time``."""
    following = get_day_begin(cur) + make_time(time)
    if following < cur:
        following += ONE_DAY_SECONDS
    return following


def date_to_uint(value: int | str) -> int:
    """Return a date as ``yyyymmdd`` from a timestamp or ``"yyyy-mm-dd"``."""
    if isinstance(value, str):
        return _atoi(value[:16].replace("-", ""))
    return int(_time.strftime("%Y%m%d", _time.localtime(value)))