# src/lcal/core/timeutil.py
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterator, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import InvalidInputError

DateLike = Union[date, datetime]


def get_tzinfo(tz: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidInputError(f"Unknown timezone: {tz}") from e


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every day in [start, end] (both inclusive)."""
    cur = start
    while cur <= end:
        yield cur
        cur = cur + timedelta(days=1)


def as_local_date(x: DateLike, tz: ZoneInfo) -> date:
    """
    Reduce a date-like value to the calendar day it denotes in tz.

    Parameters
    ----------
    x:
        date, naive datetime (wall clock, taken as-is) or aware datetime
        (converted to tz first).
    tz:
        zone used for aware datetimes.
    """
    if isinstance(x, datetime):
        if x.tzinfo is None or x.utcoffset() is None:
            return x.date()
        return x.astimezone(tz).date()
    return x


def start_of_day(d: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(d, time(0, 0), tzinfo=tz)


def end_of_day(d: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(d, time(23, 59, 59), tzinfo=tz)


def add_years(d: date, years: int) -> date:
    """Same month/day `years` later; Feb 29 falls back to Feb 28."""
    try:
        return d.replace(year=d.year + years)
    except ValueError:
        return d.replace(year=d.year + years, day=28)
