# src/lcal/core/lunisolar.py
from __future__ import annotations

import logging
from bisect import bisect_right
from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from typing import Optional, Protocol, Tuple, runtime_checkable

from lunar_python import Lunar, LunarMonth, LunarYear

from .config import LuniSolarConfig
from .errors import OutOfRangeError

log = logging.getLogger(__name__)


# ============================================================
# Public types
# ============================================================

@dataclass(frozen=True)
class LunarYMD:
    """
    Lunar year / month / day / leap flag of one solar day.

    year is numbered by the solar year in which that lunar year's first
    month begins.
    """
    year: int
    month: int
    day: int
    is_leap: bool


@runtime_checkable
class LunisolarConverter(Protocol):
    """Solar -> lunar conversion over a bounded, inclusive span of solar days."""

    @property
    def min_date(self) -> date: ...

    @property
    def max_date(self) -> date: ...

    def solar_to_lunar(self, d: date) -> LunarYMD: ...


# ============================================================
# Month tables (lunar_python backed)
# ============================================================

@dataclass(frozen=True)
class _LunarMonthEntry:
    year: int
    month: int
    is_leap: bool
    start: date
    day_count: int


@dataclass(frozen=True)
class _LuniSolarRangeCache:
    months: Tuple[_LunarMonthEntry, ...]  # chronological
    month_starts: Tuple[date, ...]        # months[i].start, for bisect


def _month_entry(year: int, signed_month: int) -> _LunarMonthEntry:
    # lunar_python encodes the leap copy of month m as -m
    first = Lunar.fromYmd(year, signed_month, 1).getSolar()
    day_count = LunarMonth.fromYm(year, signed_month).getDayCount()
    return _LunarMonthEntry(
        year=int(year),
        month=abs(int(signed_month)),
        is_leap=signed_month < 0,
        start=date(first.getYear(), first.getMonth(), first.getDay()),
        day_count=int(day_count),
    )


@lru_cache(maxsize=256)
def _months_for_lunar_year(year: int) -> Tuple[_LunarMonthEntry, ...]:
    """All months of lunar year `year` (12 or 13), leap month right after its namesake."""
    leap = int(LunarYear.fromYear(year).getLeapMonth())
    out = []
    for m in range(1, 13):
        out.append(_month_entry(year, m))
        if m == leap:
            out.append(_month_entry(year, -m))
    log.debug("lunar month table built: year=%d leap_month=%d months=%d", year, leap, len(out))
    return tuple(out)


@lru_cache(maxsize=256)
def _range_cache_for_solar_year(year: int) -> _LuniSolarRangeCache:
    """
    Every solar day of `year` lies in lunar year year-1 (before the lunar
    new year) or in lunar year `year`.
    """
    months = _months_for_lunar_year(year - 1) + _months_for_lunar_year(year)
    return _LuniSolarRangeCache(
        months=months,
        month_starts=tuple(m.start for m in months),
    )


# ============================================================
# Converter
# ============================================================

class ChineseLunisolarConverter:
    """
    Chinese lunisolar calendar (civil day in UTC+8) backed by lunar_python.

    Instances hold no mutable state; month tables are memoized per year and
    never change once built.
    """

    def __init__(self, config: Optional[LuniSolarConfig] = None) -> None:
        self._config = config or LuniSolarConfig()
        if self._config.max_year < self._config.min_year:
            raise ValueError("max_year must be >= min_year")

    @property
    def config(self) -> LuniSolarConfig:
        return self._config

    @property
    def min_date(self) -> date:
        return date(self._config.min_year, 1, 1)

    @property
    def max_date(self) -> date:
        return date(self._config.max_year, 12, 31)

    def supports(self, d: date) -> bool:
        return self.min_date <= d <= self.max_date

    def solar_to_lunar(self, d: date) -> LunarYMD:
        if not self.supports(d):
            raise OutOfRangeError(
                f"date {d.isoformat()} is outside the supported range "
                f"{self.min_date.isoformat()}..{self.max_date.isoformat()}"
            )

        cache = _range_cache_for_solar_year(d.year)
        i = bisect_right(cache.month_starts, d) - 1
        if i < 0:
            raise RuntimeError(f"no lunar month starts on or before {d.isoformat()} (unexpected)")

        m = cache.months[i]
        day = (d - m.start).days + 1
        if day > m.day_count:
            raise RuntimeError(f"{d.isoformat()} falls past lunar month {m.year}/{m.month} (unexpected)")
        return LunarYMD(year=m.year, month=m.month, day=day, is_leap=m.is_leap)

    def __repr__(self) -> str:
        return f"ChineseLunisolarConverter(min_year={self._config.min_year}, max_year={self._config.max_year})"


@lru_cache(maxsize=4)
def converter_for(config: LuniSolarConfig) -> ChineseLunisolarConverter:
    return ChineseLunisolarConverter(config)


@lru_cache(maxsize=1)
def default_converter() -> ChineseLunisolarConverter:
    return converter_for(LuniSolarConfig())


def gregorian_to_lunar(d: date, *, converter: Optional[LunisolarConverter] = None) -> LunarYMD:
    """Solar date -> lunar year/month/day/leap."""
    conv = converter if converter is not None else default_converter()
    return conv.solar_to_lunar(d)
