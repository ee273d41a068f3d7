# src/lcal/core/segmenter.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator, List, Optional, Tuple

from .config import debug_segments_enabled
from .errors import OutOfRangeError
from .lunisolar import LunisolarConverter, default_converter
from .rule import MissingDayStrategy
from .timeutil import iter_dates

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LunarMonthBlock:
    """
    One contiguous run of solar days sharing (lunar_year, lunar_month, is_leap_month).

    days: ((solar_date, lunar_day), ...) ascending and contiguous
    reaches_month_end: True if the last solar day is the true last day of
        that lunar month (not cut off by the scan range)
    """
    lunar_year: int
    lunar_month: int
    is_leap_month: bool
    days: Tuple[Tuple[date, int], ...]
    reaches_month_end: bool

    @property
    def key(self) -> Tuple[int, int, bool]:
        return (self.lunar_year, self.lunar_month, self.is_leap_month)

    @property
    def solar_days(self) -> List[date]:
        return [d for d, _ in self.days]

    @property
    def first_day(self) -> date:
        return self.days[0][0]

    @property
    def last_day(self) -> date:
        return self.days[-1][0]

    def date_for_day(self, day: int, strategy: MissingDayStrategy) -> Optional[date]:
        """
        Solar date of lunar day `day` inside this block.

        Looked up by lunar day number, so a block cut at the start of the
        scan range still maps day N to lunar day N. FALLBACK_TO_MONTH_END only
        applies when the block holds the real end of the month.
        """
        for d, lunar_day in self.days:
            if lunar_day == day:
                return d

        if strategy == MissingDayStrategy.FALLBACK_TO_MONTH_END and self.reaches_month_end:
            last_lunar_day = self.days[-1][1]
            if day > last_lunar_day:
                return self.days[-1][0]
        return None

    @property
    def label(self) -> str:
        prefix = "闰" if self.is_leap_month else ""
        return f"{self.lunar_year}-{prefix}{self.lunar_month:02d}"


def _next_is_month_start(last: date, converter: LunisolarConverter) -> bool:
    nxt = last + timedelta(days=1)
    if nxt > converter.max_date:
        return False
    return converter.solar_to_lunar(nxt).day == 1


def _check_range(start: date, end: date, converter: LunisolarConverter) -> None:
    if start < converter.min_date or end > converter.max_date:
        raise OutOfRangeError(
            f"scan range {start.isoformat()}..{end.isoformat()} exceeds the supported range "
            f"{converter.min_date.isoformat()}..{converter.max_date.isoformat()}"
        )


def iter_blocks(
    start: date,
    end: date,
    *,
    converter: Optional[LunisolarConverter] = None,
) -> Iterator[LunarMonthBlock]:
    """
    Lazily yield the lunar month blocks of [start, end] (both inclusive).

    Callers that only need the first few blocks of a long range can stop
    iterating early without converting the rest of the range.
    """
    if start > end:
        return

    conv = converter if converter is not None else default_converter()
    _check_range(start, end, conv)
    dump = debug_segments_enabled()

    cur_key: Optional[Tuple[int, int, bool]] = None
    cur_days: List[Tuple[date, int]] = []

    def make(key: Tuple[int, int, bool], days: List[Tuple[date, int]], reaches_month_end: bool) -> LunarMonthBlock:
        y, m, leap = key
        b = LunarMonthBlock(
            lunar_year=y,
            lunar_month=m,
            is_leap_month=leap,
            days=tuple(days),
            reaches_month_end=reaches_month_end,
        )
        if dump:
            log.debug(
                "block %s %s..%s days=%d reaches_month_end=%s",
                b.label,
                b.first_day.isoformat(),
                b.last_day.isoformat(),
                len(b.days),
                b.reaches_month_end,
            )
        return b

    for d in iter_dates(start, end):
        ld = conv.solar_to_lunar(d)
        key = (int(ld.year), int(ld.month), bool(ld.is_leap))
        if cur_key is not None and key != cur_key:
            # closed by a change of month, so the previous day was its last
            yield make(cur_key, cur_days, True)
            cur_days = []
        cur_key = key
        cur_days.append((d, int(ld.day)))

    if cur_key is not None:
        yield make(cur_key, cur_days, _next_is_month_start(end, conv))


def segment(
    start: date,
    end: date,
    *,
    converter: Optional[LunisolarConverter] = None,
) -> List[LunarMonthBlock]:
    """
    Group the solar days of [start, end] (both inclusive) into lunar month blocks.

    Raises OutOfRangeError if any day of the range is outside the converter's span.
    """
    if start > end:
        return []
    conv = converter if converter is not None else default_converter()
    _check_range(start, end, conv)
    return list(iter_blocks(start, end, converter=conv))
