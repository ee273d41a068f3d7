# src/lcal/core/engine.py
from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from .config import LcalConfig
from .errors import InvalidInputError, OutOfRangeError
from .lunisolar import LunisolarConverter, converter_for
from .rule import LunarSpec, MissingDayStrategy, RepeatMode
from .segmenter import LunarMonthBlock, iter_blocks, segment
from .timeutil import add_years

log = logging.getLogger(__name__)

_NO_MATCH_MESSAGE = (
    "no matching date in solar year {year} for lunar {label} "
    "(check the leap month and the missing-day strategy)"
)


# ============================================================
# helpers
# ============================================================

def _resolve(config: Optional[LcalConfig], converter: Optional[LunisolarConverter]) -> tuple[LcalConfig, LunisolarConverter]:
    cfg = config or LcalConfig()
    conv = converter if converter is not None else converter_for(cfg.lunisolar)
    return cfg, conv


def _require_supported_year(year: int, converter: LunisolarConverter) -> None:
    if not (converter.min_date.year <= year <= converter.max_date.year):
        raise OutOfRangeError(
            f"solar year {year} is outside the supported range "
            f"{converter.min_date.year}..{converter.max_date.year}"
        )


def _blocks_of_solar_year(year: int, converter: LunisolarConverter) -> List[LunarMonthBlock]:
    return segment(date(year, 1, 1), date(year, 12, 31), converter=converter)


def occurrences_in_year(
    year: int,
    spec: LunarSpec,
    missing_day_strategy: MissingDayStrategy,
    *,
    include_leap_companion: bool = False,
    converter: LunisolarConverter,
) -> List[date]:
    """
    Dates of `spec` inside solar year `year`, in calendar order.

    Blocks qualify when their lunar month equals spec.month and the leap
    flag matches exactly. With include_leap_companion and a non-leap spec,
    the leap copy of the same month also qualifies.
    """
    widen = include_leap_companion and not spec.is_leap_month

    out: List[date] = []
    for b in _blocks_of_solar_year(year, converter):
        if b.lunar_month != spec.month:
            continue
        if not widen and b.is_leap_month != spec.is_leap_month:
            continue
        d = b.date_for_day(spec.day, missing_day_strategy)
        if d is not None:
            out.append(d)
    return out


def first_occurrence_in_year(
    year: int,
    spec: LunarSpec,
    missing_day_strategy: MissingDayStrategy,
    *,
    converter: LunisolarConverter,
) -> Optional[date]:
    found = occurrences_in_year(year, spec, missing_day_strategy, converter=converter)
    return found[0] if found else None


# ============================================================
# per-mode enumeration
# ============================================================

def _single(
    year: int,
    spec: LunarSpec,
    missing_day_strategy: MissingDayStrategy,
    converter: LunisolarConverter,
) -> date:
    first = first_occurrence_in_year(year, spec, missing_day_strategy, converter=converter)
    if first is None:
        raise InvalidInputError(_NO_MATCH_MESSAGE.format(year=year, label=spec.label))
    return first


def _yearly(
    start_year: int,
    spec: LunarSpec,
    missing_day_strategy: MissingDayStrategy,
    include_leap_months: bool,
    yearly_window_count: int,
    converter: LunisolarConverter,
) -> List[date]:
    last_year = start_year + yearly_window_count - 1
    max_year = converter.max_date.year
    if last_year > max_year:
        log.debug("yearly window clamped: %d..%d -> %d..%d", start_year, last_year, start_year, max_year)
        last_year = max_year

    dates: List[date] = []
    for year in range(start_year, last_year + 1):
        found = occurrences_in_year(
            year,
            spec,
            missing_day_strategy,
            include_leap_companion=include_leap_months,
            converter=converter,
        )
        if not found:
            log.info("no occurrence of lunar %s in solar year %d (strategy=%s)", spec.label, year, missing_day_strategy.value)
        dates.extend(found)
    return dates


def _monthly(
    start_year: int,
    spec: LunarSpec,
    missing_day_strategy: MissingDayStrategy,
    include_leap_months: bool,
    monthly_window_count: int,
    horizon_years: int,
    converter: LunisolarConverter,
) -> List[date]:
    # leap anchors are only honored when the repeat itself includes leap months
    anchor_spec = spec
    if not include_leap_months and spec.is_leap_month:
        anchor_spec = spec.without_leap()
        log.debug("anchor normalized %s -> %s (leap months excluded)", spec.label, anchor_spec.label)

    anchor = _single(start_year, anchor_spec, missing_day_strategy, converter)
    if monthly_window_count <= 0:
        return []

    dates: List[date] = [anchor]
    if len(dates) >= monthly_window_count:
        return dates

    end = min(add_years(anchor, horizon_years), converter.max_date)
    anchor_lunar = converter.solar_to_lunar(anchor)
    anchor_key = (anchor_lunar.year, anchor_lunar.month, anchor_lunar.is_leap)
    log.debug("monthly walk: anchor=%s key=%s until=%s want=%d", anchor, anchor_key, end, monthly_window_count)

    for b in iter_blocks(anchor, end, converter=converter):
        if b.key == anchor_key:
            continue
        if not include_leap_months and b.is_leap_month:
            continue
        d = b.date_for_day(anchor_spec.day, missing_day_strategy)
        if d is not None:
            dates.append(d)
        if len(dates) >= monthly_window_count:
            break
    else:
        log.info(
            "monthly horizon exhausted: %d of %d occurrences (anchor=%s until=%s)",
            len(dates), monthly_window_count, anchor, end,
        )
    return dates


# ============================================================
# public
# ============================================================

def compute_occurrences(
    start_solar_year: int,
    spec: LunarSpec,
    repeat_mode: RepeatMode,
    missing_day_strategy: MissingDayStrategy = MissingDayStrategy.SKIP,
    *,
    include_leap_months_for_repeat: bool = False,
    monthly_window_count: int = 1,
    yearly_window_count: int = 1,
    converter: Optional[LunisolarConverter] = None,
    config: Optional[LcalConfig] = None,
) -> List[date]:
    """
    Expand a lunar spec into its raw (unterminated) occurrence list.

    - NONE:    the first match in start_solar_year (exact leap match)
    - YEARLY:  every match in solar years [start, start + yearly_window_count)
    - MONTHLY: anchor in start_solar_year, then one date per following lunar
               month until monthly_window_count dates (anchor included)

    The window counts bound the search; they are not the user-facing stop
    condition (see scheduler). The result is ascending and duplicate-free.

    Raises
    ------
    InvalidInputError
        no matching block in the starting year (e.g. a leap month that
        does not occur that year)
    OutOfRangeError
        start_solar_year outside the converter's supported span
    """
    cfg, conv = _resolve(config, converter)
    mode = RepeatMode(repeat_mode)
    strategy = MissingDayStrategy(missing_day_strategy)
    year = int(start_solar_year)
    _require_supported_year(year, conv)

    if mode == RepeatMode.NONE:
        out = [_single(year, spec, strategy, conv)]
    elif mode == RepeatMode.YEARLY:
        out = _yearly(year, spec, strategy, include_leap_months_for_repeat, int(yearly_window_count), conv)
    else:
        out = _monthly(
            year,
            spec,
            strategy,
            include_leap_months_for_repeat,
            int(monthly_window_count),
            cfg.recurrence.monthly_horizon_years,
            conv,
        )

    log.debug("occurrences: mode=%s spec=%s start=%d -> %d dates", mode.value, spec.label, year, len(out))
    return out
