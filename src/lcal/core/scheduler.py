# src/lcal/core/scheduler.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

from .config import LcalConfig, LuniSolarConfig, WindowConfig
from .engine import compute_occurrences
from .errors import InvalidInputError
from .lunisolar import LunisolarConverter
from .rule import LunarSpec, MissingDayStrategy, RepeatEndMode, RepeatMode, WindowProfile
from .timeutil import DateLike, as_local_date, end_of_day, get_tzinfo, start_of_day

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchWindow:
    monthly_window_count: int
    yearly_window_count: int


def normalize_count(count: int) -> int:
    return max(1, int(count))


def search_window(
    repeat_mode: RepeatMode,
    repeat_end_mode: RepeatEndMode,
    repeat_end_count: int,
    profile: WindowProfile = WindowProfile.PREVIEW,
    *,
    config: Optional[WindowConfig] = None,
) -> SearchWindow:
    """
    How far the engine should search for a rule.

    | mode    | end          | preview          | commit |
    |---------|--------------|------------------|--------|
    | none    | -            | 1                | 1      |
    | monthly | after N      | max(12, N) months| N      |
    | monthly | on date      | 720 months       | 720    |
    | yearly  | after N      | max(5, N) years  | N      |
    | yearly  | on date      | 120 years        | 120    |
    """
    cfg = config or WindowConfig()
    mode = RepeatMode(repeat_mode)
    end_mode = RepeatEndMode(repeat_end_mode)
    prof = WindowProfile(profile)
    n = normalize_count(repeat_end_count)

    if mode == RepeatMode.NONE:
        return SearchWindow(monthly_window_count=1, yearly_window_count=1)

    if mode == RepeatMode.MONTHLY:
        if end_mode == RepeatEndMode.ON_DATE:
            monthly = cfg.by_date_monthly
        elif prof == WindowProfile.PREVIEW:
            monthly = max(cfg.preview_min_monthly, n)
        else:
            monthly = n
        return SearchWindow(monthly_window_count=monthly, yearly_window_count=1)

    if end_mode == RepeatEndMode.ON_DATE:
        yearly = cfg.by_date_yearly
    elif prof == WindowProfile.PREVIEW:
        yearly = max(cfg.preview_min_yearly, n)
    else:
        yearly = n
    return SearchWindow(monthly_window_count=1, yearly_window_count=yearly)


def apply_repeat_end(
    dates: Sequence[date],
    repeat_mode: RepeatMode,
    repeat_end_mode: RepeatEndMode,
    repeat_end_count: int,
    repeat_end_date: Optional[DateLike],
    *,
    tz: Optional[str] = None,
) -> List[date]:
    """
    Cut a raw occurrence list down to the user-facing termination condition.

    - NONE:        at most the first date
    - after N:     the first max(1, N) dates
    - on date:     dates up to the end date at 23:59:59 in tz (inclusive)

    tz defaults to the LuniSolarConfig zone.
    """
    mode = RepeatMode(repeat_mode)
    if mode == RepeatMode.NONE:
        return list(dates[:1])

    end_mode = RepeatEndMode(repeat_end_mode)
    if end_mode == RepeatEndMode.AFTER_OCCURRENCES:
        return list(dates[: normalize_count(repeat_end_count)])

    if repeat_end_date is None:
        raise InvalidInputError("repeat_end_date is required when repeat_end_mode is onDate")

    tzinfo = get_tzinfo(tz or LuniSolarConfig().tz)
    limit = end_of_day(as_local_date(repeat_end_date, tzinfo), tzinfo)
    return [d for d in dates if start_of_day(d, tzinfo) <= limit]


def compute_scheduled_occurrences(
    start_solar_year: int,
    spec: LunarSpec,
    repeat_mode: RepeatMode,
    missing_day_strategy: MissingDayStrategy = MissingDayStrategy.SKIP,
    *,
    include_leap_months_for_repeat: bool = False,
    repeat_end_mode: RepeatEndMode = RepeatEndMode.AFTER_OCCURRENCES,
    repeat_end_count: int = 1,
    repeat_end_date: Optional[DateLike] = None,
    profile: WindowProfile = WindowProfile.PREVIEW,
    converter: Optional[LunisolarConverter] = None,
    config: Optional[LcalConfig] = None,
) -> List[date]:
    """
    Windowed and terminated occurrences of a rule.

    PREVIEW searches generously for display; COMMIT searches only as far as
    the termination condition needs. Both give the same dates wherever
    their windows overlap.
    """
    cfg = config or LcalConfig()
    if (
        RepeatMode(repeat_mode) != RepeatMode.NONE
        and RepeatEndMode(repeat_end_mode) == RepeatEndMode.ON_DATE
        and repeat_end_date is None
    ):
        raise InvalidInputError("repeat_end_date is required when repeat_end_mode is onDate")

    count = normalize_count(repeat_end_count)
    window = search_window(repeat_mode, repeat_end_mode, count, profile, config=cfg.window)

    raw = compute_occurrences(
        start_solar_year,
        spec,
        repeat_mode,
        missing_day_strategy,
        include_leap_months_for_repeat=include_leap_months_for_repeat,
        monthly_window_count=window.monthly_window_count,
        yearly_window_count=window.yearly_window_count,
        converter=converter,
        config=cfg,
    )

    out = apply_repeat_end(
        raw,
        repeat_mode,
        repeat_end_mode,
        count,
        repeat_end_date,
        tz=cfg.lunisolar.tz,
    )
    log.debug(
        "scheduled: profile=%s window=%s raw=%d -> %d",
        WindowProfile(profile).value, window, len(raw), len(out),
    )
    return out


def preview_occurrences(
    start_solar_year: int,
    spec: LunarSpec,
    repeat_mode: RepeatMode,
    missing_day_strategy: MissingDayStrategy = MissingDayStrategy.SKIP,
    *,
    include_leap_months_for_repeat: bool = False,
    repeat_end_mode: RepeatEndMode = RepeatEndMode.AFTER_OCCURRENCES,
    repeat_end_count: int = 1,
    repeat_end_date: Optional[DateLike] = None,
    converter: Optional[LunisolarConverter] = None,
    config: Optional[LcalConfig] = None,
) -> List[date]:
    """compute_scheduled_occurrences with the PREVIEW window profile."""
    return compute_scheduled_occurrences(
        start_solar_year,
        spec,
        repeat_mode,
        missing_day_strategy,
        include_leap_months_for_repeat=include_leap_months_for_repeat,
        repeat_end_mode=repeat_end_mode,
        repeat_end_count=repeat_end_count,
        repeat_end_date=repeat_end_date,
        profile=WindowProfile.PREVIEW,
        converter=converter,
        config=config,
    )


def commit_occurrences(
    start_solar_year: int,
    spec: LunarSpec,
    repeat_mode: RepeatMode,
    missing_day_strategy: MissingDayStrategy = MissingDayStrategy.SKIP,
    *,
    include_leap_months_for_repeat: bool = False,
    repeat_end_mode: RepeatEndMode = RepeatEndMode.AFTER_OCCURRENCES,
    repeat_end_count: int = 1,
    repeat_end_date: Optional[DateLike] = None,
    converter: Optional[LunisolarConverter] = None,
    config: Optional[LcalConfig] = None,
) -> List[date]:
    """compute_scheduled_occurrences with the COMMIT window profile."""
    return compute_scheduled_occurrences(
        start_solar_year,
        spec,
        repeat_mode,
        missing_day_strategy,
        include_leap_months_for_repeat=include_leap_months_for_repeat,
        repeat_end_mode=repeat_end_mode,
        repeat_end_count=repeat_end_count,
        repeat_end_date=repeat_end_date,
        profile=WindowProfile.COMMIT,
        converter=converter,
        config=config,
    )
