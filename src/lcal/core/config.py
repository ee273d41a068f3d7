# src/lcal/core/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field


# ============================================================
# env helpers
# ============================================================

def _env_truthy(name: str) -> bool:
    v = os.environ.get(name, "")
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


def _env_int(name: str, default: int) -> int:
    v = os.environ.get(name, "").strip()
    try:
        return int(v) if v else default
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, "").strip() or default


def debug_segments_enabled() -> bool:
    return _env_truthy("LCAL_DEBUG_SEGMENTS")


# ============================================================
# configs
# ============================================================

@dataclass(frozen=True)
class LuniSolarConfig:
    """
    Supported span of the lunisolar converter.

    min_year / max_year are solar (Gregorian) years, both inclusive.
    tz is the zone used to turn aware datetimes into calendar days.
    """
    min_year: int = 1901
    max_year: int = 2199
    tz: str = "Asia/Shanghai"


@dataclass(frozen=True)
class RecurrenceConfig:
    # Monthly repeats walk at most this many solar years past the anchor.
    monthly_horizon_years: int = 60


@dataclass(frozen=True)
class WindowConfig:
    """
    Search-window sizing used by the scheduler.

    preview_min_*: lower bound of the preview window for "after N" rules
    by_date_*:     window used when the rule ends on a date
    """
    preview_min_monthly: int = 12
    preview_min_yearly: int = 5
    by_date_monthly: int = 720
    by_date_yearly: int = 120


@dataclass(frozen=True)
class LcalConfig:
    lunisolar: LuniSolarConfig = field(default_factory=LuniSolarConfig)
    recurrence: RecurrenceConfig = field(default_factory=RecurrenceConfig)
    window: WindowConfig = field(default_factory=WindowConfig)


def config_from_env() -> LcalConfig:
    """
    Build an LcalConfig from LCAL_* environment variables.
    Unset or malformed values keep the defaults.
    """
    ls = LuniSolarConfig()
    rc = RecurrenceConfig()
    min_year = _env_int("LCAL_MIN_YEAR", ls.min_year)
    max_year = _env_int("LCAL_MAX_YEAR", ls.max_year)
    if max_year < min_year:
        min_year, max_year = ls.min_year, ls.max_year

    horizon = _env_int("LCAL_MONTHLY_HORIZON_YEARS", rc.monthly_horizon_years)
    if horizon <= 0:
        horizon = rc.monthly_horizon_years

    return LcalConfig(
        lunisolar=LuniSolarConfig(
            min_year=min_year,
            max_year=max_year,
            tz=_env_str("LCAL_TZ", ls.tz),
        ),
        recurrence=RecurrenceConfig(monthly_horizon_years=horizon),
        window=WindowConfig(),
    )
