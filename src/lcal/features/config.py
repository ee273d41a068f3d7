# src/lcal/features/config.py
from __future__ import annotations

"""
Feature-level constants / labels.

- lunar month names: month_no (1..12) => name, with 闰 prefix for leap months
- per-day labels:    "MM/DD", "闰MM/DD"
- occurrence keys:   solar date as YYYY-MM-DD (stable key for sync layers)
"""

from datetime import date
from typing import Dict

LEAP_PREFIX = "闰"

LUNAR_MONTH_NAME_BY_MONTH_NO: Dict[int, str] = {
    1:  "正月",
    2:  "二月",
    3:  "三月",
    4:  "四月",
    5:  "五月",
    6:  "六月",
    7:  "七月",
    8:  "八月",
    9:  "九月",
    10: "十月",
    11: "冬月",
    12: "腊月",
}

OCCURRENCE_KEY_FORMAT = "%Y-%m-%d"

# presentation layers list at most this many dates by default
DEFAULT_PREVIEW_LIMIT = 20


def lunar_month_name_from_month_no(month_no: int) -> str:
    m = int(month_no)
    try:
        return LUNAR_MONTH_NAME_BY_MONTH_NO[m]
    except KeyError as e:
        raise ValueError(f"invalid lunar month_no: {month_no}") from e


def lunar_month_display_name(month_no: int, is_leap: bool) -> str:
    base = lunar_month_name_from_month_no(month_no)
    return f"{LEAP_PREFIX}{base}" if is_leap else base


def lunar_label(month: int, day: int, is_leap: bool) -> str:
    prefix = LEAP_PREFIX if is_leap else ""
    return f"{prefix}{int(month):02d}/{int(day):02d}"


def lunar_month_label(month: int, is_leap: bool) -> str:
    prefix = LEAP_PREFIX if is_leap else ""
    return f"{prefix}{int(month):02d}"


def leap_month_token(solar_year: int, month: int) -> str:
    return f"{int(solar_year)}年{LEAP_PREFIX}{int(month)}月"


def occurrence_key(d: date) -> str:
    return d.strftime(OCCURRENCE_KEY_FORMAT)
