from __future__ import annotations

import datetime as _dt
import logging
import time
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field, ValidationError

from lcal.core.config import LcalConfig, config_from_env
from lcal.core.errors import LcalError
from lcal.core.lunisolar import converter_for
from lcal.core.rule import (
    LunarRule,
    LunarSpec,
    MissingDayStrategy,
    RepeatEndMode,
    RepeatMode,
    WindowProfile,
)
from lcal.features.config import DEFAULT_PREVIEW_LIMIT
from lcal.features.preview import annotate_occurrences, leap_month_summary

router = APIRouter(prefix="/api/v1", tags=["public"])

log = logging.getLogger("lcal.api.public")


# ============================================================
# Request / Response Models
# ============================================================
class RuleModel(BaseModel):
    start_year: int
    month: int = Field(ge=1, le=12)
    day: int = Field(ge=1, le=30)
    leap: bool = Field(default=False, description="true for the leap copy of the month")
    repeat_mode: RepeatMode = RepeatMode.NONE
    missing_day_strategy: MissingDayStrategy = MissingDayStrategy.SKIP
    include_leap_months: bool = False
    repeat_end_mode: RepeatEndMode = RepeatEndMode.AFTER_OCCURRENCES
    repeat_end_count: int = 1
    repeat_end_date: Optional[date] = None

    def to_rule(self) -> LunarRule:
        return LunarRule(
            start_solar_year=self.start_year,
            spec=LunarSpec(month=self.month, day=self.day, is_leap_month=self.leap),
            repeat_mode=self.repeat_mode,
            missing_day_strategy=self.missing_day_strategy,
            include_leap_months_for_repeat=self.include_leap_months,
            repeat_end_mode=self.repeat_end_mode,
            repeat_end_count=self.repeat_end_count,
            repeat_end_date=self.repeat_end_date,
        )


class LunarDate(BaseModel):
    year: int
    month: int
    day: int
    is_leap: bool = Field(default=False, description="true for the leap copy of the month")


class OccurrenceItem(BaseModel):
    date: _dt.date
    key: str
    lunar: LunarDate
    label: str
    month_name: str


class OccurrencesResponse(BaseModel):
    meta: Dict[str, Any] = Field(default_factory=dict)
    rule: Dict[str, Any] = Field(default_factory=dict)
    count: int
    occurrences: List[OccurrenceItem] = Field(default_factory=list)
    leap_month_summary: Optional[str] = None


# =========================================================
# Public JSON API (function-style, HTTP-ready)
# =========================================================
def _parse_date_any(x: str | date | None) -> Optional[date]:
    if x is None or isinstance(x, date):
        return x
    s = str(x).strip()
    if not s:
        return None
    return _parse_iso_date(s)


def _parse_iso_date(s: str) -> date:
    try:
        return date.fromisoformat(s)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"Invalid date format: {s} (expected YYYY-MM-DD)") from e


def get_occurrences(
    start_year: int,
    month: int,
    day: int,
    *,
    leap: bool = False,
    repeat_mode: str = "none",
    missing_day_strategy: str = "skip",
    include_leap_months: bool = False,
    repeat_end_mode: str = "afterOccurrences",
    repeat_end_count: int = 1,
    repeat_end_date: str | date | None = None,
    profile: str = "preview",
    limit: Optional[int] = DEFAULT_PREVIEW_LIMIT,
    config: Optional[LcalConfig] = None,
) -> dict:
    cfg = config or config_from_env()
    try:
        model = RuleModel(
            start_year=start_year,
            month=month,
            day=day,
            leap=leap,
            repeat_mode=repeat_mode,
            missing_day_strategy=missing_day_strategy,
            include_leap_months=include_leap_months,
            repeat_end_mode=repeat_end_mode,
            repeat_end_count=repeat_end_count,
            repeat_end_date=_parse_date_any(repeat_end_date),
        )
        prof = WindowProfile(profile)
    except (ValidationError, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    conv = converter_for(cfg.lunisolar)
    try:
        dates = model.to_rule().occurrences(prof, converter=conv, config=cfg)
    except LcalError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    views = annotate_occurrences(dates, converter=conv, limit=limit)

    return {
        "meta": {
            "tz": cfg.lunisolar.tz,
            "profile": prof.value,
            "limit": limit,
        },
        "rule": {
            "start_year": model.start_year,
            "month": model.month,
            "day": model.day,
            "leap": model.leap,
            "repeat_mode": model.repeat_mode.value,
            "missing_day_strategy": model.missing_day_strategy.value,
            "include_leap_months": model.include_leap_months,
            "repeat_end_mode": model.repeat_end_mode.value,
            "repeat_end_count": model.repeat_end_count,
            "repeat_end_date": None if model.repeat_end_date is None else model.repeat_end_date.isoformat(),
        },
        "count": len(dates),
        "occurrences": [
            {
                "date": v.date.isoformat(),
                "key": v.key,
                "lunar": {
                    "year": int(v.lunar.year),
                    "month": int(v.lunar.month),
                    "day": int(v.lunar.day),
                    "is_leap": bool(v.lunar.is_leap),
                },
                "label": v.label,
                "month_name": v.month_name,
            }
            for v in views
        ],
        "leap_month_summary": leap_month_summary(dates, converter=conv),
    }


# ============================================================
# Endpoints
# ============================================================
@router.get("/occurrences", response_model=OccurrencesResponse)
def get_occurrences_endpoint(
    start_year: int = Query(..., description="solar year of the first occurrence"),
    month: int = Query(..., ge=1, le=12),
    day: int = Query(..., ge=1, le=30),
    leap: bool = Query(False),
    repeat_mode: RepeatMode = Query(RepeatMode.NONE),
    missing_day_strategy: MissingDayStrategy = Query(MissingDayStrategy.SKIP),
    include_leap_months: bool = Query(False),
    repeat_end_mode: RepeatEndMode = Query(RepeatEndMode.AFTER_OCCURRENCES),
    repeat_end_count: int = Query(1),
    repeat_end_date: str = Query("", description="YYYY-MM-DD"),
    profile: WindowProfile = Query(WindowProfile.PREVIEW),
    limit: int = Query(DEFAULT_PREVIEW_LIMIT, ge=1, le=2000),
    timing: bool = Query(False, description="log timings (diagnostics)"),
) -> OccurrencesResponse:
    t0 = time.perf_counter()
    try:
        res = get_occurrences(
            start_year,
            month,
            day,
            leap=leap,
            repeat_mode=repeat_mode.value,
            missing_day_strategy=missing_day_strategy.value,
            include_leap_months=include_leap_months,
            repeat_end_mode=repeat_end_mode.value,
            repeat_end_count=repeat_end_count,
            repeat_end_date=repeat_end_date,
            profile=profile.value,
            limit=limit,
        )
    except HTTPException:
        raise
    except Exception:
        log.exception("occurrence computation failed: start_year=%s month=%s day=%s", start_year, month, day)
        raise
    t1 = time.perf_counter()

    if timing:
        log.warning("timing /occurrences start_year=%s mode=%s total=%.3fs", start_year, repeat_mode.value, t1 - t0)

    return OccurrencesResponse(**res)
