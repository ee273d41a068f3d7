from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass
from datetime import date
from typing import Optional

from lcal.core.config import LcalConfig, config_from_env
from lcal.core.rule import (
    LunarRule,
    LunarSpec,
    MissingDayStrategy,
    RepeatEndMode,
    RepeatMode,
    WindowProfile,
)

DEFAULT_LIMIT = 20


@dataclass(frozen=True)
class ToolRun:
    rule: LunarRule
    profile: WindowProfile
    config: LcalConfig


def add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--year", type=int, required=True, help="starting solar year")
    parser.add_argument("--month", type=int, required=True, help="lunar month 1..12")
    parser.add_argument("--day", type=int, required=True, help="lunar day 1..30")
    parser.add_argument("--leap", action="store_true", help="target the leap copy of the month")
    parser.add_argument("--mode", default=RepeatMode.NONE.value, choices=[m.value for m in RepeatMode])
    parser.add_argument(
        "--missing-day",
        default=MissingDayStrategy.SKIP.value,
        choices=[m.value for m in MissingDayStrategy],
    )
    parser.add_argument("--include-leap-months", action="store_true")
    parser.add_argument("--count", type=int, default=1, help="stop after N occurrences")
    parser.add_argument("--until", default="", help="stop on this date (YYYY-MM-DD), inclusive")
    parser.add_argument("--profile", default=WindowProfile.PREVIEW.value, choices=[p.value for p in WindowProfile])
    parser.add_argument("--limit", type=int, default=DEFAULT_LIMIT)
    parser.add_argument("--json", action="store_true")
    parser.add_argument("--verbose", action="store_true")


def parse_date(s: str) -> date:
    return date.fromisoformat(s)


def resolve_run(args: argparse.Namespace) -> ToolRun:
    until = (args.until or "").strip()
    end_mode = RepeatEndMode.ON_DATE if until else RepeatEndMode.AFTER_OCCURRENCES
    rule = LunarRule(
        start_solar_year=int(args.year),
        spec=LunarSpec(month=int(args.month), day=int(args.day), is_leap_month=bool(args.leap)),
        repeat_mode=RepeatMode(args.mode),
        missing_day_strategy=MissingDayStrategy(args.missing_day),
        include_leap_months_for_repeat=bool(args.include_leap_months),
        repeat_end_mode=end_mode,
        repeat_end_count=int(args.count),
        repeat_end_date=parse_date(until) if until else None,
    )
    return ToolRun(rule=rule, profile=WindowProfile(args.profile), config=config_from_env())


def dump_json(obj: object) -> None:
    print(json.dumps(obj, ensure_ascii=False, indent=2))


def fail(msg: str, code: int = 2) -> None:
    print(f"ERROR: {msg}", file=sys.stderr)
    sys.exit(code)


def limit_or_none(limit: Optional[int]) -> Optional[int]:
    if limit is None or int(limit) <= 0:
        return None
    return int(limit)
