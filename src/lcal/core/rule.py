# src/lcal/core/rule.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from .errors import InvalidInputError
from .timeutil import DateLike

if TYPE_CHECKING:
    from .config import LcalConfig
    from .lunisolar import LunisolarConverter


class RepeatMode(str, Enum):
    NONE = "none"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class MissingDayStrategy(str, Enum):
    """What to do when the target lunar day does not exist in a month (day 30 of a 29-day month)."""
    SKIP = "skip"
    FALLBACK_TO_MONTH_END = "fallbackToMonthEnd"


class RepeatEndMode(str, Enum):
    AFTER_OCCURRENCES = "afterOccurrences"
    ON_DATE = "onDate"


class WindowProfile(str, Enum):
    """
    PREVIEW: generous, display-oriented search window
    COMMIT:  smallest window that satisfies the termination condition
    """
    PREVIEW = "preview"
    COMMIT = "commit"


@dataclass(frozen=True)
class LunarSpec:
    """
    Target lunar month/day, optionally restricted to the leap copy of that month.

    day may exceed the real length of a given month (day 30 of a 29-day
    month); MissingDayStrategy decides what happens then.
    """
    month: int
    day: int
    is_leap_month: bool = False

    def __post_init__(self) -> None:
        if not (1 <= int(self.month) <= 12):
            raise InvalidInputError(f"lunar month must be in 1..12 (got {self.month})")
        if not (1 <= int(self.day) <= 30):
            raise InvalidInputError(f"lunar day must be in 1..30 (got {self.day})")

    @property
    def label(self) -> str:
        prefix = "闰" if self.is_leap_month else ""
        return f"{prefix}{int(self.month):02d}/{int(self.day):02d}"

    def without_leap(self) -> LunarSpec:
        return LunarSpec(month=self.month, day=self.day, is_leap_month=False)


@dataclass(frozen=True)
class LunarRule:
    """Every input of one recurrence rule, as handed over by a form or a stored descriptor."""
    start_solar_year: int
    spec: LunarSpec
    repeat_mode: RepeatMode = RepeatMode.NONE
    missing_day_strategy: MissingDayStrategy = MissingDayStrategy.SKIP
    include_leap_months_for_repeat: bool = False
    repeat_end_mode: RepeatEndMode = RepeatEndMode.AFTER_OCCURRENCES
    repeat_end_count: int = 1
    repeat_end_date: Optional[DateLike] = None

    def occurrences(
        self,
        profile: WindowProfile = WindowProfile.PREVIEW,
        *,
        converter: Optional["LunisolarConverter"] = None,
        config: Optional["LcalConfig"] = None,
    ) -> List[date]:
        from .scheduler import compute_scheduled_occurrences

        return compute_scheduled_occurrences(
            self.start_solar_year,
            self.spec,
            self.repeat_mode,
            self.missing_day_strategy,
            include_leap_months_for_repeat=self.include_leap_months_for_repeat,
            repeat_end_mode=self.repeat_end_mode,
            repeat_end_count=self.repeat_end_count,
            repeat_end_date=self.repeat_end_date,
            profile=profile,
            converter=converter,
            config=config,
        )
