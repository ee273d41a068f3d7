# src/lcal/features/preview.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence

from lcal.core.lunisolar import LunarYMD, LunisolarConverter, default_converter
from lcal.features.config import (
    leap_month_token,
    lunar_label,
    lunar_month_display_name,
    occurrence_key,
)


@dataclass(frozen=True)
class OccurrenceView:
    """One occurrence as a presentation layer shows it."""
    date: date
    key: str
    lunar: LunarYMD
    label: str
    month_name: str

    @property
    def is_leap(self) -> bool:
        return self.lunar.is_leap


def annotate_occurrence(d: date, *, converter: Optional[LunisolarConverter] = None) -> OccurrenceView:
    conv = converter if converter is not None else default_converter()
    ld = conv.solar_to_lunar(d)
    return OccurrenceView(
        date=d,
        key=occurrence_key(d),
        lunar=ld,
        label=lunar_label(ld.month, ld.day, ld.is_leap),
        month_name=lunar_month_display_name(ld.month, ld.is_leap),
    )


def annotate_occurrences(
    dates: Sequence[date],
    *,
    converter: Optional[LunisolarConverter] = None,
    limit: Optional[int] = None,
) -> List[OccurrenceView]:
    """
    Attach the lunar rendering to each date.

    limit caps the number of rows (e.g. DEFAULT_PREVIEW_LIMIT for a list
    view); None keeps all of them.
    """
    rows = dates if limit is None else dates[: max(0, int(limit))]
    return [annotate_occurrence(d, converter=converter) for d in rows]


def leap_month_summary(
    dates: Iterable[date],
    *,
    converter: Optional[LunisolarConverter] = None,
) -> Optional[str]:
    """
    "2023年闰2月、2025年闰6月" for the leap months hit by `dates`, in first-seen
    order, or None if no date falls in a leap month.
    """
    conv = converter if converter is not None else default_converter()
    seen: set[str] = set()
    ordered: List[str] = []
    for d in dates:
        ld = conv.solar_to_lunar(d)
        if not ld.is_leap:
            continue
        token = leap_month_token(d.year, ld.month)
        if token not in seen:
            seen.add(token)
            ordered.append(token)
    return "、".join(ordered) if ordered else None
