from __future__ import annotations

import inspect
from datetime import date, datetime, timezone

import pytest

from lcal.core.engine import compute_occurrences
from lcal.core.errors import InvalidInputError
from lcal.core.lunisolar import default_converter
from lcal.core.rule import (
    LunarRule,
    LunarSpec,
    MissingDayStrategy,
    RepeatEndMode,
    RepeatMode,
    WindowProfile,
)
from lcal.core.scheduler import (
    SearchWindow,
    apply_repeat_end,
    commit_occurrences,
    compute_scheduled_occurrences,
    preview_occurrences,
    search_window,
)

AFTER = RepeatEndMode.AFTER_OCCURRENCES
ON_DATE = RepeatEndMode.ON_DATE
PREVIEW = WindowProfile.PREVIEW
COMMIT = WindowProfile.COMMIT

NEW_YEAR = LunarSpec(month=1, day=1)
RAW = [date(2023, 1, 22), date(2023, 2, 20), date(2023, 3, 21), date(2023, 4, 20)]


# ============================================================
# window sizing
# ============================================================

@pytest.mark.parametrize(
    "mode, end_mode, count, profile, expected",
    [
        (RepeatMode.NONE, AFTER, 10, PREVIEW, SearchWindow(1, 1)),
        (RepeatMode.NONE, ON_DATE, 10, COMMIT, SearchWindow(1, 1)),
        (RepeatMode.MONTHLY, AFTER, 3, PREVIEW, SearchWindow(12, 1)),
        (RepeatMode.MONTHLY, AFTER, 30, PREVIEW, SearchWindow(30, 1)),
        (RepeatMode.MONTHLY, AFTER, 3, COMMIT, SearchWindow(3, 1)),
        (RepeatMode.MONTHLY, ON_DATE, 3, PREVIEW, SearchWindow(720, 1)),
        (RepeatMode.MONTHLY, ON_DATE, 3, COMMIT, SearchWindow(720, 1)),
        (RepeatMode.YEARLY, AFTER, 2, PREVIEW, SearchWindow(1, 5)),
        (RepeatMode.YEARLY, AFTER, 9, PREVIEW, SearchWindow(1, 9)),
        (RepeatMode.YEARLY, AFTER, 2, COMMIT, SearchWindow(1, 2)),
        (RepeatMode.YEARLY, ON_DATE, 2, PREVIEW, SearchWindow(1, 120)),
        (RepeatMode.YEARLY, ON_DATE, 2, COMMIT, SearchWindow(1, 120)),
    ],
)
def test_search_window_table(mode, end_mode, count, profile, expected):
    assert search_window(mode, end_mode, count, profile) == expected


def test_search_window_floors_count_at_one():
    assert search_window(RepeatMode.MONTHLY, AFTER, 0, COMMIT) == SearchWindow(1, 1)
    assert search_window(RepeatMode.YEARLY, AFTER, -4, COMMIT) == SearchWindow(1, 1)


def test_search_window_accepts_plain_strings():
    assert search_window("monthly", "afterOccurrences", 3, "commit") == SearchWindow(3, 1)


# ============================================================
# termination
# ============================================================

def test_one_time_rule_keeps_only_first_date():
    assert apply_repeat_end(RAW, RepeatMode.NONE, AFTER, 3, None) == RAW[:1]
    assert apply_repeat_end(RAW, RepeatMode.NONE, ON_DATE, 1, date(2030, 1, 1)) == RAW[:1]


def test_after_occurrences_truncates():
    assert apply_repeat_end(RAW, RepeatMode.MONTHLY, AFTER, 2, None) == RAW[:2]
    assert apply_repeat_end(RAW, RepeatMode.MONTHLY, AFTER, 10, None) == RAW


def test_non_positive_count_is_floored_at_one():
    assert apply_repeat_end(RAW, RepeatMode.YEARLY, AFTER, 0, None) == RAW[:1]
    assert apply_repeat_end(RAW, RepeatMode.YEARLY, AFTER, -3, None) == RAW[:1]


def test_on_date_is_inclusive_of_the_end_day():
    assert apply_repeat_end(RAW, RepeatMode.MONTHLY, ON_DATE, 1, date(2023, 3, 21)) == RAW[:3]
    assert apply_repeat_end(RAW, RepeatMode.MONTHLY, ON_DATE, 1, date(2023, 3, 20)) == RAW[:2]
    assert apply_repeat_end(RAW, RepeatMode.MONTHLY, ON_DATE, 1, date(2022, 12, 31)) == []


def test_on_date_accepts_datetimes():
    # naive: wall-clock date as-is
    assert apply_repeat_end(RAW, RepeatMode.MONTHLY, ON_DATE, 1, datetime(2023, 2, 20, 0, 0)) == RAW[:2]
    # aware: 2023-02-19 20:00 UTC is already 2023-02-20 in Asia/Shanghai
    end = datetime(2023, 2, 19, 20, 0, tzinfo=timezone.utc)
    assert apply_repeat_end(RAW, RepeatMode.MONTHLY, ON_DATE, 1, end, tz="Asia/Shanghai") == RAW[:2]
    assert apply_repeat_end(RAW, RepeatMode.MONTHLY, ON_DATE, 1, end, tz="UTC") == RAW[:1]


def test_on_date_defaults_to_configured_zone():
    end = datetime(2023, 2, 19, 20, 0, tzinfo=timezone.utc)
    assert apply_repeat_end(RAW, RepeatMode.MONTHLY, ON_DATE, 1, end) == RAW[:2]


def test_on_date_without_end_date_is_invalid():
    with pytest.raises(InvalidInputError):
        apply_repeat_end(RAW, RepeatMode.MONTHLY, ON_DATE, 1, None)
    with pytest.raises(InvalidInputError):
        compute_scheduled_occurrences(2023, NEW_YEAR, RepeatMode.MONTHLY, repeat_end_mode=ON_DATE)


def test_unknown_timezone_is_invalid():
    with pytest.raises(InvalidInputError):
        apply_repeat_end(RAW, RepeatMode.MONTHLY, ON_DATE, 1, date(2023, 3, 1), tz="Nowhere/Nothing")


# ============================================================
# scheduled occurrences
# ============================================================

def test_preview_monthly_after_occurrences_matches_requested_count():
    dates = preview_occurrences(
        2026,
        NEW_YEAR,
        RepeatMode.MONTHLY,
        MissingDayStrategy.SKIP,
        repeat_end_mode=AFTER,
        repeat_end_count=3,
        repeat_end_date=date.today(),
    )
    assert len(dates) == 3


@pytest.mark.parametrize("profile", [PREVIEW, COMMIT])
@pytest.mark.parametrize("mode, count", [(RepeatMode.MONTHLY, 7), (RepeatMode.YEARLY, 4)])
def test_count_termination_yields_exactly_k(profile, mode, count):
    dates = compute_scheduled_occurrences(
        2023,
        NEW_YEAR,
        mode,
        repeat_end_mode=AFTER,
        repeat_end_count=count,
        profile=profile,
    )
    assert len(dates) == count


def test_count_termination_short_when_fewer_available():
    dates = commit_occurrences(
        2097,
        LunarSpec(month=8, day=15),
        RepeatMode.YEARLY,
        repeat_end_mode=AFTER,
        repeat_end_count=10,
    )
    assert len(dates) == 3


def test_preview_and_commit_agree_on_common_prefix():
    kwargs = dict(repeat_end_mode=AFTER, repeat_end_count=4, include_leap_months_for_repeat=True)
    p = preview_occurrences(2023, NEW_YEAR, RepeatMode.MONTHLY, **kwargs)
    c = commit_occurrences(2023, NEW_YEAR, RepeatMode.MONTHLY, **kwargs)
    assert p == c


@pytest.mark.parametrize("include_leap, expected", [(False, 11), (True, 12)])
def test_date_termination_keeps_every_occurrence_up_to_end(include_leap, expected):
    end = date(2023, 12, 31)
    dates = compute_scheduled_occurrences(
        2023,
        NEW_YEAR,
        RepeatMode.MONTHLY,
        include_leap_months_for_repeat=include_leap,
        repeat_end_mode=ON_DATE,
        repeat_end_date=end,
        profile=COMMIT,
    )
    raw = compute_occurrences(
        2023,
        NEW_YEAR,
        RepeatMode.MONTHLY,
        include_leap_months_for_repeat=include_leap,
        monthly_window_count=720,
    )
    assert all(d <= end for d in dates)
    assert dates == [d for d in raw if d <= end]
    assert len(dates) == expected
    conv = default_converter()
    assert all(conv.solar_to_lunar(d).day == 1 for d in dates)


def test_yearly_date_termination():
    dates = preview_occurrences(
        2023,
        LunarSpec(month=8, day=15),
        RepeatMode.YEARLY,
        repeat_end_mode=ON_DATE,
        repeat_end_date=date(2030, 12, 31),
    )
    assert len(dates) == 8
    assert dates[0] == date(2023, 9, 29)
    assert dates[-1].year == 2030


def test_rule_occurrences_forwards_to_scheduler():
    rule = LunarRule(
        start_solar_year=2023,
        spec=LunarSpec(month=2, day=1, is_leap_month=True),
        repeat_mode=RepeatMode.MONTHLY,
        include_leap_months_for_repeat=True,
        repeat_end_count=3,
    )
    dates = rule.occurrences(COMMIT)
    assert dates[0] == date(2023, 3, 22)
    assert len(dates) == 3
    assert rule.occurrences(PREVIEW) == dates


def test_yearly_date_termination_past_the_twenty_first_century():
    dates = commit_occurrences(
        2026,
        LunarSpec(month=8, day=15),
        RepeatMode.YEARLY,
        repeat_end_mode=ON_DATE,
        repeat_end_date=date(2140, 12, 31),
    )
    assert len(dates) == 115
    assert [d.year for d in dates] == list(range(2026, 2141))
    conv = default_converter()
    for d in dates:
        ld = conv.solar_to_lunar(d)
        assert (ld.month, ld.day, ld.is_leap) == (8, 15, False)


def test_profile_shorthands_pin_their_profile():
    assert "profile" not in inspect.signature(preview_occurrences).parameters
    assert "profile" not in inspect.signature(commit_occurrences).parameters

    kwargs = dict(repeat_end_mode=AFTER, repeat_end_count=3)
    assert preview_occurrences(2023, NEW_YEAR, RepeatMode.MONTHLY, **kwargs) == compute_scheduled_occurrences(
        2023, NEW_YEAR, RepeatMode.MONTHLY, profile=PREVIEW, **kwargs
    )
    assert commit_occurrences(2023, NEW_YEAR, RepeatMode.MONTHLY, **kwargs) == compute_scheduled_occurrences(
        2023, NEW_YEAR, RepeatMode.MONTHLY, profile=COMMIT, **kwargs
    )
    with pytest.raises(TypeError):
        preview_occurrences(2023, NEW_YEAR, RepeatMode.MONTHLY, profile=COMMIT)
