from __future__ import annotations

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from lcal.api.app import app
from lcal.api.public import get_occurrences


def test_get_occurrences_one_time_leap():
    res = get_occurrences(2023, 2, 1, leap=True)
    assert res["count"] == 1
    occ = res["occurrences"][0]
    assert occ["date"] == "2023-03-22"
    assert occ["key"] == "2023-03-22"
    assert occ["lunar"] == {"year": 2023, "month": 2, "day": 1, "is_leap": True}
    assert occ["label"] == "闰02/01"
    assert res["leap_month_summary"] == "2023年闰2月"
    assert res["meta"]["profile"] == "preview"


def test_get_occurrences_limit_caps_rows_not_count():
    res = get_occurrences(
        2023,
        1,
        1,
        repeat_mode="monthly",
        repeat_end_count=30,
        limit=5,
    )
    assert res["count"] == 30
    assert len(res["occurrences"]) == 5


def test_get_occurrences_until_date():
    res = get_occurrences(
        2023,
        8,
        15,
        repeat_mode="yearly",
        repeat_end_mode="onDate",
        repeat_end_date="2025-12-31",
        profile="commit",
    )
    assert [o["date"] for o in res["occurrences"]] == ["2023-09-29", "2024-09-17", "2025-10-06"]
    assert res["rule"]["repeat_end_date"] == "2025-12-31"


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(start_year=2024, month=2, day=1, leap=True),
        dict(start_year=2023, month=13, day=1),
        dict(start_year=2023, month=1, day=1, repeat_mode="weekly"),
        dict(start_year=2023, month=1, day=1, profile="draft"),
        dict(start_year=2023, month=1, day=1, repeat_mode="monthly", repeat_end_mode="onDate", repeat_end_date="2023-13-01"),
        dict(start_year=1800, month=1, day=1),
    ],
)
def test_get_occurrences_invalid_input_is_422(kwargs):
    with pytest.raises(HTTPException) as ei:
        get_occurrences(**kwargs)
    assert ei.value.status_code == 422


def test_http_occurrences_route():
    client = TestClient(app)
    r = client.get(
        "/api/v1/occurrences",
        params={
            "start_year": 2023,
            "month": 1,
            "day": 1,
            "repeat_mode": "monthly",
            "include_leap_months": "true",
            "repeat_end_count": 20,
        },
    )
    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 20
    assert any(o["lunar"]["is_leap"] for o in body["occurrences"])


def test_http_occurrences_route_rejects_missing_leap_month():
    client = TestClient(app)
    r = client.get(
        "/api/v1/occurrences",
        params={"start_year": 2024, "month": 2, "day": 1, "leap": "true"},
    )
    assert r.status_code == 422
    assert "2024" in r.json()["detail"]
