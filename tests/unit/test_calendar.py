"""Unit tests for the Sydney-anchored calendar helpers."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from gigtrack.backend.app.services.calendar import (
    day_type,
    is_today,
    local_today,
    month_bounds,
    parse_date,
    sort_dates_desc,
    week_bounds,
)


def test_local_today_uses_sydney_date(fixed_clock) -> None:
    # 23:30 UTC on the 15th is already the 16th in Sydney.
    assert local_today(fixed_clock) == date(2025, 7, 16)
    assert is_today("2025-07-16", fixed_clock)
    assert not is_today(date(2025, 7, 15), fixed_clock)


def test_local_today_handles_daylight_saving() -> None:
    # AEDT is UTC+11 in January.
    clock = lambda: datetime(2025, 1, 5, 13, 0, tzinfo=timezone.utc)  # noqa: E731

    assert local_today(clock) == date(2025, 1, 6)


def test_naive_clock_is_rejected() -> None:
    with pytest.raises(ValueError):
        local_today(lambda: datetime(2025, 7, 16, 9, 0))


@pytest.mark.parametrize(
    ("day", "expected"),
    [
        (date(2025, 7, 14), "weekday"),
        (date(2025, 7, 18), "weekday"),
        (date(2025, 7, 19), "saturday"),
        (date(2025, 7, 20), "sunday"),
    ],
)
def test_day_type(day: date, expected: str) -> None:
    assert day_type(day) == expected


@pytest.mark.parametrize(
    "day",
    [date(2025, 7, 14), date(2025, 7, 16), date(2025, 7, 20)],
)
def test_week_bounds_run_monday_to_sunday(day: date) -> None:
    assert week_bounds(day) == (date(2025, 7, 14), date(2025, 7, 20))


def test_month_bounds_handles_february() -> None:
    assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds(date(2025, 12, 31)) == (date(2025, 12, 1), date(2025, 12, 31))


def test_parse_date_rejects_other_formats() -> None:
    assert parse_date(" 2025-07-16 ") == date(2025, 7, 16)
    with pytest.raises(ValueError):
        parse_date("16/07/2025")


def test_sort_dates_desc_compares_calendar_dates() -> None:
    values = ["2025-07-09", date(2025, 7, 10), "2025-06-30"]

    assert sort_dates_desc(values) == [
        date(2025, 7, 10),
        date(2025, 7, 9),
        date(2025, 6, 30),
    ]
