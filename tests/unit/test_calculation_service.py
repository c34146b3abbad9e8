"""Unit tests for the calculation service entry points."""

from __future__ import annotations

import pytest

from gigtrack.backend.app.models import InvalidRangeError, parse_time_of_day
from gigtrack.backend.app.services.calculation_service import (
    _RESPONSE_VALIDATION_ENV,
    calculate_progressive_tax,
    calculate_set_aside,
    calculate_shift_pay,
    calculate_weekly_tax,
    resolve_configuration,
)

SHIFT = {"date": "2025-07-16", "start_time": "14:00", "end_time": "23:00"}


def test_shift_pay_reports_meta() -> None:
    result = calculate_shift_pay(SHIFT)

    assert result["meta"]["year"] == 2025
    assert result["meta"]["estimate_only"] is True
    assert "profile_ms" not in result["meta"]
    assert result["age_bracket"] == "20+"


def test_shift_pay_accepts_numeric_hours() -> None:
    result = calculate_shift_pay({"date": "2025-07-16", "start_time": 14, "end_time": 23})

    assert result["gross_pay"] == pytest.approx(244.24)


def test_profiling_adds_timings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GIGTRACK_PROFILE_CALCULATIONS", "1")

    result = calculate_shift_pay(SHIFT)

    assert "shift_pay" in result["meta"]["profile_ms"]


def test_response_validation_round_trips(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(_RESPONSE_VALIDATION_ENV, "true")

    validated = calculate_shift_pay(SHIFT)
    monkeypatch.delenv(_RESPONSE_VALIDATION_ENV)

    assert validated == calculate_shift_pay(SHIFT)


def test_reversed_shift_raises_invalid_range() -> None:
    with pytest.raises(InvalidRangeError):
        calculate_shift_pay({"date": "2025-07-16", "start_time": "17:00", "end_time": "09:00"})


@pytest.mark.parametrize(
    "payload",
    [
        {"start_time": "09:00", "end_time": "17:00"},
        {"date": "2025-07-16", "start_time": "25:00", "end_time": "26:00"},
        {"date": "2025-07-16", "start_time": "09:00", "end_time": "17:00", "age_bracket": "16"},
        {"date": "2025-07-16", "start_time": "09:00", "end_time": "17:00", "extra": 1},
        {"date": "2025-07-16", "start_time": "7:30pm", "end_time": "22:00"},
        {"date": "2025-07-16", "start_time": "09:00", "end_time": "12:345"},
    ],
)
def test_invalid_shift_payloads_raise_value_error(payload: dict[str, object]) -> None:
    with pytest.raises(ValueError) as excinfo:
        calculate_shift_pay(payload)

    assert str(excinfo.value).startswith("Invalid payload:")


def test_weekly_tax_coerces_blank_amounts() -> None:
    assert calculate_weekly_tax({"gross_amount": ""})["tax"] == 0
    result = calculate_weekly_tax({"gross_amount": "1,000"})
    assert result["tax"] == 143
    assert result["net_pay"] == 857


def test_progressive_tax_response() -> None:
    result = calculate_progressive_tax({"annual_income": 50_000})

    assert result["total_tax"] == pytest.approx(6_788)
    assert result["effective_rate"] == pytest.approx(13.6)
    assert result["meta"] == {"year": 2025}


def test_set_aside_response_uses_configured_rate() -> None:
    result = calculate_set_aside({"amount": 400, "income_type": "Gig"})

    assert result["set_aside"] == pytest.approx(100)
    assert result["policy"] == "self_employed"
    assert result["income_type_label"] == "Gig Work"
    assert result["self_employed_rate"] == 25


def test_set_aside_defaults_to_other() -> None:
    result = calculate_set_aside({"amount": 100})

    assert result["income_type"] == "other"
    assert result["set_aside"] == pytest.approx(20)


def test_unknown_year_is_rejected() -> None:
    with pytest.raises(ValueError):
        resolve_configuration(1990)


@pytest.mark.parametrize(
    ("value", "expected"),
    [("7:30", 7.5), (" 18:05 ", 18 + 5 / 60), ("09:00", 9.0), ("14.5", 14.5), (23, 23.0)],
)
def test_parse_time_of_day_accepts_clock_and_numeric_forms(value: object, expected: float) -> None:
    assert parse_time_of_day(value) == pytest.approx(expected)


@pytest.mark.parametrize("value", ["7:30pm", "12:345", "7:3", "12:30:00", ":30", "7:60"])
def test_parse_time_of_day_rejects_trailing_or_malformed_text(value: str) -> None:
    with pytest.raises(ValueError):
        parse_time_of_day(value)
