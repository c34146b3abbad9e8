"""Unit tests for the award-rate shift pay calculator."""

from __future__ import annotations

from datetime import date

import pytest

from gigtrack.backend.app.models import AgeBracket, InvalidRangeError, ShiftInput
from gigtrack.backend.app.services.calculators import compute_shift_pay
from gigtrack.backend.config.rates_config import YearConfiguration

WEDNESDAY = date(2025, 7, 16)
SATURDAY = date(2025, 7, 19)
SUNDAY = date(2025, 7, 20)


def _run(
    configuration: YearConfiguration,
    start: float,
    end: float,
    *,
    day: date = WEDNESDAY,
    bracket: AgeBracket = AgeBracket.OVER_20,
    public_holiday: bool = False,
):
    shift = ShiftInput(
        shift_date=day,
        start_time=start,
        end_time=end,
        age_bracket=bracket,
        is_public_holiday=public_holiday,
    )
    return compute_shift_pay(
        shift,
        configuration.award.rates_for(bracket),
        award=configuration.award,
        withholding=configuration.weekly_withholding,
    )


def test_daytime_weekday_shift_is_paid_at_base_rate(configuration: YearConfiguration) -> None:
    result = _run(configuration, 9, 17)

    assert result.total_shift_hours == 8
    assert result.unpaid_break_hours == 0.5
    assert result.paid_hours == 7.5
    assert len(result.segments) == 1
    segment = result.segments[0]
    assert segment.label == "Base Rate (Mon-Fri 7am-6pm)"
    assert segment.rate == pytest.approx(27.14)
    assert result.gross_pay == pytest.approx(203.55)
    assert result.estimated_tax == 0
    assert result.estimated_net_pay == pytest.approx(203.55)


def test_break_centred_after_boundary_comes_off_evening_hours(
    configuration: YearConfiguration,
) -> None:
    result = _run(configuration, 14, 23)

    assert result.unpaid_break_hours == 1.0
    base, evening = result.segments
    assert base.hours == pytest.approx(4)
    assert evening.hours == pytest.approx(4)
    assert evening.rate == pytest.approx(33.92)
    assert result.gross_pay == pytest.approx(244.24)


def test_break_before_boundary_comes_off_base_hours(configuration: YearConfiguration) -> None:
    result = _run(configuration, 12, 20)

    base, evening = result.segments
    assert base.hours == pytest.approx(5.5)
    assert evening.hours == pytest.approx(2)
    assert result.gross_pay == pytest.approx(5.5 * 27.14 + 2 * 33.92)


def test_break_straddling_boundary_is_split(configuration: YearConfiguration) -> None:
    result = _run(configuration, 15, 21)

    base, evening = result.segments
    assert base.hours == pytest.approx(2.75)
    assert evening.hours == pytest.approx(2.75)


def test_evening_only_shift(configuration: YearConfiguration) -> None:
    result = _run(configuration, 18, 22)

    assert result.unpaid_break_hours == 0
    assert [segment.label for segment in result.segments] == ["Evening (Mon-Fri 6pm-11pm)"]
    assert result.gross_pay == pytest.approx(135.68)


@pytest.mark.parametrize(
    ("day", "expected_rate"),
    [(SATURDAY, 33.92), (SUNDAY, 40.70)],
    ids=["saturday", "sunday"],
)
def test_weekend_shift_uses_single_segment(
    configuration: YearConfiguration, day: date, expected_rate: float
) -> None:
    result = _run(configuration, 9, 17, day=day)

    assert len(result.segments) == 1
    assert result.segments[0].rate == pytest.approx(expected_rate)
    assert result.gross_pay == pytest.approx(7.5 * expected_rate)


def test_public_holiday_overrides_weekday_split(configuration: YearConfiguration) -> None:
    result = _run(configuration, 14, 23, public_holiday=True)

    assert len(result.segments) == 1
    assert result.segments[0].label == "Public Holiday"
    assert result.gross_pay == pytest.approx(8 * 61.05)


def test_junior_rates_apply_for_younger_brackets(configuration: YearConfiguration) -> None:
    result = _run(configuration, 9, 17, bracket=AgeBracket.AGE_19)

    assert result.gross_pay == pytest.approx(7.5 * 21.84)


def test_short_shift_has_no_break(configuration: YearConfiguration) -> None:
    result = _run(configuration, 9, 14)

    assert result.unpaid_break_hours == 0
    assert result.paid_hours == 5


@pytest.mark.parametrize(("start", "end"), [(17, 9), (9, 9)])
def test_shift_must_end_after_it_starts(
    configuration: YearConfiguration, start: float, end: float
) -> None:
    with pytest.raises(InvalidRangeError):
        _run(configuration, start, end)


@pytest.mark.parametrize(
    ("start", "end"),
    [(7, 13), (9, 17.5), (10, 19), (14, 23), (16.5, 22.75), (18, 23.5)],
)
def test_segment_hours_always_sum_to_paid_hours(
    configuration: YearConfiguration, start: float, end: float
) -> None:
    result = _run(configuration, start, end)

    assert sum(segment.hours for segment in result.segments) == pytest.approx(result.paid_hours)
    assert result.gross_pay == pytest.approx(sum(s.subtotal for s in result.segments))
    assert all(segment.hours > 0 for segment in result.segments)


def test_estimated_tax_uses_weekly_table(configuration: YearConfiguration) -> None:
    result = _run(configuration, 9, 17, public_holiday=True)

    # 457.875 gross -> x = 457 -> 0.16 * 457 - 57.8462
    assert result.estimated_tax == 15
    assert result.estimated_net_pay == pytest.approx(result.gross_pay - 15)
