"""Shift gross pay calculator for award-rate retail shifts."""

from __future__ import annotations

from gigtrack.backend.app.models import (
    DayType,
    InvalidRangeError,
    PaySegment,
    ShiftInput,
    ShiftResult,
)
from gigtrack.backend.app.services.calendar import day_type
from gigtrack.backend.config.rates_config import (
    AwardConfig,
    RateSet,
    WeeklyWithholdingConfig,
    load_current_configuration,
)

from .withholding import weekly_tax


def _split_weekday(
    shift: ShiftInput,
    rates: RateSet,
    award: AwardConfig,
    total_hours: float,
    break_hours: float,
    paid_hours: float,
) -> list[PaySegment]:
    boundary = award.evening_start
    labels = award.labels
    start, end = shift.start_time, shift.end_time

    if end <= boundary:
        return [PaySegment.create(paid_hours, rates.base, labels.base)]
    if start >= boundary:
        return [PaySegment.create(paid_hours, rates.evening, labels.evening)]

    base_hours = min(boundary, end) - start
    evening_hours = end - max(boundary, start)

    # The break sits centred on the shift midpoint.
    break_start = start + total_hours / 2 - break_hours / 2
    break_end = break_start + break_hours
    if break_end <= boundary:
        base_hours -= break_hours
    elif break_start >= boundary:
        evening_hours -= break_hours
    else:
        base_hours -= boundary - break_start
        evening_hours -= break_end - boundary

    segments: list[PaySegment] = []
    if base_hours > 0:
        segments.append(PaySegment.create(base_hours, rates.base, labels.base))
    if evening_hours > 0:
        segments.append(PaySegment.create(evening_hours, rates.evening, labels.evening))
    return segments


def compute_shift_pay(
    shift: ShiftInput,
    rates: RateSet,
    *,
    award: AwardConfig | None = None,
    withholding: WeeklyWithholdingConfig | None = None,
) -> ShiftResult:
    """Split a shift into award-rate segments and total its gross pay.

    Raises :class:`InvalidRangeError` when the shift does not end after it
    starts; no partial breakdown is produced in that case. The tax figures on
    the result come from the weekly withholding table and are advisory only.
    """

    if shift.end_time <= shift.start_time:
        raise InvalidRangeError(shift.start_time, shift.end_time)

    if award is None or withholding is None:
        configuration = load_current_configuration()
        award = award or configuration.award
        withholding = withholding or configuration.weekly_withholding

    total_hours = shift.end_time - shift.start_time
    break_hours = award.break_hours_for(total_hours)
    paid_hours = total_hours - break_hours
    labels = award.labels

    kind = day_type(shift.shift_date)
    if shift.is_public_holiday:
        segments = [PaySegment.create(paid_hours, rates.public_holiday, labels.public_holiday)]
    elif kind == DayType.SUNDAY:
        segments = [PaySegment.create(paid_hours, rates.sunday, labels.sunday)]
    elif kind == DayType.SATURDAY:
        segments = [PaySegment.create(paid_hours, rates.saturday, labels.saturday)]
    else:
        segments = _split_weekday(shift, rates, award, total_hours, break_hours, paid_hours)

    gross_pay = sum(segment.subtotal for segment in segments)
    estimate = weekly_tax(gross_pay, withholding)

    return ShiftResult(
        segments=tuple(segments),
        total_shift_hours=total_hours,
        unpaid_break_hours=break_hours,
        paid_hours=paid_hours,
        gross_pay=gross_pay,
        estimated_tax=estimate.tax,
        estimated_net_pay=estimate.net_pay,
    )


__all__ = ["compute_shift_pay"]
