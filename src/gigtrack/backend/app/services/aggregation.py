"""Canonical income aggregation shared by every presentation surface.

The dashboard, the data table and the PDF/CSV report all call
:func:`aggregate` and :func:`serialise_summary`; none of them total records
on their own. ``total_income`` deliberately blends Coles pay net of weekly
withholding with gig income before any tax (gig platforms withhold nothing).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import date
from typing import Any

from gigtrack.backend.app.models import (
    PLATFORM_LABELS,
    AggregateSummary,
    ExpenseRecord,
    IncomeRecord,
    IncomeType,
    OtherIncomeSummary,
    UserSettings,
    WeeklyTaxResult,
)
from gigtrack.backend.config.rates_config import (
    YearConfiguration,
    load_current_configuration,
)

from .calculators import EMPLOYMENT_TYPES, round_currency, total_set_aside, weekly_tax
from .calendar import DEFAULT_TIMEZONE, Clock, local_today, week_bounds

_LOGGER = logging.getLogger(__name__)

WINDOWS = ("all", "week", "today")


def _active(records: Iterable[Any]) -> list[Any]:
    return [record for record in records if not record.archived]


def _summarise_other_income(
    records: Sequence[IncomeRecord],
    configuration: YearConfiguration,
) -> OtherIncomeSummary:
    others = [record for record in records if record.is_universal and record.amount]
    if not others:
        return OtherIncomeSummary()

    by_source: dict[str, float] = {}
    by_type: dict[str, float] = {}
    for record in others:
        source = record.source_name or "Other"
        income_type = record.income_type or IncomeType.OTHER.value
        by_source[source] = by_source.get(source, 0.0) + record.amount
        by_type[income_type] = by_type.get(income_type, 0.0) + record.amount

    set_aside = total_set_aside(
        ({"amount": record.amount, "income_type": record.income_type} for record in others),
        configuration.set_aside.self_employed_rate,
        policies=configuration.set_aside,
        schedule=configuration.annual_tax,
    )
    return OtherIncomeSummary(
        gross=sum(record.amount for record in others),
        by_source=by_source,
        by_type=by_type,
        set_aside=set_aside,
    )


def aggregate(
    incomes: Iterable[IncomeRecord],
    expenses: Iterable[ExpenseRecord],
    weekly_target: float,
    *,
    tax_rate: float | None = None,
    configuration: YearConfiguration | None = None,
) -> AggregateSummary:
    """Combine income and expense records into the canonical summary.

    Archived records are ignored. Coles withholding is computed once on the
    Coles total rather than per record, because the weekly brackets are not
    linear. Empty inputs produce an all-zero summary.
    """

    configuration = configuration or load_current_configuration()
    if tax_rate is None:
        tax_rate = configuration.defaults.tax_rate

    active_incomes = _active(incomes)
    active_expenses = _active(expenses)

    doordash = sum(record.doordash for record in active_incomes)
    ubereats = sum(record.ubereats for record in active_incomes)
    didi = sum(record.didi for record in active_incomes)
    coles = sum(record.coles for record in active_incomes)
    tips = sum(record.tips for record in active_incomes)
    coles_hours = sum(record.coles_hours or 0.0 for record in active_incomes)

    gig_income = doordash + ubereats + didi + tips
    coles_tax = weekly_tax(coles, configuration.weekly_withholding).tax
    coles_net_income = coles - coles_tax
    total_income = coles_net_income + gig_income

    total_expenses = sum(expense.amount for expense in active_expenses)
    net_balance = total_income - total_expenses
    gig_tax_set_aside = gig_income * tax_rate / 100

    other = _summarise_other_income(active_incomes, configuration)
    other_employment = sum(
        amount for income_type, amount in other.by_type.items() if income_type in EMPLOYMENT_TYPES
    )

    source_totals = {
        PLATFORM_LABELS["doordash"]: doordash,
        PLATFORM_LABELS["ubereats"]: ubereats,
        PLATFORM_LABELS["didi"]: didi,
        PLATFORM_LABELS["coles"]: coles,
        PLATFORM_LABELS["tips"]: tips,
    }
    for source, amount in other.by_source.items():
        source_totals[source] = source_totals.get(source, 0.0) + amount

    return AggregateSummary(
        doordash_income=doordash,
        ubereats_income=ubereats,
        didi_income=didi,
        coles_gross_income=coles,
        tips=tips,
        coles_hours=coles_hours,
        gig_income=gig_income,
        coles_tax=coles_tax,
        coles_net_income=coles_net_income,
        total_income=total_income,
        total_expenses=total_expenses,
        net_balance=net_balance,
        weekly_target=weekly_target,
        remaining=weekly_target - total_income,
        didi_gst_amount=(didi - total_expenses) * configuration.gst.rate,
        gross_income=coles + gig_income + other.gross,
        employment_income=coles + other_employment,
        self_employed_income=gig_income + other.gross - other_employment,
        source_totals=source_totals,
        tax_rate=tax_rate,
        gig_tax_set_aside=gig_tax_set_aside,
        net_after_set_aside=net_balance - gig_tax_set_aside,
        other_income=other,
        record_count=len(active_incomes),
        expense_count=len(active_expenses),
    )


def in_range(records: Iterable[Any], start: date, end: date) -> list[Any]:
    """Return records dated within ``[start, end]`` inclusive."""

    return [record for record in records if start <= record.date <= end]


def aggregate_week(
    incomes: Iterable[IncomeRecord],
    expenses: Iterable[ExpenseRecord],
    weekly_target: float,
    *,
    reference: date | None = None,
    clock: Clock | None = None,
    tax_rate: float | None = None,
    configuration: YearConfiguration | None = None,
) -> AggregateSummary:
    """Aggregate only the Monday-to-Sunday week containing ``reference``."""

    configuration = configuration or load_current_configuration()
    start, end = week_bounds(reference or local_today(clock, configuration.timezone))
    return aggregate(
        in_range(incomes, start, end),
        in_range(expenses, start, end),
        weekly_target,
        tax_rate=tax_rate,
        configuration=configuration,
    )


def aggregate_day(
    incomes: Iterable[IncomeRecord],
    expenses: Iterable[ExpenseRecord],
    weekly_target: float,
    *,
    day: date | None = None,
    clock: Clock | None = None,
    tax_rate: float | None = None,
    configuration: YearConfiguration | None = None,
) -> AggregateSummary:
    """Aggregate the records dated on ``day`` (local today by default)."""

    configuration = configuration or load_current_configuration()
    target_day = day or local_today(clock, configuration.timezone)
    return aggregate(
        in_range(incomes, target_day, target_day),
        in_range(expenses, target_day, target_day),
        weekly_target,
        tax_rate=tax_rate,
        configuration=configuration,
    )


def weekly_coles(
    incomes: Iterable[IncomeRecord],
    *,
    reference: date | None = None,
    clock: Clock | None = None,
    configuration: YearConfiguration | None = None,
) -> WeeklyTaxResult:
    """Withholding on the Coles pay earned in the week containing ``reference``."""

    configuration = configuration or load_current_configuration()
    start, end = week_bounds(reference or local_today(clock, configuration.timezone))
    total = sum(record.coles for record in _active(in_range(incomes, start, end)))
    return weekly_tax(total, configuration.weekly_withholding)


def window_records(
    window: str,
    records: Iterable[Any],
    *,
    reference: date | None = None,
    clock: Clock | None = None,
    tz_name: str = DEFAULT_TIMEZONE,
) -> list[Any]:
    """Return the records of ``window`` (``all``, ``week`` or ``today``).

    ``tz_name`` decides which calendar day is "today" when no ``reference``
    is given.
    """

    if window not in WINDOWS:
        raise ValueError(f"Unknown summary window '{window}'")
    if window == "all":
        return list(records)

    day = reference or local_today(clock, tz_name)
    if window == "week":
        return in_range(records, *week_bounds(day))
    return in_range(records, day, day)


def aggregate_window(
    window: str,
    incomes: Iterable[IncomeRecord],
    expenses: Iterable[ExpenseRecord],
    settings: UserSettings,
    *,
    reference: date | None = None,
    clock: Clock | None = None,
    configuration: YearConfiguration | None = None,
) -> AggregateSummary:
    """Aggregate the full ledger, the current week or a single day."""

    configuration = configuration or load_current_configuration()
    tz_name = configuration.timezone
    _LOGGER.debug("Aggregating %s window", window)
    return aggregate(
        window_records(window, incomes, reference=reference, clock=clock, tz_name=tz_name),
        window_records(window, expenses, reference=reference, clock=clock, tz_name=tz_name),
        settings.weekly_target,
        tax_rate=settings.tax_rate,
        configuration=configuration,
    )


def serialise_summary(summary: AggregateSummary) -> dict[str, Any]:
    """Round every currency figure for display, keeping the raw summary intact."""

    other = summary.other_income
    return {
        "doordash_income": round_currency(summary.doordash_income),
        "ubereats_income": round_currency(summary.ubereats_income),
        "didi_income": round_currency(summary.didi_income),
        "coles_gross_income": round_currency(summary.coles_gross_income),
        "tips": round_currency(summary.tips),
        "coles_hours": round(summary.coles_hours, 2),
        "gig_income": round_currency(summary.gig_income),
        "coles_tax": round_currency(summary.coles_tax),
        "coles_net_income": round_currency(summary.coles_net_income),
        "total_income": round_currency(summary.total_income),
        "total_expenses": round_currency(summary.total_expenses),
        "net_balance": round_currency(summary.net_balance),
        "weekly_target": round_currency(summary.weekly_target),
        "remaining": round_currency(summary.remaining),
        "didi_gst_amount": round_currency(summary.didi_gst_amount),
        "gross_income": round_currency(summary.gross_income),
        "employment_income": round_currency(summary.employment_income),
        "self_employed_income": round_currency(summary.self_employed_income),
        "source_totals": {
            source: round_currency(amount) for source, amount in summary.source_totals.items()
        },
        "tax_rate": summary.tax_rate,
        "gig_tax_set_aside": round_currency(summary.gig_tax_set_aside),
        "net_after_set_aside": round_currency(summary.net_after_set_aside),
        "other_income": {
            "gross": round_currency(other.gross),
            "by_source": {key: round_currency(value) for key, value in other.by_source.items()},
            "by_type": {key: round_currency(value) for key, value in other.by_type.items()},
            "set_aside": other.set_aside.as_dict(),
        },
        "record_count": summary.record_count,
        "expense_count": summary.expense_count,
    }


__all__ = [
    "WINDOWS",
    "aggregate",
    "aggregate_day",
    "aggregate_week",
    "aggregate_window",
    "in_range",
    "serialise_summary",
    "weekly_coles",
    "window_records",
]
