"""Annual resident tax estimate and per-income-type set-aside policies."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from gigtrack.backend.app.models import (
    IncomeType,
    ProgressiveTaxResult,
    SetAsideTotals,
)
from gigtrack.backend.config.rates_config import (
    AnnualTaxConfig,
    SetAsideConfig,
    SetAsidePolicy,
    load_current_configuration,
)

from .utils import round_currency, round_rate

EMPLOYMENT_TYPES = frozenset({IncomeType.SALARY.value, IncomeType.CASUAL.value})


def progressive_tax(
    annual_income: float, schedule: AnnualTaxConfig | None = None
) -> ProgressiveTaxResult:
    """Estimate annual income tax plus Medicare levy for ``annual_income``.

    The levy applies in full once income exceeds the threshold; the low-income
    phase-in is not modelled.
    """

    if annual_income <= 0:
        return ProgressiveTaxResult(0.0, 0.0, 0.0, 0.0)

    schedule = schedule or load_current_configuration().annual_tax

    income_tax = 0.0
    for bracket in schedule.brackets:
        upper = bracket.max
        if annual_income >= bracket.min and (upper is None or annual_income <= upper):
            income_tax = bracket.base + (annual_income - bracket.min + 1) * bracket.rate
            break

    medicare_levy = 0.0
    if annual_income > schedule.medicare_threshold:
        medicare_levy = annual_income * schedule.medicare_levy_rate

    total_tax = income_tax + medicare_levy
    effective_rate = total_tax / annual_income * 100

    return ProgressiveTaxResult(
        income_tax=round_currency(income_tax),
        medicare_levy=round_currency(medicare_levy),
        total_tax=round_currency(total_tax),
        effective_rate=round_rate(effective_rate),
    )


def estimate_set_aside(
    amount: float,
    income_type: str | None,
    self_employed_rate: float | None = None,
    *,
    policies: SetAsideConfig | None = None,
    schedule: AnnualTaxConfig | None = None,
) -> float:
    """Return how much of ``amount`` to reserve for tax given its income type.

    Employment income is annualised and taxed at the resulting effective rate;
    self-employed income uses ``self_employed_rate`` percent; anything else
    falls back to the configured flat rate.
    """

    if amount <= 0:
        return 0.0

    if policies is None or schedule is None:
        configuration = load_current_configuration()
        policies = policies or configuration.set_aside
        schedule = schedule or configuration.annual_tax

    rate = self_employed_rate if self_employed_rate is not None else policies.self_employed_rate
    policy = policies.policy_for(income_type)

    if policy is SetAsidePolicy.PROGRESSIVE:
        annualised = amount * schedule.annualisation_factor
        effective_rate = progressive_tax(annualised, schedule).effective_rate
        return round_currency(amount * effective_rate / 100)
    if policy is SetAsidePolicy.SELF_EMPLOYED:
        return round_currency(amount * rate / 100)
    return round_currency(amount * policies.fallback_rate / 100)


def total_set_aside(
    incomes: Iterable[Mapping[str, Any]],
    self_employed_rate: float | None = None,
    *,
    policies: SetAsideConfig | None = None,
    schedule: AnnualTaxConfig | None = None,
) -> SetAsideTotals:
    """Sum set-aside estimates split into employment and self-employed shares."""

    salary_wages_tax = 0.0
    self_employed_tax = 0.0

    for income in incomes:
        income_type = income.get("income_type")
        tax = estimate_set_aside(
            float(income.get("amount") or 0),
            income_type,
            self_employed_rate,
            policies=policies,
            schedule=schedule,
        )
        if income_type in EMPLOYMENT_TYPES:
            salary_wages_tax += tax
        else:
            self_employed_tax += tax

    return SetAsideTotals(
        salary_wages_tax=round_currency(salary_wages_tax),
        self_employed_tax=round_currency(self_employed_tax),
        total_tax=round_currency(salary_wages_tax + self_employed_tax),
    )


def income_type_label(income_type: str | None, policies: SetAsideConfig | None = None) -> str:
    """Return the display label for ``income_type``."""

    policies = policies or load_current_configuration().set_aside
    return policies.label_for(income_type)


__all__ = [
    "EMPLOYMENT_TYPES",
    "estimate_set_aside",
    "income_type_label",
    "progressive_tax",
    "total_set_aside",
]
