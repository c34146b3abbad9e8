"""Unit tests for the annual tax and set-aside estimates."""

from __future__ import annotations

import pytest

from gigtrack.backend.app.services.calculators import (
    estimate_set_aside,
    income_type_label,
    progressive_tax,
    total_set_aside,
)
from gigtrack.backend.config.rates_config import YearConfiguration


@pytest.mark.parametrize(
    ("income", "income_tax", "medicare", "total", "effective"),
    [
        (0, 0, 0, 0, 0),
        (10_000, 0, 0, 0, 0),
        (20_000, 288, 0, 288, 1.4),
        (50_000, 5_788, 1_000, 6_788, 13.6),
        (200_000, 56_138, 4_000, 60_138, 30.1),
    ],
)
def test_progressive_tax_matches_known_values(
    configuration: YearConfiguration,
    income: float,
    income_tax: float,
    medicare: float,
    total: float,
    effective: float,
) -> None:
    result = progressive_tax(income, configuration.annual_tax)

    assert result.income_tax == pytest.approx(income_tax)
    assert result.medicare_levy == pytest.approx(medicare)
    assert result.total_tax == pytest.approx(total)
    assert result.effective_rate == pytest.approx(effective)


def test_medicare_levy_starts_above_threshold(configuration: YearConfiguration) -> None:
    assert progressive_tax(26_000, configuration.annual_tax).medicare_levy == 0
    assert progressive_tax(26_001, configuration.annual_tax).medicare_levy == pytest.approx(520.02)


def test_negative_income_produces_zero_tax(configuration: YearConfiguration) -> None:
    result = progressive_tax(-5_000, configuration.annual_tax)

    assert result.total_tax == 0
    assert result.effective_rate == 0


def _set_aside(configuration: YearConfiguration, amount: float, income_type: str | None, rate=None):
    return estimate_set_aside(
        amount,
        income_type,
        rate,
        policies=configuration.set_aside,
        schedule=configuration.annual_tax,
    )


def test_employment_income_is_annualised(configuration: YearConfiguration) -> None:
    # 52,000 a year carries a 14.3% effective rate.
    assert _set_aside(configuration, 1_000, "salary") == pytest.approx(143.0)
    assert _set_aside(configuration, 1_000, "casual") == pytest.approx(143.0)


@pytest.mark.parametrize("income_type", ["abn", "freelance", "gig"])
def test_self_employed_income_uses_rate(configuration: YearConfiguration, income_type: str) -> None:
    assert _set_aside(configuration, 1_000, income_type) == pytest.approx(250.0)
    assert _set_aside(configuration, 1_000, income_type, 30) == pytest.approx(300.0)


@pytest.mark.parametrize("income_type", ["other", "crypto", None])
def test_other_income_uses_flat_rate(configuration: YearConfiguration, income_type) -> None:
    assert _set_aside(configuration, 1_000, income_type) == pytest.approx(200.0)


@pytest.mark.parametrize("amount", [0, -100])
def test_non_positive_amounts_need_no_set_aside(
    configuration: YearConfiguration, amount: float
) -> None:
    assert _set_aside(configuration, amount, "gig") == 0


def test_total_set_aside_splits_employment_and_self_employed(
    configuration: YearConfiguration,
) -> None:
    totals = total_set_aside(
        [
            {"amount": 1_000, "income_type": "salary"},
            {"amount": 400, "income_type": "gig"},
            {"amount": 100, "income_type": "other"},
        ],
        policies=configuration.set_aside,
        schedule=configuration.annual_tax,
    )

    assert totals.salary_wages_tax == pytest.approx(143.0)
    assert totals.self_employed_tax == pytest.approx(120.0)
    assert totals.total_tax == pytest.approx(263.0)


def test_income_type_labels(configuration: YearConfiguration) -> None:
    assert income_type_label("abn", configuration.set_aside) == "ABN/Contract"
    assert income_type_label("unknown", configuration.set_aside) == "Other"
