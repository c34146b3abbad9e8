"""Weekly PAYG withholding estimate based on the ATO weekly tax table."""

from __future__ import annotations

import math

from gigtrack.backend.app.models import WeeklyTaxResult
from gigtrack.backend.config.rates_config import (
    WeeklyWithholdingConfig,
    load_current_configuration,
)

from .utils import round_whole


def _default_table() -> WeeklyWithholdingConfig:
    return load_current_configuration().weekly_withholding


def weekly_tax(
    gross_amount: float, table: WeeklyWithholdingConfig | None = None
) -> WeeklyTaxResult:
    """Return the tax withheld from a weekly ``gross_amount`` and the net pay.

    The lookup key drops the cents (``floor``) before applying the bracket
    formula; the net pay is taken from the original, unfloored amount. The
    function is total: zero, negative and non-finite inputs withhold nothing.
    """

    gross = float(gross_amount or 0)
    if not math.isfinite(gross):
        gross = 0.0

    schedule = table or _default_table()
    x = math.floor(gross)

    tax = 0.0
    for bracket in schedule.brackets:
        if bracket.contains(x):
            tax = bracket.rate * x - bracket.offset
            break

    tax = max(round_whole(tax), 0.0)
    return WeeklyTaxResult(gross_amount=gross, tax=tax, net_pay=gross - tax)


__all__ = ["weekly_tax"]
