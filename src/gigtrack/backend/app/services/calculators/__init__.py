"""Pay and tax calculation helpers."""

from .annual import (
    EMPLOYMENT_TYPES,
    estimate_set_aside,
    income_type_label,
    progressive_tax,
    total_set_aside,
)
from .shift_pay import compute_shift_pay
from .utils import (
    format_currency,
    format_percentage,
    round_currency,
    round_hours,
    round_rate,
    round_whole,
)
from .withholding import weekly_tax

__all__ = [
    "EMPLOYMENT_TYPES",
    "compute_shift_pay",
    "estimate_set_aside",
    "format_currency",
    "format_percentage",
    "income_type_label",
    "progressive_tax",
    "round_currency",
    "round_hours",
    "round_rate",
    "round_whole",
    "total_set_aside",
    "weekly_tax",
]
