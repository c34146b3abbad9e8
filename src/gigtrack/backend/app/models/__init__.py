"""Typed domain records shared across the calculators, ledger and routes.

Inputs crossing the HTTP boundary are validated by the Pydantic models in
``api``; everything the calculators exchange internally is a frozen
dataclass or a frozen Pydantic model so results can be shared freely between
the dashboard, table and report consumers without defensive copies.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import date
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field

from gigtrack.backend.config.schema import AgeBracket, IncomeType

from .api import (
    ExpenseInput,
    IncomeInput,
    PaySegmentModel,
    ProgressiveTaxRequest,
    SetAsideRequest,
    SettingsInput,
    ShiftPayRequest,
    ShiftPayResponse,
    SummaryQuery,
    WeeklyTaxRequest,
    format_validation_error,
    parse_time_of_day,
)

__all__ = [
    "AgeBracket",
    "AggregateSummary",
    "DayType",
    "ExpenseInput",
    "ExpenseRecord",
    "IncomeInput",
    "IncomeRecord",
    "IncomeType",
    "InvalidRangeError",
    "OtherIncomeSummary",
    "PLATFORM_FIELDS",
    "PLATFORM_LABELS",
    "PaySegment",
    "PaySegmentModel",
    "ProgressiveTaxRequest",
    "ProgressiveTaxResult",
    "RecordNotFoundError",
    "SetAsideRequest",
    "SetAsideTotals",
    "SettingsInput",
    "ShiftInput",
    "ShiftPayRequest",
    "ShiftPayResponse",
    "ShiftResult",
    "SummaryQuery",
    "UserSettings",
    "WeeklyTaxRequest",
    "WeeklyTaxResult",
    "format_validation_error",
    "parse_time_of_day",
]

# Per-platform income columns, in display order.
PLATFORM_FIELDS: tuple[str, ...] = ("doordash", "ubereats", "didi", "coles", "tips")

PLATFORM_LABELS: Mapping[str, str] = {
    "doordash": "DoorDash",
    "ubereats": "Uber Eats",
    "didi": "DiDi",
    "coles": "Coles",
    "tips": "Tips",
}


class InvalidRangeError(ValueError):
    """Raised when a shift ends at or before the time it starts."""

    def __init__(self, start_time: float, end_time: float) -> None:
        super().__init__(
            f"Shift end time ({end_time:g}) must be after start time ({start_time:g})"
        )
        self.start_time = start_time
        self.end_time = end_time


class RecordNotFoundError(KeyError):
    """Raised when a ledger record id is unknown."""

    def __str__(self) -> str:
        return f"Record not found: {self.args[0]}" if self.args else "Record not found"


class DayType:
    WEEKDAY = "weekday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


class ShiftInput(BaseModel):
    """Validated shift description handed to the pay calculator."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    shift_date: date
    start_time: float = Field(ge=0, lt=24)
    end_time: float = Field(ge=0, lt=24)
    age_bracket: AgeBracket = AgeBracket.OVER_20
    is_public_holiday: bool = False


@dataclass(frozen=True)
class PaySegment:
    hours: float
    rate: float
    label: str
    subtotal: float

    @classmethod
    def create(cls, hours: float, rate: float, label: str) -> "PaySegment":
        return cls(hours=hours, rate=rate, label=label, subtotal=hours * rate)


@dataclass(frozen=True)
class WeeklyTaxResult:
    """Weekly withholding estimate; ``net_pay`` uses the unfloored gross."""

    gross_amount: float
    tax: float
    net_pay: float

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class ShiftResult:
    segments: tuple[PaySegment, ...]
    total_shift_hours: float
    unpaid_break_hours: float
    paid_hours: float
    gross_pay: float
    estimated_tax: float
    estimated_net_pay: float


@dataclass(frozen=True)
class ProgressiveTaxResult:
    income_tax: float
    medicare_levy: float
    total_tax: float
    effective_rate: float

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class SetAsideTotals:
    salary_wages_tax: float
    self_employed_tax: float
    total_tax: float

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class IncomeRecord:
    """Stored income entry covering both the per-platform and universal shapes."""

    id: str
    date: date
    doordash: float = 0.0
    ubereats: float = 0.0
    didi: float = 0.0
    coles: float = 0.0
    coles_hours: float | None = None
    tips: float = 0.0
    source_name: str | None = None
    income_type: str | None = None
    amount: float = 0.0
    archived: bool = False

    @property
    def is_universal(self) -> bool:
        return self.source_name is not None

    @property
    def platform_total(self) -> float:
        return self.doordash + self.ubereats + self.didi + self.coles + self.tips

    @property
    def total(self) -> float:
        return self.platform_total + self.amount

    def with_changes(self, **changes: Any) -> "IncomeRecord":
        return replace(self, **changes)

    def as_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["date"] = self.date.isoformat()
        return payload


@dataclass(frozen=True)
class ExpenseRecord:
    id: str
    date: date
    name: str
    amount: float
    archived: bool = False

    def with_changes(self, **changes: Any) -> "ExpenseRecord":
        return replace(self, **changes)

    def as_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["date"] = self.date.isoformat()
        return payload


@dataclass(frozen=True)
class UserSettings:
    tax_rate: float
    weekly_target: float

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class OtherIncomeSummary:
    """Totals for universal records whose source is not a tracked platform."""

    gross: float = 0.0
    by_source: Mapping[str, float] = field(default_factory=dict)
    by_type: Mapping[str, float] = field(default_factory=dict)
    set_aside: SetAsideTotals = field(
        default_factory=lambda: SetAsideTotals(0.0, 0.0, 0.0)
    )


@dataclass(frozen=True)
class AggregateSummary:
    """Canonical totals shared by the dashboard, data table and report."""

    doordash_income: float
    ubereats_income: float
    didi_income: float
    coles_gross_income: float
    tips: float
    coles_hours: float
    gig_income: float
    coles_tax: float
    coles_net_income: float
    total_income: float
    total_expenses: float
    net_balance: float
    weekly_target: float
    remaining: float
    didi_gst_amount: float
    gross_income: float
    employment_income: float
    self_employed_income: float
    source_totals: Mapping[str, float]
    tax_rate: float
    gig_tax_set_aside: float
    net_after_set_aside: float
    other_income: OtherIncomeSummary
    record_count: int
    expense_count: int

    def as_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["source_totals"] = dict(self.source_totals)
        return payload
