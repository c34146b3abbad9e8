"""Pydantic models describing the public API surface."""

from __future__ import annotations

import datetime as dt
import math
import re
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from gigtrack.backend.config.schema import AgeBracket, IncomeType

_TIME_OF_DAY = re.compile(r"(\d{1,2}):(\d{2})")

__all__ = [
    "ExpenseInput",
    "IncomeInput",
    "PaySegmentModel",
    "ProgressiveTaxRequest",
    "SetAsideRequest",
    "SettingsInput",
    "ShiftPayRequest",
    "ShiftPayResponse",
    "SummaryQuery",
    "WeeklyTaxRequest",
    "coerce_amount",
    "format_validation_error",
    "parse_time_of_day",
]


def coerce_amount(value: Any) -> float:
    """Return ``value`` as a float, treating blanks and junk as zero."""

    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip().replace(",", "").lstrip("$")
        if not value:
            return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(amount) or math.isinf(amount):
        return 0.0
    return amount


def parse_time_of_day(value: Any) -> float:
    """Convert ``HH:MM`` strings or numeric hours into fractional hours."""

    if isinstance(value, bool):
        raise ValueError("Time of day must be HH:MM or a number of hours")
    if isinstance(value, (int, float)):
        hours = float(value)
    elif isinstance(value, str) and ":" in value:
        match = _TIME_OF_DAY.fullmatch(value.strip())
        if match is None:
            raise ValueError(f"Invalid time of day '{value}'")
        hour, minute = int(match.group(1)), int(match.group(2))
        if not 0 <= minute < 60:
            raise ValueError(f"Invalid time of day '{value}'")
        hours = hour + minute / 60
    elif isinstance(value, str):
        try:
            hours = float(value)
        except ValueError as exc:
            raise ValueError(f"Invalid time of day '{value}'") from exc
    else:
        raise ValueError("Time of day must be HH:MM or a number of hours")

    if not 0 <= hours < 24:
        raise ValueError("Time of day must fall within 00:00 and 23:59")
    return hours


class ShiftPayRequest(BaseModel):
    """Payload accepted by the shift pay endpoint."""

    model_config = ConfigDict(extra="forbid")

    date: dt.date
    start_time: float
    end_time: float
    age_bracket: AgeBracket = AgeBracket.OVER_20
    public_holiday: bool = False
    year: int | None = Field(default=None, ge=0)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _parse_times(cls, value: Any) -> float:
        return parse_time_of_day(value)

    @field_validator("public_holiday", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        if value is None:
            return False
        return bool(value)


class PaySegmentModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    hours: float
    rate: float
    label: str
    subtotal: float


class ShiftPayResponse(BaseModel):
    """Serialised shift breakdown returned to clients."""

    model_config = ConfigDict(extra="forbid")

    date: str
    day_type: Literal["weekday", "saturday", "sunday"]
    age_bracket: str
    public_holiday: bool
    segments: list[PaySegmentModel]
    total_shift_hours: float
    unpaid_break_hours: float
    paid_hours: float
    gross_pay: float
    estimated_tax: float
    estimated_net_pay: float
    meta: dict[str, Any] = Field(default_factory=dict)


class WeeklyTaxRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    gross_amount: float = 0.0
    year: int | None = Field(default=None, ge=0)

    @field_validator("gross_amount", mode="before")
    @classmethod
    def _coerce_gross(cls, value: Any) -> float:
        return coerce_amount(value)


class ProgressiveTaxRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    annual_income: float = 0.0
    year: int | None = Field(default=None, ge=0)

    @field_validator("annual_income", mode="before")
    @classmethod
    def _coerce_income(cls, value: Any) -> float:
        return coerce_amount(value)


class SetAsideRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: float = 0.0
    income_type: str = IncomeType.OTHER.value
    self_employed_rate: float | None = Field(default=None, ge=0, le=100)
    year: int | None = Field(default=None, ge=0)

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> float:
        return coerce_amount(value)

    @field_validator("income_type", mode="before")
    @classmethod
    def _normalise_income_type(cls, value: Any) -> str:
        if value is None:
            return IncomeType.OTHER.value
        return str(value).strip().lower() or IncomeType.OTHER.value


class IncomeInput(BaseModel):
    """Income submission in either the per-platform or the universal shape.

    Amounts are lenient: blanks and non-numeric strings become ``0`` so form
    submissions never fail on an empty field.
    """

    model_config = ConfigDict(extra="forbid")

    date: dt.date
    doordash: float = 0.0
    ubereats: float = 0.0
    didi: float = 0.0
    coles: float = 0.0
    coles_hours: float | None = None
    tips: float = 0.0
    source_name: str | None = None
    income_type: IncomeType | None = None
    amount: float = 0.0

    @field_validator("doordash", "ubereats", "didi", "coles", "tips", "amount", mode="before")
    @classmethod
    def _coerce_amounts(cls, value: Any) -> float:
        return coerce_amount(value)

    @field_validator("coles_hours", mode="before")
    @classmethod
    def _coerce_hours(cls, value: Any) -> float | None:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        hours = coerce_amount(value)
        return hours or None

    @field_validator("source_name", mode="before")
    @classmethod
    def _normalise_source(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("income_type", mode="before")
    @classmethod
    def _normalise_income_type(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return str(value).strip().lower()


class ExpenseInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    date: dt.date
    name: str = Field(min_length=1, max_length=200)
    amount: float = 0.0

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> float:
        return coerce_amount(value)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class SettingsInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    tax_rate: float | None = Field(default=None, ge=0, le=100)
    weekly_target: float | None = Field(default=None, ge=0)


class SummaryQuery(BaseModel):
    """Query string accepted by the summary and report endpoints."""

    model_config = ConfigDict(extra="ignore")

    window: Literal["all", "week", "today"] = "all"
    date: dt.date | None = None


def format_validation_error(error: ValidationError) -> str:
    """Return a concise human-readable description of validation issues."""

    messages: list[str] = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue.get("loc", ()))
        message = issue.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        if location:
            messages.append(f"{location}: {message}")
        else:
            messages.append(message)

    details = "; ".join(messages) if messages else str(error)
    return f"Invalid payload: {details}"
