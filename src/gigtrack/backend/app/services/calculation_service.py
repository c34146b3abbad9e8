"""Orchestrate request validation and the pay and tax calculators.

Routes hand raw JSON mappings to the ``calculate_*`` entry points here; each
one validates the payload with the shared request models, resolves the rate
tables for the requested financial year, runs the pure calculators and
returns a JSON-ready mapping. Profiling hooks live here so the calculators
stay free of timing code.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from contextlib import contextmanager
from time import perf_counter
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from gigtrack.backend.app.models import (
    ProgressiveTaxRequest,
    SetAsideRequest,
    ShiftInput,
    ShiftPayRequest,
    ShiftPayResponse,
    WeeklyTaxRequest,
    format_validation_error,
)
from gigtrack.backend.config.rates_config import (
    YearConfiguration,
    load_current_configuration,
    load_year_configuration,
)

from .calculators import (
    compute_shift_pay,
    estimate_set_aside,
    income_type_label,
    progressive_tax,
    round_currency,
    round_hours,
    weekly_tax,
)
from .calendar import day_type

_LOGGER = logging.getLogger(__name__)

_PROFILE_ENV = "GIGTRACK_PROFILE_CALCULATIONS"
_RESPONSE_VALIDATION_ENV = "GIGTRACK_RESPONSE_VALIDATION"
_TRUTHY = {"1", "true", "yes", "on"}

RequestModel = TypeVar("RequestModel", bound=BaseModel)


def _flag_enabled(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in _TRUTHY


@contextmanager
def _profile_section(name: str, store: dict[str, float] | None):
    """Capture the duration of a named section when profiling is enabled."""

    if store is None:
        yield
        return

    start = perf_counter()
    try:
        yield
    finally:
        store[name] = perf_counter() - start


def _parse(model: type[RequestModel], payload: Mapping[str, Any] | RequestModel) -> RequestModel:
    if isinstance(payload, model):
        return payload
    if not isinstance(payload, Mapping):
        raise ValueError("Payload must be a mapping")
    try:
        return model.model_validate(dict(payload))
    except ValidationError as exc:
        raise ValueError(format_validation_error(exc)) from exc


def resolve_configuration(year: int | None) -> YearConfiguration:
    """Return the tables for ``year``, or the newest year when omitted."""

    if year is None:
        return load_current_configuration()
    try:
        return load_year_configuration(year)
    except FileNotFoundError as exc:
        raise ValueError(f"No rate tables configured for {year}") from exc


def _attach_profile(meta: dict[str, Any], timings: dict[str, float] | None, label: str) -> None:
    if timings is None:
        return
    rounded = {name: round(duration * 1000, 3) for name, duration in timings.items()}
    _LOGGER.debug("%s timings (ms): %s", label, rounded)
    meta["profile_ms"] = rounded


def calculate_shift_pay(payload: Mapping[str, Any] | ShiftPayRequest) -> dict[str, Any]:
    """Compute a shift's award-rate breakdown for the submitted payload."""

    request = _parse(ShiftPayRequest, payload)
    timings: dict[str, float] | None = {} if _flag_enabled(_PROFILE_ENV) else None

    configuration = resolve_configuration(request.year)
    shift = ShiftInput(
        shift_date=request.date,
        start_time=request.start_time,
        end_time=request.end_time,
        age_bracket=request.age_bracket,
        is_public_holiday=request.public_holiday,
    )
    rates = configuration.award.rates_for(shift.age_bracket)

    with _profile_section("shift_pay", timings):
        result = compute_shift_pay(
            shift,
            rates,
            award=configuration.award,
            withholding=configuration.weekly_withholding,
        )

    meta: dict[str, Any] = {
        "year": configuration.year,
        "award": configuration.award.name,
        "estimate_only": True,
    }
    _attach_profile(meta, timings, "calculate_shift_pay")

    response = {
        "date": shift.shift_date.isoformat(),
        "day_type": day_type(shift.shift_date),
        "age_bracket": shift.age_bracket.value,
        "public_holiday": shift.is_public_holiday,
        "segments": [
            {
                "hours": round_hours(segment.hours),
                "rate": segment.rate,
                "label": segment.label,
                "subtotal": round_currency(segment.subtotal),
            }
            for segment in result.segments
        ],
        "total_shift_hours": round_hours(result.total_shift_hours),
        "unpaid_break_hours": round_hours(result.unpaid_break_hours),
        "paid_hours": round_hours(result.paid_hours),
        "gross_pay": round_currency(result.gross_pay),
        "estimated_tax": round_currency(result.estimated_tax),
        "estimated_net_pay": round_currency(result.estimated_net_pay),
        "meta": meta,
    }

    if _flag_enabled(_RESPONSE_VALIDATION_ENV):
        return ShiftPayResponse.model_validate(response).model_dump(mode="json")
    return response


def calculate_weekly_tax(payload: Mapping[str, Any] | WeeklyTaxRequest) -> dict[str, Any]:
    request = _parse(WeeklyTaxRequest, payload)
    configuration = resolve_configuration(request.year)
    result = weekly_tax(request.gross_amount, configuration.weekly_withholding)
    return {
        "gross_amount": round_currency(result.gross_amount),
        "tax": result.tax,
        "net_pay": round_currency(result.net_pay),
        "meta": {"year": configuration.year, "scale": configuration.weekly_withholding.scale},
    }


def calculate_progressive_tax(
    payload: Mapping[str, Any] | ProgressiveTaxRequest,
) -> dict[str, Any]:
    request = _parse(ProgressiveTaxRequest, payload)
    configuration = resolve_configuration(request.year)
    result = progressive_tax(request.annual_income, configuration.annual_tax)
    return {
        "annual_income": round_currency(request.annual_income),
        **result.as_dict(),
        "meta": {"year": configuration.year},
    }


def calculate_set_aside(payload: Mapping[str, Any] | SetAsideRequest) -> dict[str, Any]:
    request = _parse(SetAsideRequest, payload)
    configuration = resolve_configuration(request.year)
    policies = configuration.set_aside
    rate = (
        request.self_employed_rate
        if request.self_employed_rate is not None
        else policies.self_employed_rate
    )
    amount = estimate_set_aside(
        request.amount,
        request.income_type,
        rate,
        policies=policies,
        schedule=configuration.annual_tax,
    )
    return {
        "amount": round_currency(request.amount),
        "income_type": request.income_type,
        "income_type_label": income_type_label(request.income_type, policies),
        "policy": policies.policy_for(request.income_type).value,
        "self_employed_rate": rate,
        "set_aside": amount,
        "meta": {"year": configuration.year},
    }


__all__ = [
    "calculate_progressive_tax",
    "calculate_set_aside",
    "calculate_shift_pay",
    "calculate_weekly_tax",
    "resolve_configuration",
]
