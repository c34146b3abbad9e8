"""Utility helpers for calculator modules."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

_WHOLE = Decimal("1")
_CENTS = Decimal("0.01")
_TENTHS = Decimal("0.1")


def _quantize(value: float, exponent: Decimal) -> float:
    # ``str`` keeps the shortest repr so 2.675 rounds as written, not as stored.
    rounded = Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)
    result = float(rounded)
    return result + 0.0 if result else 0.0


def round_whole(value: float) -> float:
    """Round to whole dollars, ties away from zero."""

    return _quantize(value, _WHOLE)


def round_currency(value: float) -> float:
    """Round monetary amounts to two decimals, ties away from zero."""

    return _quantize(value, _CENTS)


def round_rate(value: float) -> float:
    """Round percentage rates to one decimal."""

    return _quantize(value, _TENTHS)


def round_hours(value: float) -> float:
    """Round hour counts to four decimals to hide float noise."""

    return round(value, 4) + 0.0


def format_percentage(value: float) -> str:
    """Return a human-readable label for a percentage such as ``25``."""

    if float(int(value)) == value:
        return f"{int(value)}%"
    return f"{value:.1f}%"


def format_currency(value: float) -> str:
    number = float(value or 0)
    sign = "-" if number < 0 else ""
    return f"{sign}${abs(number):,.2f}"
