"""Calendar helpers anchored to the Australia/Sydney local date.

Every "today" and "this week" decision goes through these helpers so the
day and week boundaries never fall back to the host clock's timezone. A
``clock`` returning an aware ``datetime`` can be injected for tests.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import date, datetime, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo

from gigtrack.backend.app.models import DayType

DEFAULT_TIMEZONE = "Australia/Sydney"

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@lru_cache(maxsize=4)
def local_zone(name: str = DEFAULT_TIMEZONE) -> ZoneInfo:
    return ZoneInfo(name)


def local_now(clock: Clock | None = None, tz_name: str = DEFAULT_TIMEZONE) -> datetime:
    """Return the current wall-clock time in the local timezone."""

    now = (clock or _utc_now)()
    if now.tzinfo is None:
        raise ValueError("Clock must return timezone-aware datetimes")
    return now.astimezone(local_zone(tz_name))


def local_today(clock: Clock | None = None, tz_name: str = DEFAULT_TIMEZONE) -> date:
    """Return today's calendar date in the local timezone."""

    return local_now(clock, tz_name).date()


def parse_date(value: str | date) -> date:
    """Parse a ``YYYY-MM-DD`` calendar string."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid calendar date '{value}', expected YYYY-MM-DD") from exc


def day_type(day: date) -> str:
    """Classify ``day`` as weekday, Saturday or Sunday."""

    weekday = day.isoweekday()
    if weekday == 7:
        return DayType.SUNDAY
    if weekday == 6:
        return DayType.SATURDAY
    return DayType.WEEKDAY


def week_bounds(day: date) -> tuple[date, date]:
    """Return the Monday and Sunday of the week containing ``day``."""

    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def month_bounds(day: date) -> tuple[date, date]:
    """Return the first and last day of the month containing ``day``."""

    start = day.replace(day=1)
    next_month = (start + timedelta(days=32)).replace(day=1)
    return start, next_month - timedelta(days=1)


def is_today(day: date | str, clock: Clock | None = None) -> bool:
    return parse_date(day) == local_today(clock)


def sort_dates_desc(dates: Iterable[date | str]) -> list[date]:
    """Return ``dates`` parsed and ordered most recent first."""

    return sorted((parse_date(value) for value in dates), reverse=True)


__all__ = [
    "Clock",
    "DEFAULT_TIMEZONE",
    "day_type",
    "is_today",
    "local_now",
    "local_today",
    "local_zone",
    "month_bounds",
    "parse_date",
    "sort_dates_desc",
    "week_bounds",
]
