"""Injectable notion of "now" for the planning engine."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Protocol, Union

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


class Clock(Protocol):
    """Protocol describing objects that can report the current instant."""

    def now(self) -> datetime:  # pragma: no cover - protocol definition
        ...

    def today(self) -> date:  # pragma: no cover - protocol definition
        ...


class SystemClock:
    """Wall clock localised to a configured timezone."""

    def __init__(self, tz_name: Optional[str] = None) -> None:
        self._tz = _resolve_timezone(tz_name)

    def now(self) -> datetime:
        return datetime.now(self._tz)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Clock pinned to a single instant; tests move it explicitly."""

    def __init__(self, instant: DateLike) -> None:
        if isinstance(instant, datetime):
            self._now = instant
        else:
            self._now = datetime(instant.year, instant.month, instant.day, 9, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def today(self) -> date:
        return self._now.date()

    def advance(self, *, days: int = 0, hours: int = 0) -> None:
        self._now = self._now + timedelta(days=days, hours=hours)


def _resolve_timezone(tz_name: Optional[str]):
    if not tz_name:
        return timezone.utc
    try:
        return ZoneInfo(tz_name)
    except ZoneInfoNotFoundError:
        logger.warning("Unknown timezone %s; falling back to UTC.", tz_name)
        return timezone.utc


def start_of_day(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; aware values keep their own zone."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def iso_weekday(value: DateLike) -> int:
    """Weekday code used by study plans: 1=Monday .. 7=Sunday."""
    return start_of_day(value).isoweekday()


def days_between(start: DateLike, end: DateLike) -> int:
    return (start_of_day(end) - start_of_day(start)).days


def default_clock() -> Clock:
    from .config import get_settings

    return SystemClock(get_settings().timezone)


__all__ = [
    "Clock",
    "DateLike",
    "FixedClock",
    "SystemClock",
    "days_between",
    "default_clock",
    "ensure_aware",
    "iso_weekday",
    "start_of_day",
]
