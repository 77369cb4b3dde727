"""Day-granularity date helpers shared by status, folio and analytics code."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterator, Optional


def as_naive(value: datetime) -> datetime:
    """Convert aware datetimes to naive local time; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def start_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.min)


def end_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.max)


def is_same_day(left: datetime, right: datetime) -> bool:
    return left.date() == right.date()


def is_within_interval(value: datetime, start: datetime, end: datetime) -> bool:
    """Inclusive on both ends."""
    return start <= value <= end


def calendar_days_between(start: datetime, end: datetime) -> int:
    """Calendar-day difference, ignoring the time of day."""
    return (end.date() - start.date()).days


def each_day(start: datetime, end: datetime) -> Iterator[date]:
    current = start.date()
    last = end.date()
    while current <= last:
        yield current
        current += timedelta(days=1)


def day_range(
    date_from: datetime,
    date_to: Optional[datetime] = None,
) -> tuple[datetime, datetime]:
    """Return the inclusive [start_of_day(from), end_of_day(to or from)] window."""
    return start_of_day(date_from), end_of_day(date_to or date_from)


def day_key(value: datetime | date) -> str:
    return value.strftime("%Y-%m-%d")
