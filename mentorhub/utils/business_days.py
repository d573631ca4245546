"""Day-range helpers for calendar expansion."""

from __future__ import annotations

from datetime import date, timedelta
from typing import AbstractSet, Iterator, List

DEFAULT_WEEKEND_DAYS = frozenset({5, 6})


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every date from ``start`` to ``end`` inclusive."""

    if end < start:
        raise ValueError("end date must not be before start date")
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def is_weekend(day: date, weekend_days: AbstractSet[int] = DEFAULT_WEEKEND_DAYS) -> bool:
    return day.weekday() in weekend_days


def expand_days(
    start: date,
    end: date,
    *,
    exclude_weekends: bool = True,
    weekend_days: AbstractSet[int] = DEFAULT_WEEKEND_DAYS,
) -> List[date]:
    """Dates in [start, end], optionally without the configured weekend days."""

    if not exclude_weekends:
        return list(iter_days(start, end))
    return [day for day in iter_days(start, end) if not is_weekend(day, weekend_days)]


def business_days_between(
    start: date, end: date, weekend_days: AbstractSet[int] = DEFAULT_WEEKEND_DAYS
) -> int:
    """Count of non-weekend days in [start, end]."""

    return len(expand_days(start, end, exclude_weekends=True, weekend_days=weekend_days))
