"""
Eligible-day resolver.

Pure and deterministic: decides which calendar dates a habit applies to,
given the global holiday set, the account's days off and the habit's weekly
schedule. Weekday numbers follow 0=Sun, 1=Mon .. 6=Sat; habit schedules only
ever contain 1..5.
"""
from datetime import date, timedelta
from typing import AbstractSet, Iterable

DEFAULT_SCHEDULED_DAYS = frozenset({1, 2, 3, 4, 5})
WEEKEND_DAYS = frozenset({0, 6})


def weekday_number(d: date) -> int:
    """0=Sun, 1=Mon .. 6=Sat"""
    return d.isoweekday() % 7


def is_working_day(d: date, holidays: AbstractSet[date], day_offs: AbstractSet[date]) -> bool:
    if weekday_number(d) in WEEKEND_DAYS:
        return False
    return d not in holidays and d not in day_offs


def is_scheduled_day(d: date, scheduled_days: Iterable[int] | None) -> bool:
    if scheduled_days is None:
        return weekday_number(d) in DEFAULT_SCHEDULED_DAYS
    return weekday_number(d) in set(scheduled_days)


def iter_dates(start: date, end: date):
    """Every date in [start, end], ascending. Empty when start > end."""
    d = start
    while d <= end:
        yield d
        d += timedelta(days=1)


def get_scheduled_working_days(
    start: date,
    end: date,
    scheduled_days: Iterable[int] | None,
    holidays: AbstractSet[date],
    day_offs: AbstractSet[date],
) -> list[date]:
    """Eligible dates in [start, end], ascending.

    A date is kept only when it is both a scheduled day for the habit and a
    working day, so a weekend never becomes eligible even if a malformed
    schedule names it.
    """
    schedule = None if scheduled_days is None else frozenset(scheduled_days)
    return [
        d for d in iter_dates(start, end)
        if is_scheduled_day(d, schedule) and is_working_day(d, holidays, day_offs)
    ]


def get_working_days(
    start: date,
    end: date,
    holidays: AbstractSet[date],
    day_offs: AbstractSet[date],
) -> list[date]:
    """Working dates in [start, end] regardless of any habit schedule."""
    return [d for d in iter_dates(start, end) if is_working_day(d, holidays, day_offs)]
