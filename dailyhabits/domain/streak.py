"""
Streak arithmetic over eligible days.

A streak counts consecutive *eligible* days (see domain.calendar), walking
backward from today. Weekends, holidays and days off are simply absent from
the eligible list, so they never break a streak.
"""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Mapping, Sequence


def calculate_streak(
    completions: Mapping[date, bool],
    eligible_days: Sequence[date],
    baseline: date,
    today: date,
) -> int:
    """Current streak length.

    completions maps date -> completed flag; a missing date is not completed.
    eligible_days must be ascending. Dates before baseline never count.

    If the most recent eligible day is today and is not completed yet, it is
    skipped instead of breaking the streak: today is still open.
    """
    if not eligible_days:
        return 0

    idx = len(eligible_days) - 1
    if eligible_days[idx] == today and not completions.get(today):
        idx -= 1

    streak = 0
    while idx >= 0:
        d = eligible_days[idx]
        if d < baseline:
            break
        if not completions.get(d):
            break
        streak += 1
        idx -= 1
    return streak


def calculate_longest_streak(completions: Mapping[date, bool], eligible_days: Sequence[date]) -> int:
    """Longest run of completed eligible days."""
    best = 0
    run = 0
    for d in eligible_days:
        if completions.get(d):
            run += 1
            best = max(best, run)
        else:
            run = 0
    return best


@dataclass(frozen=True)
class StreakFreeze:
    """New frozen values to persist on a schedule change."""
    frozen_streak: int
    streak_frozen_at: date
    streak_so_far: int


def freeze_boundary(today: date) -> date:
    """Freeze cut is yesterday, so today stays open under the new schedule."""
    return today - timedelta(days=1)


def compute_freeze(
    completions: Mapping[date, bool],
    old_eligible_days: Sequence[date],
    old_baseline: date,
    previous_frozen_streak: int | None,
    previous_frozen_at: date | None,
    today: date,
) -> StreakFreeze:
    """Snapshot the streak accrued under the old schedule.

    old_eligible_days are computed under the *old* schedule; anything after the
    freeze boundary is ignored so today is never credited twice. A previous
    freeze date is already inside previous_frozen_streak and is skipped.
    """
    boundary = freeze_boundary(today)
    up_to_boundary = [
        d for d in old_eligible_days
        if d <= boundary and d != previous_frozen_at
    ]
    so_far = calculate_streak(completions, up_to_boundary, old_baseline, today)
    return StreakFreeze(
        frozen_streak=(previous_frozen_streak or 0) + so_far,
        streak_frozen_at=boundary,
        streak_so_far=so_far,
    )


def streak_with_freeze(
    completions: Mapping[date, bool],
    eligible_days: Sequence[date],
    created_at: date,
    frozen_streak: int | None,
    streak_frozen_at: date | None,
    today: date,
) -> int:
    """Reported streak: frozen part plus the streak accrued since the freeze.

    The freeze date itself is already inside frozen_streak, so it is removed
    from the eligible list before counting.
    """
    if streak_frozen_at is None:
        return calculate_streak(completions, eligible_days, created_at, today)

    since_base_days = [d for d in eligible_days if d != streak_frozen_at]
    since_base = calculate_streak(completions, since_base_days, streak_frozen_at, today)
    return (frozen_streak or 0) + since_base
