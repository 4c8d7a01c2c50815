"""Habit statistics: single, batch, overview, per-habit detail and calendar summary.

Every streak shown anywhere goes through application.streaks.current_streak.
"""
from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from dailyhabits.application.calendar import load_calendar
from dailyhabits.application.common import HabitValidationError, get_owned_habit, local_today
from dailyhabits.application.streaks import current_streak
from dailyhabits.application.stats_cache import StatsCache
from dailyhabits.config import get_settings
from dailyhabits.domain.calendar import get_scheduled_working_days, is_working_day, iter_dates
from dailyhabits.domain.habit import parse_scheduled_days
from dailyhabits.domain.streak import calculate_longest_streak
from dailyhabits.infrastructure.db.models import HabitCompletionModel, HabitModel

RECENT_COMPLETIONS_LIMIT = 30


def _completions_by_habit(db: Session, habit_ids: list[int]) -> dict[int, list[HabitCompletionModel]]:
    grouped: dict[int, list[HabitCompletionModel]] = {hid: [] for hid in habit_ids}
    if not habit_ids:
        return grouped
    rows = db.query(HabitCompletionModel).filter(
        HabitCompletionModel.habit_id.in_(habit_ids)
    ).all()
    for row in rows:
        grouped.setdefault(row.habit_id, []).append(row)
    return grouped


def build_habit_stats(
    habit: HabitModel,
    completions: list[HabitCompletionModel],
    holidays: set[date],
    day_offs: set[date],
    today: date,
) -> dict[str, Any]:
    """{currentStreak, completedToday, totalCompletions[, totalTime | totalCount]}"""
    completed = {c.date: bool(c.completed) for c in completions}

    total_completions = sum(1 for c in completions if c.completed)
    total_value = sum(c.value or 0 for c in completions)

    stats: dict[str, Any] = {
        "currentStreak": current_streak(habit, completed, holidays, day_offs, today),
        "completedToday": completed.get(today, False),
        "totalCompletions": total_completions,
    }
    if habit.type == "time":
        stats["totalTime"] = total_value
    elif habit.type == "count":
        stats["totalCount"] = total_value
    return stats


def get_habit_stats(db: Session, habit_id: int, account_id: int, today: date | None = None) -> dict[str, Any]:
    habit = get_owned_habit(db, habit_id, account_id)
    if today is None:
        today = local_today()
    holidays, day_offs = load_calendar(db, account_id)
    completions = _completions_by_habit(db, [habit.habit_id])[habit.habit_id]
    return build_habit_stats(habit, completions, holidays, day_offs, today)


def get_habit_detail(db: Session, habit_id: int, account_id: int, today: date | None = None) -> dict[str, Any]:
    """Stats plus longest streak, completion rate and recent completions."""
    habit = get_owned_habit(db, habit_id, account_id)
    if today is None:
        today = local_today()
    holidays, day_offs = load_calendar(db, account_id)
    completions = _completions_by_habit(db, [habit.habit_id])[habit.habit_id]

    detail = build_habit_stats(habit, completions, holidays, day_offs, today)

    completed = {c.date: bool(c.completed) for c in completions}
    eligible = get_scheduled_working_days(
        habit.created_at, today, parse_scheduled_days(habit.scheduled_days), holidays, day_offs
    )
    completed_days = sum(1 for d in eligible if completed.get(d))
    recent = sorted(completions, key=lambda c: c.date, reverse=True)[:RECENT_COMPLETIONS_LIMIT]

    detail.update({
        "longestStreak": calculate_longest_streak(completed, eligible),
        "eligibleDays": len(eligible),
        "completedDays": completed_days,
        "completionRate": round(completed_days / len(eligible) * 100) if eligible else 0,
        "recentCompletions": [
            {"date": c.date.isoformat(), "value": c.value, "completed": bool(c.completed)}
            for c in recent
        ],
    })
    return detail


def batch_get_stats(db: Session, account_id: int, habit_ids: list[int],
                    today: date | None = None) -> dict[int, dict[str, Any]]:
    """Stats for many habits with one completions query. Foreign ids are omitted."""
    habit_ids = list(dict.fromkeys(habit_ids))
    if not habit_ids:
        raise HabitValidationError("habitIds parameter required")
    max_ids = get_settings().BATCH_STATS_MAX_IDS
    if len(habit_ids) > max_ids:
        raise HabitValidationError(f"Too many habit IDs (max {max_ids})")
    if today is None:
        today = local_today()

    habits = db.query(HabitModel).filter(
        HabitModel.habit_id.in_(habit_ids),
        HabitModel.account_id == account_id,
    ).all()
    if not habits:
        return {}

    holidays, day_offs = load_calendar(db, account_id)
    grouped = _completions_by_habit(db, [h.habit_id for h in habits])
    return {
        h.habit_id: build_habit_stats(h, grouped[h.habit_id], holidays, day_offs, today)
        for h in habits
    }


def get_overview(db: Session, account_id: int, today: date | None = None,
                 cache: StatsCache | None = None) -> dict[str, Any]:
    """Best current streak across active (not archived, not paused) habits."""
    if today is None:
        today = local_today()
    if cache is not None:
        cached = cache.get(account_id, today)
        if cached is not None:
            return cached

    habits = db.query(HabitModel).filter(
        HabitModel.account_id == account_id,
        HabitModel.archived_at.is_(None),
        HabitModel.paused_at.is_(None),
    ).order_by(HabitModel.sort_order.asc(), HabitModel.habit_id.asc()).all()

    holidays, day_offs = load_calendar(db, account_id)
    grouped = _completions_by_habit(db, [h.habit_id for h in habits])

    best_streak = 0
    best_completed_today = False
    total_completions = 0
    for h in habits:
        stats = build_habit_stats(h, grouped[h.habit_id], holidays, day_offs, today)
        total_completions += stats["totalCompletions"]
        if stats["currentStreak"] > best_streak:
            best_streak = stats["currentStreak"]
            best_completed_today = stats["completedToday"]

    overview = {
        "longestStreak": best_streak,
        "completedToday": best_completed_today,
        "totalCompletions": total_completions,
        "totalHabits": len(habits),
    }
    if cache is not None:
        cache.set(account_id, today, overview)
    return overview


def get_calendar_summary(db: Session, account_id: int, start: date, end: date) -> dict[str, dict[str, Any]]:
    """Per date: active habit count, completed count and whether it is a working day."""
    if start > end:
        raise HabitValidationError("startDate must not be after endDate")

    habit_ids = [
        hid for (hid,) in db.query(HabitModel.habit_id).filter(
            HabitModel.account_id == account_id,
            HabitModel.archived_at.is_(None),
        ).all()
    ]
    done_by_date: dict[date, int] = {}
    if habit_ids:
        rows = db.query(HabitCompletionModel.date).filter(
            HabitCompletionModel.habit_id.in_(habit_ids),
            HabitCompletionModel.completed == True,
            HabitCompletionModel.date >= start,
            HabitCompletionModel.date <= end,
        ).all()
        for (d,) in rows:
            done_by_date[d] = done_by_date.get(d, 0) + 1

    holidays, day_offs = load_calendar(db, account_id)
    return {
        d.isoformat(): {
            "totalHabits": len(habit_ids),
            "completedHabits": done_by_date.get(d, 0),
            "isWorkingDay": is_working_day(d, holidays, day_offs),
        }
        for d in iter_dates(start, end)
    }
