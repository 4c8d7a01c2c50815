"""
Habit statistics API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dailyhabits.api.deps import get_current_account_id, get_db, get_stats_cache, parse_date_param
from dailyhabits.application.common import HabitValidationError
from dailyhabits.application.stats import (
    batch_get_stats,
    get_calendar_summary,
    get_habit_detail,
    get_habit_stats,
    get_overview,
)
from dailyhabits.application.stats_cache import StatsCache
from dailyhabits.utils.validation import parse_id_list


router = APIRouter(prefix="/api/v1/stats", tags=["stats"])


@router.get("/habit/{habit_id}")
def habit_stats(
    habit_id: int,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    """{currentStreak, completedToday, totalCompletions, totalTime | totalCount}"""
    return get_habit_stats(db, habit_id, account_id)


@router.get("/habit/{habit_id}/detail")
def habit_detail(
    habit_id: int,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    return get_habit_detail(db, habit_id, account_id)


@router.get("/batch")
def batch_stats(
    habitIds: str | None = None,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    """?habitIds=1,2,3 -> {"1": {...}, "2": {...}}; foreign ids are left out"""
    stats = batch_get_stats(db, account_id, parse_id_list(habitIds))
    return {str(habit_id): s for habit_id, s in stats.items()}


@router.get("/overview")
def overview(
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
    cache: StatsCache = Depends(get_stats_cache),
):
    return get_overview(db, account_id, cache=cache)


@router.get("/calendar")
def calendar_summary(
    startDate: str | None = None,
    endDate: str | None = None,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    start = parse_date_param(startDate, "startDate")
    end = parse_date_param(endDate, "endDate")
    if start is None or end is None:
        raise HabitValidationError("startDate and endDate required")
    return get_calendar_summary(db, account_id, start, end)
