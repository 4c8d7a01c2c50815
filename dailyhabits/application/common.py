"""Shared use-case helpers: error types, ownership lookup, local clock"""
from datetime import date, datetime
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from dailyhabits.config import get_settings
from dailyhabits.infrastructure.db.models import HabitModel


class HabitNotFoundError(LookupError):
    """Habit is absent or owned by another account (never distinguished)."""
    pass


class HabitValidationError(ValueError):
    pass


class TimerNotFoundError(LookupError):
    """pause/stop issued while the habit has no timer."""
    pass


def local_today() -> date:
    """Today's calendar date in the configured timezone."""
    return datetime.now(ZoneInfo(get_settings().TIMEZONE)).date()


def get_owned_habit(
    db: Session,
    habit_id: int,
    account_id: int,
    include_archived: bool = True,
    for_update: bool = False,
) -> HabitModel:
    query = db.query(HabitModel).filter(
        HabitModel.habit_id == habit_id,
        HabitModel.account_id == account_id,
    )
    if not include_archived:
        query = query.filter(HabitModel.archived_at.is_(None))
    if for_update:
        query = query.with_for_update()
    habit = query.first()
    if not habit:
        raise HabitNotFoundError(f"Habit #{habit_id} not found")
    return habit
