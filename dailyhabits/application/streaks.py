"""Canonical streak computation for a stored habit, and the streak freeze
taken when a habit's weekly schedule changes."""
import logging
from datetime import date
from typing import AbstractSet, Mapping

from sqlalchemy.orm import Session

from dailyhabits.application.calendar import load_calendar
from dailyhabits.application.completions import completion_map
from dailyhabits.domain.calendar import get_scheduled_working_days
from dailyhabits.domain.habit import parse_scheduled_days, schedule_changed
from dailyhabits.domain.streak import StreakFreeze, compute_freeze, streak_with_freeze
from dailyhabits.infrastructure.db.models import HabitModel

logger = logging.getLogger(__name__)


def streak_baseline(habit: HabitModel) -> date:
    """Earliest date that may count: the freeze date after a freeze, else creation."""
    return habit.streak_frozen_at or habit.created_at


def current_streak(
    habit: HabitModel,
    completions: Mapping[date, bool],
    holidays: AbstractSet[date],
    day_offs: AbstractSet[date],
    today: date,
) -> int:
    """The one streak read used by every stats call site."""
    eligible = get_scheduled_working_days(
        streak_baseline(habit), today,
        parse_scheduled_days(habit.scheduled_days),
        holidays, day_offs,
    )
    return streak_with_freeze(
        completions, eligible,
        created_at=habit.created_at,
        frozen_streak=habit.frozen_streak,
        streak_frozen_at=habit.streak_frozen_at,
        today=today,
    )


class StreakFreezeManager:
    """Freezes accrued streak value before a schedule change is committed.

    Only an effective change of the weekday set triggers a freeze; renaming,
    retargeting or reordering never does.
    """
    def __init__(self, db: Session):
        self.db = db

    def freeze_if_schedule_changed(
        self,
        habit: HabitModel,
        new_scheduled_days: list[int] | None,
        today: date,
    ) -> StreakFreeze | None:
        old_scheduled_days = parse_scheduled_days(habit.scheduled_days)
        if not schedule_changed(old_scheduled_days, new_scheduled_days):
            return None

        holidays, day_offs = load_calendar(self.db, habit.account_id)
        old_baseline = streak_baseline(habit)
        old_eligible = get_scheduled_working_days(
            old_baseline, today, old_scheduled_days, holidays, day_offs
        )
        freeze = compute_freeze(
            completion_map(self.db, habit.habit_id),
            old_eligible,
            old_baseline=old_baseline,
            previous_frozen_streak=habit.frozen_streak,
            previous_frozen_at=habit.streak_frozen_at,
            today=today,
        )

        habit.frozen_streak = freeze.frozen_streak
        habit.streak_frozen_at = freeze.streak_frozen_at
        logger.info(
            "Streak frozen for habit_id=%d: %s -> %s, so_far=%d, frozen=%d at %s",
            habit.habit_id, old_scheduled_days, new_scheduled_days,
            freeze.streak_so_far, freeze.frozen_streak, freeze.streak_frozen_at.isoformat(),
        )
        return freeze
