"""Habit use cases: create, update (schedule freeze, retarget), pause, archive, delete"""
import logging
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from dailyhabits.application.common import (
    HabitNotFoundError,
    HabitValidationError,
    get_owned_habit,
    local_today,
)
from dailyhabits.application.completions import recompute_completed_for_target
from dailyhabits.application.streaks import StreakFreezeManager
from dailyhabits.domain.habit import (
    HABIT_TYPES,
    Habit,
    ScheduleValidationError,
    format_scheduled_days,
    parse_scheduled_days,
    validate_scheduled_days,
)
from dailyhabits.infrastructure.db.models import ActiveTimerModel, HabitCompletionModel, HabitModel
from dailyhabits.infrastructure.eventlog.repository import EventLogRepository

logger = logging.getLogger(__name__)

# Sentinel: "field not supplied" (None is a meaningful scheduled_days value)
UNSET: Any = object()


def _validate_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise HabitValidationError("Name required")
    if len(name) > 255:
        raise HabitValidationError("Name is too long")
    return name


def _validate_type(habit_type: str) -> str:
    if habit_type not in HABIT_TYPES:
        raise HabitValidationError(f"type must be one of {', '.join(HABIT_TYPES)}")
    return habit_type


def _validate_target(target_value: int | None) -> int | None:
    if target_value is not None and target_value < 0:
        raise HabitValidationError("target_value must not be negative")
    return target_value


def _validate_schedule(value: Any) -> list[int] | None:
    try:
        return validate_scheduled_days(value)
    except ScheduleValidationError as e:
        raise HabitValidationError(str(e)) from e


class CreateHabitUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def execute(
        self,
        account_id: int,
        name: str,
        type: str = "boolean",
        target_value: int | None = None,
        scheduled_days: list[int] | None = None,
        today: date | None = None,
        actor_user_id: int | None = None,
    ) -> HabitModel:
        name = _validate_name(name)
        habit_type = _validate_type(type)
        target_value = _validate_target(target_value)
        scheduled_days = _validate_schedule(scheduled_days)
        if today is None:
            today = local_today()

        max_order = self.db.query(func.coalesce(func.max(HabitModel.sort_order), 0)).filter(
            HabitModel.account_id == account_id,
            HabitModel.archived_at.is_(None),
        ).scalar() or 0

        habit = HabitModel(
            account_id=account_id,
            name=name,
            type=habit_type,
            target_value=target_value,
            sort_order=max_order + 1,
            scheduled_days=format_scheduled_days(scheduled_days),
            frozen_streak=0,
            streak_frozen_at=None,
            created_at=today,
        )
        self.db.add(habit)
        self.db.flush()

        self.event_repo.append_event(
            account_id=account_id,
            event_type="habit_created",
            payload=Habit.create(
                account_id=account_id,
                habit_id=habit.habit_id,
                name=habit.name,
                type=habit.type,
                target_value=habit.target_value,
                sort_order=habit.sort_order,
                scheduled_days=scheduled_days,
                created_at=today,
            ),
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        return habit


class UpdateHabitUseCase:
    """Partial update. A schedule change freezes the accrued streak first;
    a count-habit target change recomputes every completed flag."""
    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def execute(
        self,
        habit_id: int,
        account_id: int,
        name: Any = UNSET,
        type: Any = UNSET,
        target_value: Any = UNSET,
        sort_order: Any = UNSET,
        scheduled_days: Any = UNSET,
        today: date | None = None,
        actor_user_id: int | None = None,
    ) -> HabitModel:
        # Validate everything before touching the row
        changes: dict[str, Any] = {}
        if name is not UNSET and name is not None:
            changes["name"] = _validate_name(name)
        if type is not UNSET and type is not None:
            changes["type"] = _validate_type(type)
        if target_value is not UNSET and target_value is not None:
            changes["target_value"] = _validate_target(target_value)
        if sort_order is not UNSET and sort_order is not None:
            changes["sort_order"] = sort_order
        if scheduled_days is not UNSET:
            changes["scheduled_days"] = _validate_schedule(scheduled_days)
        if today is None:
            today = local_today()

        habit = get_owned_habit(self.db, habit_id, account_id, include_archived=False, for_update=True)
        old_type = habit.type
        old_target = habit.target_value

        if "scheduled_days" in changes:
            freeze = StreakFreezeManager(self.db).freeze_if_schedule_changed(
                habit, changes["scheduled_days"], today
            )
            if freeze is not None:
                self.event_repo.append_event(
                    account_id=account_id,
                    event_type="habit_streak_frozen",
                    payload=Habit.streak_frozen(
                        habit.habit_id,
                        old_scheduled_days=parse_scheduled_days(habit.scheduled_days),
                        new_scheduled_days=changes["scheduled_days"],
                        streak_so_far=freeze.streak_so_far,
                        frozen_streak=freeze.frozen_streak,
                        streak_frozen_at=freeze.streak_frozen_at,
                    ),
                    actor_user_id=actor_user_id,
                )
            habit.scheduled_days = format_scheduled_days(changes["scheduled_days"])

        if "name" in changes:
            habit.name = changes["name"]
        if "type" in changes:
            habit.type = changes["type"]
        if "target_value" in changes:
            habit.target_value = changes["target_value"]
        if "sort_order" in changes:
            habit.sort_order = changes["sort_order"]

        new_target = changes.get("target_value")
        if (
            old_type == "count"
            and habit.type == "count"
            and new_target is not None
            and new_target != old_target
        ):
            self.db.flush()
            rows = recompute_completed_for_target(self.db, habit.habit_id, new_target)
            logger.info(
                "Retarget habit_id=%d: %s -> %d, recomputed %d completion(s)",
                habit.habit_id, old_target, new_target, rows,
            )
            self.event_repo.append_event(
                account_id=account_id,
                event_type="habit_retargeted",
                payload=Habit.retargeted(habit.habit_id, old_target, new_target, rows),
                actor_user_id=actor_user_id,
            )

        self.event_repo.append_event(
            account_id=account_id,
            event_type="habit_updated",
            payload=Habit.update(habit.habit_id, **changes),
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        return habit


class PauseHabitUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def execute(self, habit_id: int, account_id: int, actor_user_id: int | None = None) -> HabitModel:
        habit = get_owned_habit(self.db, habit_id, account_id, include_archived=False)
        if habit.paused_at is not None:
            raise HabitNotFoundError(f"Habit #{habit_id} not found")

        habit.paused_at = datetime.now(timezone.utc)
        self.event_repo.append_event(
            account_id=account_id,
            event_type="habit_paused",
            payload=Habit.pause(habit_id),
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        return habit


class UnpauseHabitUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def execute(self, habit_id: int, account_id: int, actor_user_id: int | None = None) -> HabitModel:
        habit = get_owned_habit(self.db, habit_id, account_id)

        habit.paused_at = None
        self.event_repo.append_event(
            account_id=account_id,
            event_type="habit_unpaused",
            payload=Habit.unpause(habit_id),
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        return habit


class ArchiveHabitUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def execute(self, habit_id: int, account_id: int, actor_user_id: int | None = None) -> HabitModel:
        habit = get_owned_habit(self.db, habit_id, account_id)
        if habit.archived_at is not None:
            raise HabitValidationError("Habit is already archived")

        habit.archived_at = datetime.now(timezone.utc)
        self.event_repo.append_event(
            account_id=account_id,
            event_type="habit_archived",
            payload=Habit.archive(habit_id),
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        return habit


class UnarchiveHabitUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def execute(self, habit_id: int, account_id: int, actor_user_id: int | None = None) -> HabitModel:
        habit = get_owned_habit(self.db, habit_id, account_id)
        if habit.archived_at is None:
            raise HabitValidationError("Habit is not archived")

        habit.archived_at = None
        self.event_repo.append_event(
            account_id=account_id,
            event_type="habit_unarchived",
            payload=Habit.unarchive(habit_id),
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        return habit


class DeleteHabitUseCase:
    """Hard delete: completions and the timer go with the habit."""
    def __init__(self, db: Session):
        self.db = db
        self.event_repo = EventLogRepository(db)

    def execute(self, habit_id: int, account_id: int, actor_user_id: int | None = None) -> None:
        habit = get_owned_habit(self.db, habit_id, account_id)

        removed = self.db.query(HabitCompletionModel).filter(
            HabitCompletionModel.habit_id == habit.habit_id
        ).delete(synchronize_session=False)
        self.db.query(ActiveTimerModel).filter(
            ActiveTimerModel.habit_id == habit.habit_id
        ).delete(synchronize_session=False)
        self.db.delete(habit)

        self.event_repo.append_event(
            account_id=account_id,
            event_type="habit_deleted",
            payload=Habit.delete(habit_id, removed),
            actor_user_id=actor_user_id,
        )
        self.db.commit()


class ReorderHabitsUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, account_id: int, order: list[tuple[int, int]]) -> None:
        """order: [(habit_id, sort_order), ...]; every habit must belong to the account."""
        habits = [get_owned_habit(self.db, habit_id, account_id) for habit_id, _ in order]
        for habit, (_, sort_order) in zip(habits, order):
            habit.sort_order = sort_order
        self.db.commit()


# --- Queries ---

def list_habits(db: Session, account_id: int, include_archived: bool = False) -> list[HabitModel]:
    query = db.query(HabitModel).filter(HabitModel.account_id == account_id)
    if not include_archived:
        query = query.filter(HabitModel.archived_at.is_(None))
    return query.order_by(
        HabitModel.sort_order.asc(), HabitModel.created_at.asc(), HabitModel.habit_id.asc()
    ).all()
