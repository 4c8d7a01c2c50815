"""Completion ledger: per-habit, per-date upserts and ledger queries"""
from datetime import date

from sqlalchemy import case, not_, true
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from dailyhabits.application.common import HabitValidationError, get_owned_habit
from dailyhabits.domain.habit import completion_target
from dailyhabits.infrastructure.db.models import HabitCompletionModel, HabitModel


_CONFLICT_KEYS = ["habit_id", "date"]


def _insert(db: Session):
    """Dialect insert() that supports ON CONFLICT DO UPDATE."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(HabitCompletionModel)
    if dialect == "sqlite":
        return sqlite.insert(HabitCompletionModel)
    raise NotImplementedError(f"Upsert is not supported for dialect {dialect}")


def _reload(db: Session, habit_id: int, d: date) -> HabitCompletionModel:
    return db.query(HabitCompletionModel).populate_existing().filter(
        HabitCompletionModel.habit_id == habit_id,
        HabitCompletionModel.date == d,
    ).one()


def upsert_completion(db: Session, habit_id: int, d: date, value: int, completed: bool) -> HabitCompletionModel:
    """Direct assignment of both fields; value is clamped at zero."""
    value = max(0, value)
    stmt = _insert(db).values(habit_id=habit_id, date=d, value=value, completed=completed)
    stmt = stmt.on_conflict_do_update(
        index_elements=_CONFLICT_KEYS,
        set_={"value": stmt.excluded.value, "completed": stmt.excluded.completed},
    )
    db.execute(stmt)
    return _reload(db, habit_id, d)


def apply_increment(db: Session, habit_id: int, d: date, delta: int, target: int) -> HabitCompletionModel:
    """value = max(0, value + delta) computed by the database, one statement per delta."""
    initial = max(0, delta)
    stmt = _insert(db).values(habit_id=habit_id, date=d, value=initial, completed=initial >= target)
    summed = HabitCompletionModel.value + delta
    clamped = case((summed < 0, 0), else_=summed)
    stmt = stmt.on_conflict_do_update(
        index_elements=_CONFLICT_KEYS,
        set_={"value": clamped, "completed": clamped >= target},
    )
    db.execute(stmt)
    return _reload(db, habit_id, d)


def apply_toggle(db: Session, habit_id: int, d: date) -> HabitCompletionModel:
    """Flip completed in one statement; value mirrors the flag (1/0)."""
    stmt = _insert(db).values(habit_id=habit_id, date=d, value=1, completed=True)
    stmt = stmt.on_conflict_do_update(
        index_elements=_CONFLICT_KEYS,
        set_={
            "completed": not_(HabitCompletionModel.completed),
            "value": case((HabitCompletionModel.completed == true(), 0), else_=1),
        },
    )
    db.execute(stmt)
    return _reload(db, habit_id, d)


def recompute_completed_for_target(db: Session, habit_id: int, new_target: int | None) -> int:
    """completed = value >= target for every row of the habit. Returns rows touched.

    Uses the same effective target as increments, so a target of 0 or None means 1.
    """
    target = completion_target(new_target)
    return db.query(HabitCompletionModel).filter(
        HabitCompletionModel.habit_id == habit_id
    ).update(
        {HabitCompletionModel.completed: HabitCompletionModel.value >= target},
        synchronize_session=False,
    )


class ToggleCompletionUseCase:
    """Boolean habits: DONE <-> not done for a date."""
    def __init__(self, db: Session):
        self.db = db

    def execute(self, habit_id: int, account_id: int, on_date: date | None) -> HabitCompletionModel:
        if on_date is None:
            raise HabitValidationError("Date required")
        habit = get_owned_habit(self.db, habit_id, account_id)
        if habit.type != "boolean":
            raise HabitValidationError("Toggle is only available for boolean habits")

        completion = apply_toggle(self.db, habit.habit_id, on_date)
        self.db.commit()
        return completion


class SetCompletionValueUseCase:
    """Manual correction: caller supplies value and completed explicitly."""
    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        habit_id: int,
        account_id: int,
        on_date: date | None,
        value: int | None = None,
        completed: bool | None = None,
    ) -> HabitCompletionModel:
        if on_date is None:
            raise HabitValidationError("Date required")
        habit = get_owned_habit(self.db, habit_id, account_id)

        completion = upsert_completion(
            self.db, habit.habit_id, on_date,
            value=value if value is not None else 0,
            completed=bool(completed),
        )
        self.db.commit()
        return completion


class IncrementCountUseCase:
    """Add a (possibly negative) delta to a date's running count."""
    def __init__(self, db: Session):
        self.db = db

    def execute(self, habit_id: int, account_id: int, on_date: date | None, delta: int = 1) -> HabitCompletionModel:
        if on_date is None:
            raise HabitValidationError("Date required")
        habit = get_owned_habit(self.db, habit_id, account_id)

        completion = apply_increment(
            self.db, habit.habit_id, on_date, delta, completion_target(habit.target_value)
        )
        self.db.commit()
        return completion


# --- Queries ---

def completion_map(db: Session, habit_id: int) -> dict[date, bool]:
    rows = db.query(HabitCompletionModel.date, HabitCompletionModel.completed).filter(
        HabitCompletionModel.habit_id == habit_id
    ).all()
    return {d: bool(c) for d, c in rows}


def get_completion(db: Session, habit_id: int, d: date) -> HabitCompletionModel | None:
    return db.query(HabitCompletionModel).filter(
        HabitCompletionModel.habit_id == habit_id,
        HabitCompletionModel.date == d,
    ).first()


def list_completions(db: Session, account_id: int, start: date, end: date) -> list[HabitCompletionModel]:
    """Completions of the account's habits in [start, end]."""
    if start > end:
        raise HabitValidationError("startDate must not be after endDate")
    return db.query(HabitCompletionModel).join(
        HabitModel, HabitModel.habit_id == HabitCompletionModel.habit_id
    ).filter(
        HabitModel.account_id == account_id,
        HabitCompletionModel.date >= start,
        HabitCompletionModel.date <= end,
    ).order_by(HabitCompletionModel.date.asc(), HabitCompletionModel.habit_id.asc()).all()
