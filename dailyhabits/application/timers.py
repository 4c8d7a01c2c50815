"""Timer state machine for time habits.

States: absent (no row) -> running -> paused -> running | absent.
Stopping credits the accumulated seconds to the timer's date in the ledger.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy.orm import Session

from dailyhabits.application.common import HabitValidationError, TimerNotFoundError, get_owned_habit
from dailyhabits.application.completions import get_completion, upsert_completion
from dailyhabits.domain.timer import elapsed_seconds, is_time_target_met, total_seconds, utcnow
from dailyhabits.infrastructure.db.models import ActiveTimerModel, HabitCompletionModel, HabitModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimerStopResult:
    completion: HabitCompletionModel
    total_seconds: int


def _get_timer(db: Session, habit_id: int) -> ActiveTimerModel | None:
    return db.query(ActiveTimerModel).filter(ActiveTimerModel.habit_id == habit_id).first()


class StartTimerUseCase:
    """Start or resume. A fresh timer continues from the value already saved for the date."""
    def __init__(self, db: Session):
        self.db = db

    def execute(self, habit_id: int, account_id: int, on_date: date | None,
                now: datetime | None = None) -> ActiveTimerModel:
        if on_date is None:
            raise HabitValidationError("Date required")
        habit = get_owned_habit(self.db, habit_id, account_id)
        if now is None:
            now = utcnow()

        timer = _get_timer(self.db, habit.habit_id)
        if timer:
            # Restarting a running timer drops the seconds of the interrupted run
            timer.date = on_date
            timer.started_at = now
            timer.is_running = True
        else:
            existing = get_completion(self.db, habit.habit_id, on_date)
            timer = ActiveTimerModel(
                habit_id=habit.habit_id,
                date=on_date,
                started_at=now,
                accumulated_seconds=existing.value if existing else 0,
                is_running=True,
            )
            self.db.add(timer)
        self.db.commit()
        return timer


class PauseTimerUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, habit_id: int, account_id: int, now: datetime | None = None) -> ActiveTimerModel:
        habit = get_owned_habit(self.db, habit_id, account_id)
        timer = _get_timer(self.db, habit.habit_id)
        if not timer:
            raise TimerNotFoundError("No timer found")
        if not timer.is_running:
            return timer

        if now is None:
            now = utcnow()
        timer.accumulated_seconds = (timer.accumulated_seconds or 0) + elapsed_seconds(timer.started_at, now)
        timer.is_running = False
        self.db.commit()
        return timer


class StopTimerUseCase:
    """Write the total to the ledger and drop the timer."""
    def __init__(self, db: Session):
        self.db = db

    def execute(self, habit_id: int, account_id: int, now: datetime | None = None) -> TimerStopResult:
        habit = get_owned_habit(self.db, habit_id, account_id)
        timer = _get_timer(self.db, habit.habit_id)
        if not timer:
            raise TimerNotFoundError("No timer found")

        if now is None:
            now = utcnow()
        timer_date = timer.date
        seconds = total_seconds(timer.accumulated_seconds, timer.is_running, timer.started_at, now)
        completion = upsert_completion(
            self.db, habit.habit_id, timer_date,
            value=seconds,
            completed=is_time_target_met(seconds, habit.target_value),
        )
        self.db.delete(timer)
        self.db.commit()
        logger.info("Timer stopped: habit_id=%d date=%s seconds=%d", habit.habit_id, timer_date.isoformat(), seconds)
        return TimerStopResult(completion=completion, total_seconds=seconds)


class ResetTimerUseCase:
    """Drop the timer without touching the ledger. Returns False if there was none."""
    def __init__(self, db: Session):
        self.db = db

    def execute(self, habit_id: int, account_id: int) -> bool:
        habit = get_owned_habit(self.db, habit_id, account_id)
        removed = self.db.query(ActiveTimerModel).filter(
            ActiveTimerModel.habit_id == habit.habit_id
        ).delete(synchronize_session=False)
        self.db.commit()
        return removed > 0


# --- Queries ---

def get_timer(db: Session, habit_id: int, account_id: int) -> ActiveTimerModel | None:
    habit = get_owned_habit(db, habit_id, account_id)
    return _get_timer(db, habit.habit_id)


def list_timers(db: Session, account_id: int) -> list[ActiveTimerModel]:
    return db.query(ActiveTimerModel).join(
        HabitModel, HabitModel.habit_id == ActiveTimerModel.habit_id
    ).filter(HabitModel.account_id == account_id).all()
