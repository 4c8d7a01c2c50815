"""
Tests for the timer state machine: start, pause, resume, stop, reset
"""
import pytest
from datetime import date, datetime, timedelta

from dailyhabits.infrastructure.db.models import ActiveTimerModel
from dailyhabits.application.common import HabitNotFoundError, HabitValidationError, TimerNotFoundError
from dailyhabits.application.completions import get_completion
from dailyhabits.application.timers import (
    PauseTimerUseCase,
    ResetTimerUseCase,
    StartTimerUseCase,
    StopTimerUseCase,
    get_timer,
    list_timers,
)

D = date(2026, 3, 4)
T0 = datetime(2026, 3, 4, 1, 0, 0)


@pytest.fixture
def time_habit(make_habit):
    return make_habit(name="Practice", type="time", target_value=1)


def _timer_count(db_session, habit_id):
    return db_session.query(ActiveTimerModel).filter(ActiveTimerModel.habit_id == habit_id).count()


class TestStartStop:
    def test_round_trip(self, db_session, sample_account_id, time_habit):
        """start, N seconds later stop -> completion value N, timer gone."""
        StartTimerUseCase(db_session).execute(time_habit.habit_id, sample_account_id, D, now=T0)
        result = StopTimerUseCase(db_session).execute(
            time_habit.habit_id, sample_account_id, now=T0 + timedelta(seconds=42)
        )
        assert result.total_seconds == 42
        assert result.completion.value == 42
        assert result.completion.date == D
        assert result.completion.completed is False  # target 1 min
        assert _timer_count(db_session, time_habit.habit_id) == 0

    def test_target_met(self, db_session, sample_account_id, time_habit):
        StartTimerUseCase(db_session).execute(time_habit.habit_id, sample_account_id, D, now=T0)
        result = StopTimerUseCase(db_session).execute(
            time_habit.habit_id, sample_account_id, now=T0 + timedelta(seconds=60)
        )
        assert result.completion.completed is True

    def test_start_continues_saved_value(self, db_session, sample_account_id, time_habit, add_completions):
        add_completions(time_habit.habit_id, {D: (100, False)})
        timer = StartTimerUseCase(db_session).execute(time_habit.habit_id, sample_account_id, D, now=T0)
        assert timer.accumulated_seconds == 100

        result = StopTimerUseCase(db_session).execute(
            time_habit.habit_id, sample_account_id, now=T0 + timedelta(seconds=20)
        )
        assert result.completion.value == 120
        assert result.completion.completed is True

    def test_stop_paused_timer(self, db_session, sample_account_id, time_habit):
        StartTimerUseCase(db_session).execute(time_habit.habit_id, sample_account_id, D, now=T0)
        PauseTimerUseCase(db_session).execute(time_habit.habit_id, sample_account_id, now=T0 + timedelta(seconds=10))
        result = StopTimerUseCase(db_session).execute(
            time_habit.habit_id, sample_account_id, now=T0 + timedelta(hours=2)
        )
        assert result.total_seconds == 10

    def test_stop_credits_timer_date(self, db_session, sample_account_id, time_habit):
        """Restarting on another date moves the timer; stop writes to that date."""
        uc = StartTimerUseCase(db_session)
        uc.execute(time_habit.habit_id, sample_account_id, D, now=T0)
        PauseTimerUseCase(db_session).execute(time_habit.habit_id, sample_account_id, now=T0 + timedelta(seconds=5))
        next_day = D + timedelta(days=1)
        uc.execute(time_habit.habit_id, sample_account_id, next_day, now=T0 + timedelta(days=1))
        StopTimerUseCase(db_session).execute(
            time_habit.habit_id, sample_account_id, now=T0 + timedelta(days=1, seconds=5)
        )
        assert get_completion(db_session, time_habit.habit_id, D) is None
        assert get_completion(db_session, time_habit.habit_id, next_day).value == 10

    def test_start_requires_date(self, db_session, sample_account_id, time_habit):
        with pytest.raises(HabitValidationError):
            StartTimerUseCase(db_session).execute(time_habit.habit_id, sample_account_id, None)

    def test_foreign_habit(self, db_session, make_habit):
        habit = make_habit(type="time", account_id=2)
        with pytest.raises(HabitNotFoundError):
            StartTimerUseCase(db_session).execute(habit.habit_id, 1, D, now=T0)


class TestPauseResume:
    def test_accumulates_across_runs(self, db_session, sample_account_id, time_habit):
        """pause after 5s -> 5; resume, pause after 3s more -> 8."""
        start = StartTimerUseCase(db_session)
        pause = PauseTimerUseCase(db_session)

        start.execute(time_habit.habit_id, sample_account_id, D, now=T0)
        timer = pause.execute(time_habit.habit_id, sample_account_id, now=T0 + timedelta(seconds=5))
        assert timer.accumulated_seconds == 5
        assert timer.is_running is False

        resumed_at = T0 + timedelta(seconds=60)
        start.execute(time_habit.habit_id, sample_account_id, D, now=resumed_at)
        timer = pause.execute(time_habit.habit_id, sample_account_id, now=resumed_at + timedelta(seconds=3))
        assert timer.accumulated_seconds == 8
        assert _timer_count(db_session, time_habit.habit_id) == 1

    def test_restart_while_running_drops_interrupted_run(self, db_session, sample_account_id, time_habit):
        start = StartTimerUseCase(db_session)
        start.execute(time_habit.habit_id, sample_account_id, D, now=T0)
        timer = start.execute(time_habit.habit_id, sample_account_id, D, now=T0 + timedelta(seconds=30))
        assert timer.accumulated_seconds == 0

        result = StopTimerUseCase(db_session).execute(
            time_habit.habit_id, sample_account_id, now=T0 + timedelta(seconds=40)
        )
        assert result.total_seconds == 10

    def test_pause_when_paused_is_unchanged(self, db_session, sample_account_id, time_habit):
        StartTimerUseCase(db_session).execute(time_habit.habit_id, sample_account_id, D, now=T0)
        pause = PauseTimerUseCase(db_session)
        pause.execute(time_habit.habit_id, sample_account_id, now=T0 + timedelta(seconds=5))
        timer = pause.execute(time_habit.habit_id, sample_account_id, now=T0 + timedelta(seconds=50))
        assert timer.accumulated_seconds == 5


class TestAbsentTimer:
    def test_pause_without_timer(self, db_session, sample_account_id, time_habit):
        with pytest.raises(TimerNotFoundError):
            PauseTimerUseCase(db_session).execute(time_habit.habit_id, sample_account_id)

    def test_stop_without_timer(self, db_session, sample_account_id, time_habit):
        with pytest.raises(TimerNotFoundError):
            StopTimerUseCase(db_session).execute(time_habit.habit_id, sample_account_id)

    def test_reset_is_idempotent(self, db_session, sample_account_id, time_habit):
        StartTimerUseCase(db_session).execute(time_habit.habit_id, sample_account_id, D, now=T0)
        uc = ResetTimerUseCase(db_session)
        assert uc.execute(time_habit.habit_id, sample_account_id) is True
        assert uc.execute(time_habit.habit_id, sample_account_id) is False
        assert get_completion(db_session, time_habit.habit_id, D) is None


class TestQueries:
    def test_get_and_list(self, db_session, sample_account_id, time_habit, make_habit):
        other = make_habit(type="time", account_id=2)
        StartTimerUseCase(db_session).execute(time_habit.habit_id, sample_account_id, D, now=T0)
        StartTimerUseCase(db_session).execute(other.habit_id, 2, D, now=T0)

        assert get_timer(db_session, time_habit.habit_id, sample_account_id).is_running is True
        assert [t.habit_id for t in list_timers(db_session, sample_account_id)] == [time_habit.habit_id]
