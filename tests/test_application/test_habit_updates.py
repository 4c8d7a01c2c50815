"""
Tests for habit updates: schedule-change streak freeze and count retarget
"""
import pytest
from datetime import date, timedelta

from dailyhabits.infrastructure.db.models import HabitCompletionModel
from dailyhabits.infrastructure.eventlog.repository import EventLogRepository
from dailyhabits.application.common import HabitValidationError
from dailyhabits.application.completions import IncrementCountUseCase
from dailyhabits.application.habits import UpdateHabitUseCase
from dailyhabits.application.stats import get_habit_stats

# 2026-03-02 is a Monday
MON = date(2026, 3, 2)


@pytest.fixture
def streaky_habit(make_habit, add_completions):
    """Default schedule, created Mon 2, completed Mon 2 .. Mon 9 (6 working days)."""
    habit = make_habit(created_at=MON)
    days = [MON + timedelta(days=i) for i in (0, 1, 2, 3, 4, 7)]
    add_completions(habit.habit_id, {d: (1, True) for d in days})
    return habit


def _completed_flags(db_session, habit_id):
    rows = db_session.query(HabitCompletionModel).filter(
        HabitCompletionModel.habit_id == habit_id
    ).order_by(HabitCompletionModel.date.asc()).all()
    return [r.completed for r in rows]


class TestScheduleFreeze:
    def test_freeze_on_schedule_change(self, db_session, sample_account_id, streaky_habit):
        today = date(2026, 3, 10)
        assert get_habit_stats(db_session, streaky_habit.habit_id, sample_account_id, today)["currentStreak"] == 6

        habit = UpdateHabitUseCase(db_session).execute(
            streaky_habit.habit_id, sample_account_id, scheduled_days=[1, 3, 5], today=today
        )
        assert habit.scheduled_days == "1,3,5"
        assert habit.frozen_streak == 6
        assert habit.streak_frozen_at == date(2026, 3, 9)

        # Tue 10 is no longer scheduled: the frozen value carries over
        assert get_habit_stats(db_session, habit.habit_id, sample_account_id, today)["currentStreak"] == 6

    def test_streak_continues_after_freeze(self, db_session, sample_account_id, streaky_habit, add_completions):
        UpdateHabitUseCase(db_session).execute(
            streaky_habit.habit_id, sample_account_id, scheduled_days=[1, 3, 5], today=date(2026, 3, 10)
        )
        add_completions(streaky_habit.habit_id, {date(2026, 3, 11): (1, True)})

        # Wed 11 done, Fri 13 (today) still open: 6 + 1
        stats = get_habit_stats(db_session, streaky_habit.habit_id, sample_account_id, date(2026, 3, 13))
        assert stats["currentStreak"] == 7

    def test_second_freeze_accumulates(self, db_session, sample_account_id, streaky_habit, add_completions):
        uc = UpdateHabitUseCase(db_session)
        uc.execute(streaky_habit.habit_id, sample_account_id, scheduled_days=[1, 3, 5], today=date(2026, 3, 10))
        add_completions(streaky_habit.habit_id, {
            date(2026, 3, 11): (1, True),
            date(2026, 3, 13): (1, True),
        })

        habit = uc.execute(streaky_habit.habit_id, sample_account_id, scheduled_days=None, today=date(2026, 3, 16))
        assert habit.frozen_streak == 8
        assert habit.streak_frozen_at == date(2026, 3, 15)
        assert habit.scheduled_days is None

    def test_reordered_schedule_does_not_freeze(self, db_session, sample_account_id, make_habit):
        habit = make_habit(scheduled_days="1,3,5")
        habit = UpdateHabitUseCase(db_session).execute(
            habit.habit_id, sample_account_id, scheduled_days=[5, 3, 1], today=date(2026, 3, 10)
        )
        assert habit.streak_frozen_at is None
        assert habit.frozen_streak == 0

    def test_rename_does_not_freeze(self, db_session, sample_account_id, streaky_habit):
        habit = UpdateHabitUseCase(db_session).execute(
            streaky_habit.habit_id, sample_account_id, name="Read more", today=date(2026, 3, 10)
        )
        assert habit.name == "Read more"
        assert habit.streak_frozen_at is None

    def test_freeze_event_logged(self, db_session, sample_account_id, streaky_habit):
        UpdateHabitUseCase(db_session).execute(
            streaky_habit.habit_id, sample_account_id, scheduled_days=[1, 3, 5], today=date(2026, 3, 10)
        )
        events = EventLogRepository(db_session).list_events(
            sample_account_id, event_types=["habit_streak_frozen"]
        )
        assert len(events) == 1
        assert events[0].payload_json["frozen_streak"] == 6
        assert events[0].payload_json["old_scheduled_days"] is None

    def test_invalid_schedule_rejected_before_mutation(self, db_session, sample_account_id, streaky_habit):
        with pytest.raises(HabitValidationError):
            UpdateHabitUseCase(db_session).execute(
                streaky_habit.habit_id, sample_account_id,
                name="Changed", scheduled_days=[6], today=date(2026, 3, 10),
            )
        db_session.refresh(streaky_habit)
        assert streaky_habit.name == "Read"
        assert streaky_habit.frozen_streak == 0


class TestRetarget:
    @pytest.fixture
    def count_habit(self, make_habit, add_completions):
        habit = make_habit(type="count", target_value=3)
        add_completions(habit.habit_id, {
            date(2026, 3, 2): (2, False),
            date(2026, 3, 3): (5, True),
            date(2026, 3, 4): (1, False),
        })
        return habit

    def test_recomputes_completed_flags(self, db_session, sample_account_id, count_habit):
        assert _completed_flags(db_session, count_habit.habit_id) == [False, True, False]

        UpdateHabitUseCase(db_session).execute(count_habit.habit_id, sample_account_id, target_value=2)

        db_session.expire_all()
        assert _completed_flags(db_session, count_habit.habit_id) == [True, True, False]

    def test_same_target_is_noop(self, db_session, sample_account_id, count_habit):
        UpdateHabitUseCase(db_session).execute(count_habit.habit_id, sample_account_id, target_value=3)
        events = EventLogRepository(db_session).list_events(
            sample_account_id, event_types=["habit_retargeted"]
        )
        assert events == []

    def test_type_change_does_not_recompute(self, db_session, sample_account_id, count_habit):
        UpdateHabitUseCase(db_session).execute(
            count_habit.habit_id, sample_account_id, type="time", target_value=1
        )
        db_session.expire_all()
        assert _completed_flags(db_session, count_habit.habit_id) == [False, True, False]

    def test_zero_target_agrees_with_increment(self, db_session, sample_account_id, make_habit, add_completions):
        """Target 0 completes at 1, whether the flag comes from a retarget or an increment."""
        habit = make_habit(type="count", target_value=3)
        add_completions(habit.habit_id, {date(2026, 3, 2): (0, False), date(2026, 3, 3): (1, False)})

        UpdateHabitUseCase(db_session).execute(habit.habit_id, sample_account_id, target_value=0)
        db_session.expire_all()
        assert _completed_flags(db_session, habit.habit_id) == [False, True]

        increment = IncrementCountUseCase(db_session)
        increment.execute(habit.habit_id, sample_account_id, date(2026, 3, 2), 1)
        row = increment.execute(habit.habit_id, sample_account_id, date(2026, 3, 2), -1)
        assert row.value == 0
        assert row.completed is False
