"""
SQLAlchemy ORM models
"""
from datetime import date as date_type, datetime
from sqlalchemy import String, DateTime, Integer, Text, TIMESTAMP, Date, func, Boolean, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB

from dailyhabits.infrastructure.db.session import Base


class User(Base):
    """
    Account owner. Authentication lives outside this service.
    """
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )


class EventLog(Base):
    """
    Append-only audit trail of habit lifecycle changes
    """
    __tablename__ = "event_log"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    actor_user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    event_type: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    payload_json: Mapped[dict] = mapped_column(JSONB, nullable=False)  # PostgreSQL JSONB

    occurred_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        index=True
    )
    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )


class HabitModel(Base):
    """Habit definition with its frozen-streak bookkeeping"""
    __tablename__ = "habits"

    habit_id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False, server_default="boolean")  # boolean/count/time
    target_value: Mapped[int | None] = mapped_column(Integer, nullable=True)  # count units or minutes
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")

    # "1,3,5" (MO=1..FR=5); NULL = every weekday
    scheduled_days: Mapped[str | None] = mapped_column(String(16), nullable=True)

    frozen_streak: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    streak_frozen_at: Mapped[date_type | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[date_type] = mapped_column(Date, nullable=False)
    paused_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    archived_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True, index=True)


class HabitCompletionModel(Base):
    """Completion ledger: one row per (habit, date)"""
    __tablename__ = "habit_completions"

    id: Mapped[int] = mapped_column(primary_key=True)
    habit_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    date: Mapped[date_type] = mapped_column(Date, nullable=False)
    value: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")  # 1/0, count or seconds
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")

    __table_args__ = (
        UniqueConstraint('habit_id', 'date', name='uq_habit_completion_date'),
        Index('ix_habit_completions_date', 'date'),
    )


class ActiveTimerModel(Base):
    """At most one running or paused timer per habit"""
    __tablename__ = "active_timers"

    habit_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    date: Mapped[date_type] = mapped_column(Date, nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)  # naive UTC
    accumulated_seconds: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    is_running: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")


class HolidayModel(Base):
    """Public holidays cache (global)"""
    __tablename__ = "holidays"

    date: Mapped[date_type] = mapped_column(Date, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)


class DayOffModel(Base):
    """Personal days off (per account)"""
    __tablename__ = "day_offs"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    date: Mapped[date_type] = mapped_column(Date, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint('account_id', 'date', name='uq_day_off_account_date'),
    )
