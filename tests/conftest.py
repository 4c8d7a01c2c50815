"""
Pytest fixtures for testing
"""
from datetime import date

import pytest
from sqlalchemy import create_engine, JSON
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from sqlalchemy.dialects.postgresql import JSONB

from dailyhabits.infrastructure.db.session import Base
from dailyhabits.infrastructure.db.models import HabitCompletionModel, HabitModel


@pytest.fixture
def db_engine():
    """Create in-memory SQLite engine for tests, with JSONB→JSON mapping.

    StaticPool keeps one connection so API requests served from the
    threadpool see the same in-memory database.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Monkey-patch JSONB columns to JSON for SQLite compatibility
    for table in Base.metadata.tables.values():
        for col in table.columns:
            if isinstance(col.type, JSONB):
                col.type = JSON()
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def sample_account_id():
    """Sample account ID for tests"""
    return 1


@pytest.fixture
def make_habit(db_session, sample_account_id):
    """Insert a habit row directly (bypassing validation)."""
    def _make(
        name="Read",
        type="boolean",
        target_value=None,
        scheduled_days=None,
        created_at=date(2026, 3, 2),
        account_id=None,
        **fields,
    ) -> HabitModel:
        habit = HabitModel(
            account_id=account_id or sample_account_id,
            name=name,
            type=type,
            target_value=target_value,
            sort_order=fields.pop("sort_order", 0),
            scheduled_days=scheduled_days,
            frozen_streak=fields.pop("frozen_streak", 0),
            streak_frozen_at=fields.pop("streak_frozen_at", None),
            created_at=created_at,
            **fields,
        )
        db_session.add(habit)
        db_session.commit()
        return habit
    return _make


@pytest.fixture
def add_completions(db_session):
    """Insert completion rows: {date: (value, completed)}."""
    def _add(habit_id: int, rows: dict) -> None:
        for d, (value, completed) in rows.items():
            db_session.add(HabitCompletionModel(
                habit_id=habit_id, date=d, value=value, completed=completed,
            ))
        db_session.commit()
    return _add
