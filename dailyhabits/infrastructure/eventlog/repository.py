"""
Event Log Repository - append-only audit trail of habit lifecycle changes.

Ledger and timer writes are not recorded here; only changes to the habit
definition itself (including streak freezes and retarget recomputes).
"""
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List
from sqlalchemy.orm import Session

from dailyhabits.infrastructure.db.models import EventLog


class EventLogRepository:
    """
    Repository for the event log
    """

    def __init__(self, db: Session):
        self.db = db

    def append_event(
        self,
        account_id: int,
        event_type: str,
        payload: Dict[str, Any],
        occurred_at: Optional[datetime] = None,
        actor_user_id: Optional[int] = None,
    ) -> int:
        """
        Append an event to the log (flushed, not committed)

        Args:
            account_id: owning account
            event_type: e.g. "habit_streak_frozen"
            payload: event data (stored as JSONB)
            occurred_at: when it happened (default: now)
            actor_user_id: who did it (optional)

        Returns:
            event_id of the new row

        Example:
            >>> repo = EventLogRepository(db)
            >>> event_id = repo.append_event(
            ...     account_id=1,
            ...     event_type="habit_archived",
            ...     payload={"habit_id": 12},
            ... )
        """
        if occurred_at is None:
            occurred_at = datetime.now(timezone.utc)

        event = EventLog(
            account_id=account_id,
            actor_user_id=actor_user_id,
            event_type=event_type,
            payload_json=payload,
            occurred_at=occurred_at,
        )

        self.db.add(event)
        self.db.flush()

        return event.id

    def list_events(
        self,
        account_id: int,
        event_types: Optional[List[str]] = None,
        habit_id: Optional[int] = None,
        limit: int = 200,
    ) -> List[EventLog]:
        """
        Events for an account in insertion order

        Args:
            account_id: owning account
            event_types: filter by type (optional)
            habit_id: keep only events whose payload names this habit (optional)
            limit: maximum rows
        """
        query = self.db.query(EventLog).filter(EventLog.account_id == account_id)

        if event_types:
            query = query.filter(EventLog.event_type.in_(event_types))

        events = query.order_by(EventLog.id.asc()).limit(limit).all()
        if habit_id is not None:
            events = [e for e in events if e.payload_json.get("habit_id") == habit_id]
        return events
