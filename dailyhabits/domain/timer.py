"""Timer arithmetic for time-based habits"""
import math
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, the representation stored in active_timers."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def elapsed_seconds(started_at: datetime | None, now: datetime) -> int:
    """Whole seconds between started_at and now, never negative."""
    if started_at is None:
        return 0
    if started_at.tzinfo is not None:
        started_at = started_at.astimezone(timezone.utc).replace(tzinfo=None)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)
    return max(0, math.floor((now - started_at).total_seconds()))


def total_seconds(accumulated_seconds: int, is_running: bool, started_at: datetime | None, now: datetime) -> int:
    total = accumulated_seconds or 0
    if is_running:
        total += elapsed_seconds(started_at, now)
    return total


def is_time_target_met(seconds: int, target_minutes: int | None) -> bool:
    """A time habit without a target counts as complete once stopped."""
    return seconds >= (target_minutes or 0) * 60
