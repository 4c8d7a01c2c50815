"""
FastAPI dependencies (DB session, authenticated account, stats cache)
"""
from datetime import date

from fastapi import Request, HTTPException, status

from dailyhabits.application.common import HabitValidationError
from dailyhabits.application.stats_cache import StatsCache
from dailyhabits.infrastructure.db.session import get_db as _get_db
from dailyhabits.utils.validation import parse_iso_date


# Re-export get_db for convenience
get_db = _get_db


def get_current_account_id(request: Request) -> int:
    """
    Account of the logged-in user, taken from the session (user_id = account_id)

    Raises:
        HTTPException(401): if not logged in
    """
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )
    return int(user_id)


def get_stats_cache(request: Request) -> StatsCache:
    """Process-wide stats cache created by the application factory"""
    return request.app.state.stats_cache


def parse_date_param(value: str | None, name: str) -> date | None:
    """Query string date -> date; a malformed value is a 400, not a 422"""
    try:
        return parse_iso_date(value)
    except ValueError as e:
        raise HabitValidationError(f"{name}: {e}") from e
