"""
Completion ledger API endpoints (toggle, manual value, increment, range listing)
"""
from datetime import date as date_type
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from dailyhabits.api.deps import get_current_account_id, get_db, get_stats_cache, parse_date_param
from dailyhabits.application.common import HabitValidationError
from dailyhabits.application.completions import (
    IncrementCountUseCase,
    SetCompletionValueUseCase,
    ToggleCompletionUseCase,
    list_completions,
)
from dailyhabits.application.stats_cache import StatsCache
from dailyhabits.infrastructure.db.models import HabitCompletionModel
from dailyhabits.utils.validation import parse_iso_date


router = APIRouter(prefix="/api/v1", tags=["completions"])


# === Request/Response models ===

class DateRequest(BaseModel):
    date: date_type | None = None  # YYYY-MM-DD

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v: Any) -> Any:
        """Strict YYYY-MM-DD (no timestamps, no datetimes)"""
        if isinstance(v, str):
            return parse_iso_date(v)
        return v


class SetCompletionRequest(DateRequest):
    value: int | None = None
    completed: bool | None = None


class IncrementRequest(DateRequest):
    delta: int = 1


class CompletionResponse(BaseModel):
    habit_id: int
    date: str  # YYYY-MM-DD
    value: int
    completed: bool


def completion_to_response(c: HabitCompletionModel) -> CompletionResponse:
    return CompletionResponse(
        habit_id=c.habit_id,
        date=c.date.isoformat(),
        value=c.value,
        completed=bool(c.completed),
    )


# === Endpoints ===

@router.post("/habits/{habit_id}/toggle", response_model=CompletionResponse)
def toggle_completion(
    habit_id: int,
    req: DateRequest,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
    cache: StatsCache = Depends(get_stats_cache),
):
    """Boolean habits: flip done / not done for the date"""
    completion = ToggleCompletionUseCase(db).execute(habit_id, account_id, req.date)
    cache.invalidate(account_id)
    return completion_to_response(completion)


@router.post("/habits/{habit_id}/completion", response_model=CompletionResponse)
def set_completion(
    habit_id: int,
    req: SetCompletionRequest,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
    cache: StatsCache = Depends(get_stats_cache),
):
    """Set value and completed for the date explicitly"""
    completion = SetCompletionValueUseCase(db).execute(
        habit_id, account_id, req.date, value=req.value, completed=req.completed
    )
    cache.invalidate(account_id)
    return completion_to_response(completion)


@router.post("/habits/{habit_id}/increment", response_model=CompletionResponse)
def increment_count(
    habit_id: int,
    req: IncrementRequest,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
    cache: StatsCache = Depends(get_stats_cache),
):
    """Count habits: add delta (may be negative, floor is zero)"""
    completion = IncrementCountUseCase(db).execute(habit_id, account_id, req.date, delta=req.delta)
    cache.invalidate(account_id)
    return completion_to_response(completion)


@router.get("/completions", response_model=list[CompletionResponse])
def get_completions(
    startDate: str | None = None,
    endDate: str | None = None,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    start = parse_date_param(startDate, "startDate")
    end = parse_date_param(endDate, "endDate")
    if start is None or end is None:
        raise HabitValidationError("startDate and endDate required")
    return [completion_to_response(c) for c in list_completions(db, account_id, start, end)]
