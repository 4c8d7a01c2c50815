"""
Timer API endpoints for time habits
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from dailyhabits.api.deps import get_current_account_id, get_db, get_stats_cache
from dailyhabits.api.v1.completions import CompletionResponse, DateRequest, completion_to_response
from dailyhabits.application.stats_cache import StatsCache
from dailyhabits.application.timers import (
    PauseTimerUseCase,
    ResetTimerUseCase,
    StartTimerUseCase,
    StopTimerUseCase,
    get_timer,
    list_timers,
)
from dailyhabits.domain.timer import total_seconds, utcnow
from dailyhabits.infrastructure.db.models import ActiveTimerModel


router = APIRouter(prefix="/api/v1/habits", tags=["timers"])


# === Request/Response models ===

class TimerResponse(BaseModel):
    habit_id: int
    date: str  # YYYY-MM-DD
    started_at: str | None  # UTC, ISO 8601
    accumulated_seconds: int
    is_running: bool
    elapsed_seconds: int  # accumulated + current run


class TimerStopResponse(BaseModel):
    completion: CompletionResponse
    total_seconds: int


def timer_to_response(timer: ActiveTimerModel) -> TimerResponse:
    return TimerResponse(
        habit_id=timer.habit_id,
        date=timer.date.isoformat(),
        started_at=timer.started_at.isoformat() + "Z" if timer.started_at else None,
        accumulated_seconds=timer.accumulated_seconds,
        is_running=bool(timer.is_running),
        elapsed_seconds=total_seconds(
            timer.accumulated_seconds, timer.is_running, timer.started_at, utcnow()
        ),
    )


# === Endpoints ===

@router.get("/timers", response_model=list[TimerResponse])
def get_active_timers(
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    return [timer_to_response(t) for t in list_timers(db, account_id)]


@router.get("/{habit_id}/timer", response_model=TimerResponse | None)
def get_habit_timer(
    habit_id: int,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    timer = get_timer(db, habit_id, account_id)
    return timer_to_response(timer) if timer else None


@router.post("/{habit_id}/timer/start", response_model=TimerResponse)
def start_timer(
    habit_id: int,
    req: DateRequest,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    """Start, or resume a paused timer"""
    timer = StartTimerUseCase(db).execute(habit_id, account_id, req.date)
    return timer_to_response(timer)


@router.post("/{habit_id}/timer/pause", response_model=TimerResponse)
def pause_timer(
    habit_id: int,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    timer = PauseTimerUseCase(db).execute(habit_id, account_id)
    return timer_to_response(timer)


@router.post("/{habit_id}/timer/stop", response_model=TimerStopResponse)
def stop_timer(
    habit_id: int,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
    cache: StatsCache = Depends(get_stats_cache),
):
    """Save the tracked time to the timer's date and drop the timer"""
    result = StopTimerUseCase(db).execute(habit_id, account_id)
    cache.invalidate(account_id)
    return TimerStopResponse(
        completion=completion_to_response(result.completion),
        total_seconds=result.total_seconds,
    )


@router.post("/{habit_id}/timer/reset")
def reset_timer(
    habit_id: int,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    """Discard the timer without saving; idempotent"""
    removed = ResetTimerUseCase(db).execute(habit_id, account_id)
    return {"success": True, "reset": removed}
