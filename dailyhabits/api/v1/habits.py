"""
Habit API endpoints (lifecycle)
"""
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from dailyhabits.api.deps import get_current_account_id, get_db, get_stats_cache
from dailyhabits.application.habits import (
    ArchiveHabitUseCase,
    CreateHabitUseCase,
    DeleteHabitUseCase,
    PauseHabitUseCase,
    ReorderHabitsUseCase,
    UnarchiveHabitUseCase,
    UnpauseHabitUseCase,
    UpdateHabitUseCase,
    list_habits,
)
from dailyhabits.application.stats_cache import StatsCache
from dailyhabits.domain.habit import parse_scheduled_days
from dailyhabits.infrastructure.db.models import HabitModel


router = APIRouter(prefix="/api/v1/habits", tags=["habits"])


# === Request/Response models ===

class CreateHabitRequest(BaseModel):
    name: str
    type: str = "boolean"  # boolean, count, time
    target_value: int | None = None  # count units or minutes
    scheduled_days: Any = None  # [1..5], null = Mon-Fri


class UpdateHabitRequest(BaseModel):
    """Only the fields present in the body are changed"""
    name: str | None = None
    type: str | None = None
    target_value: int | None = None
    sort_order: int | None = None
    scheduled_days: Any = None


class ReorderItem(BaseModel):
    habit_id: int
    sort_order: int


class ReorderRequest(BaseModel):
    order: list[ReorderItem]


class HabitResponse(BaseModel):
    habit_id: int
    name: str
    type: str
    target_value: int | None
    sort_order: int
    scheduled_days: list[int] | None
    frozen_streak: int
    streak_frozen_at: str | None  # YYYY-MM-DD
    created_at: str  # YYYY-MM-DD
    is_paused: bool
    is_archived: bool


def habit_to_response(habit: HabitModel) -> HabitResponse:
    return HabitResponse(
        habit_id=habit.habit_id,
        name=habit.name,
        type=habit.type,
        target_value=habit.target_value,
        sort_order=habit.sort_order,
        scheduled_days=parse_scheduled_days(habit.scheduled_days),
        frozen_streak=habit.frozen_streak,
        streak_frozen_at=habit.streak_frozen_at.isoformat() if habit.streak_frozen_at else None,
        created_at=habit.created_at.isoformat(),
        is_paused=habit.paused_at is not None,
        is_archived=habit.archived_at is not None,
    )


# === Endpoints ===

@router.get("", response_model=list[HabitResponse])
def get_habits(
    include_archived: bool = False,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    """List habits in display order"""
    return [habit_to_response(h) for h in list_habits(db, account_id, include_archived)]


@router.post("", response_model=HabitResponse, status_code=201)
def create_habit(
    req: CreateHabitRequest,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
    cache: StatsCache = Depends(get_stats_cache),
):
    habit = CreateHabitUseCase(db).execute(
        account_id=account_id,
        name=req.name,
        type=req.type,
        target_value=req.target_value,
        scheduled_days=req.scheduled_days,
        actor_user_id=account_id,
    )
    cache.invalidate(account_id)
    return habit_to_response(habit)


@router.post("/reorder")
def reorder_habits(
    req: ReorderRequest,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    ReorderHabitsUseCase(db).execute(
        account_id=account_id,
        order=[(item.habit_id, item.sort_order) for item in req.order],
    )
    return {"success": True}


@router.put("/{habit_id}", response_model=HabitResponse)
def update_habit(
    habit_id: int,
    req: UpdateHabitRequest,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
    cache: StatsCache = Depends(get_stats_cache),
):
    """Partial update; a schedule change freezes the current streak"""
    changes = {field: getattr(req, field) for field in req.model_fields_set}
    habit = UpdateHabitUseCase(db).execute(
        habit_id=habit_id,
        account_id=account_id,
        actor_user_id=account_id,
        **changes,
    )
    cache.invalidate(account_id)
    return habit_to_response(habit)


@router.delete("/{habit_id}")
def delete_habit(
    habit_id: int,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
    cache: StatsCache = Depends(get_stats_cache),
):
    """Delete a habit together with its completions and timer"""
    DeleteHabitUseCase(db).execute(habit_id=habit_id, account_id=account_id, actor_user_id=account_id)
    cache.invalidate(account_id)
    return {"success": True}


@router.post("/{habit_id}/pause", response_model=HabitResponse)
def pause_habit(
    habit_id: int,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
    cache: StatsCache = Depends(get_stats_cache),
):
    habit = PauseHabitUseCase(db).execute(habit_id=habit_id, account_id=account_id, actor_user_id=account_id)
    cache.invalidate(account_id)
    return habit_to_response(habit)


@router.post("/{habit_id}/unpause", response_model=HabitResponse)
def unpause_habit(
    habit_id: int,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
    cache: StatsCache = Depends(get_stats_cache),
):
    habit = UnpauseHabitUseCase(db).execute(habit_id=habit_id, account_id=account_id, actor_user_id=account_id)
    cache.invalidate(account_id)
    return habit_to_response(habit)


@router.post("/{habit_id}/archive", response_model=HabitResponse)
def archive_habit(
    habit_id: int,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
    cache: StatsCache = Depends(get_stats_cache),
):
    habit = ArchiveHabitUseCase(db).execute(habit_id=habit_id, account_id=account_id, actor_user_id=account_id)
    cache.invalidate(account_id)
    return habit_to_response(habit)


@router.post("/{habit_id}/unarchive", response_model=HabitResponse)
def unarchive_habit(
    habit_id: int,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
    cache: StatsCache = Depends(get_stats_cache),
):
    habit = UnarchiveHabitUseCase(db).execute(habit_id=habit_id, account_id=account_id, actor_user_id=account_id)
    cache.invalidate(account_id)
    return habit_to_response(habit)
