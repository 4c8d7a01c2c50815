"""
Calendar API endpoints: public holidays and personal days off
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from dailyhabits.api.deps import get_current_account_id, get_db, get_stats_cache, parse_date_param
from dailyhabits.api.v1.completions import DateRequest
from dailyhabits.application.calendar import (
    AddDayOffUseCase,
    RemoveDayOffUseCase,
    list_day_offs,
    list_holidays,
)
from dailyhabits.application.stats_cache import StatsCache


router = APIRouter(prefix="/api/v1/calendar", tags=["calendar"])


# === Request/Response models ===

class HolidayResponse(BaseModel):
    date: str  # YYYY-MM-DD
    name: str


class DayOffRequest(DateRequest):
    reason: str | None = None


class DayOffResponse(BaseModel):
    date: str  # YYYY-MM-DD
    reason: str | None


# === Endpoints ===

@router.get("/holidays", response_model=list[HolidayResponse])
def get_holidays(
    year: int | None = None,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    return [HolidayResponse(date=h.date.isoformat(), name=h.name) for h in list_holidays(db, year)]


@router.get("/dayoffs", response_model=list[DayOffResponse])
def get_day_offs(
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    return [DayOffResponse(date=d.date.isoformat(), reason=d.reason) for d in list_day_offs(db, account_id)]


@router.post("/dayoffs", response_model=DayOffResponse)
def add_day_off(
    req: DayOffRequest,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
    cache: StatsCache = Depends(get_stats_cache),
):
    """Mark a date as a personal non-working day (re-posting updates the reason)"""
    day_off = AddDayOffUseCase(db).execute(account_id, req.date, req.reason)
    cache.invalidate(account_id)
    return DayOffResponse(date=day_off.date.isoformat(), reason=day_off.reason)


@router.delete("/dayoffs")
def remove_day_off(
    date: str | None = None,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
    cache: StatsCache = Depends(get_stats_cache),
):
    removed = RemoveDayOffUseCase(db).execute(account_id, parse_date_param(date, "date"))
    cache.invalidate(account_id)
    return {"success": True, "removed": removed}
