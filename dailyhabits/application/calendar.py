"""Non-working-day calendar: public holidays (global) and personal days off"""
import logging
from datetime import date

import requests
from sqlalchemy import extract
from sqlalchemy.orm import Session

from dailyhabits.application.common import HabitValidationError
from dailyhabits.config import get_settings
from dailyhabits.infrastructure.db.models import DayOffModel, HolidayModel

logger = logging.getLogger(__name__)


def load_calendar(db: Session, account_id: int) -> tuple[set[date], set[date]]:
    """(holidays, day_offs) as plain date sets for the eligible-day resolver."""
    holidays = {d for (d,) in db.query(HolidayModel.date).all()}
    day_offs = {
        d for (d,) in db.query(DayOffModel.date).filter(DayOffModel.account_id == account_id).all()
    }
    return holidays, day_offs


def list_holidays(db: Session, year: int | None = None) -> list[HolidayModel]:
    query = db.query(HolidayModel)
    if year is not None:
        query = query.filter(extract("year", HolidayModel.date) == year)
    return query.order_by(HolidayModel.date.asc()).all()


def list_day_offs(db: Session, account_id: int) -> list[DayOffModel]:
    return db.query(DayOffModel).filter(
        DayOffModel.account_id == account_id
    ).order_by(DayOffModel.date.asc()).all()


class AddDayOffUseCase:
    """Create or relabel a personal day off."""
    def __init__(self, db: Session):
        self.db = db

    def execute(self, account_id: int, day: date | None, reason: str | None = None) -> DayOffModel:
        if day is None:
            raise HabitValidationError("Date required")
        reason = (reason or "").strip() or None

        day_off = self.db.query(DayOffModel).filter(
            DayOffModel.account_id == account_id,
            DayOffModel.date == day,
        ).first()
        if day_off:
            day_off.reason = reason
        else:
            day_off = DayOffModel(account_id=account_id, date=day, reason=reason)
            self.db.add(day_off)
        self.db.commit()
        return day_off


class RemoveDayOffUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, account_id: int, day: date | None) -> bool:
        if day is None:
            raise HabitValidationError("Date required")
        removed = self.db.query(DayOffModel).filter(
            DayOffModel.account_id == account_id,
            DayOffModel.date == day,
        ).delete(synchronize_session=False)
        self.db.commit()
        return removed > 0


# --- Public holidays feed ---

class HolidayFeedClient:
    """Reads {"YYYY-MM-DD": "name"} from the configured public holidays feed."""

    def __init__(self, url_template: str | None = None, timeout: int | None = None,
                 session: requests.Session | None = None):
        settings = get_settings()
        self.url_template = url_template or settings.HOLIDAYS_API_URL
        self.timeout = timeout or settings.HOLIDAYS_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def fetch(self, year: int) -> list[tuple[date, str]]:
        resp = self.session.get(self.url_template.format(year=year), timeout=self.timeout)
        resp.raise_for_status()
        data = resp.json()
        return sorted((date.fromisoformat(d), str(name)) for d, name in data.items())


def sync_holidays(db: Session, year: int, client: HolidayFeedClient | None = None) -> int:
    """Cache a year of public holidays; existing rows are kept. Returns new rows."""
    client = client or HolidayFeedClient()
    try:
        holidays = client.fetch(year)
    except (requests.RequestException, ValueError):
        logger.exception("Holiday feed fetch failed for year=%d", year)
        raise

    known = {h.date for h in list_holidays(db, year)}
    added = 0
    for d, name in holidays:
        if d in known:
            continue
        db.add(HolidayModel(date=d, name=name))
        added += 1
    db.commit()
    logger.info("Holiday sync: year=%d fetched=%d added=%d", year, len(holidays), added)
    return added
