"""
Tests for calendar data: days off, holidays, holiday feed sync
"""
import pytest
import requests
from datetime import date
from unittest.mock import Mock

from dailyhabits.infrastructure.db.models import HolidayModel
from dailyhabits.application.common import HabitValidationError
from dailyhabits.application.calendar import (
    AddDayOffUseCase,
    HolidayFeedClient,
    RemoveDayOffUseCase,
    list_day_offs,
    list_holidays,
    load_calendar,
    sync_holidays,
)

D = date(2026, 3, 4)


def _feed_session(payload):
    """Mock requests.Session whose get() returns payload as JSON."""
    response = Mock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    session = Mock()
    session.get.return_value = response
    return session


class TestDayOffs:
    def test_add_and_list(self, db_session, sample_account_id):
        AddDayOffUseCase(db_session).execute(sample_account_id, D, "Vacation")
        rows = list_day_offs(db_session, sample_account_id)
        assert [(r.date, r.reason) for r in rows] == [(D, "Vacation")]

    def test_add_twice_updates_reason(self, db_session, sample_account_id):
        uc = AddDayOffUseCase(db_session)
        uc.execute(sample_account_id, D, "Vacation")
        uc.execute(sample_account_id, D, "Sick")
        rows = list_day_offs(db_session, sample_account_id)
        assert [(r.date, r.reason) for r in rows] == [(D, "Sick")]

    def test_remove(self, db_session, sample_account_id):
        AddDayOffUseCase(db_session).execute(sample_account_id, D)
        uc = RemoveDayOffUseCase(db_session)
        assert uc.execute(sample_account_id, D) is True
        assert uc.execute(sample_account_id, D) is False

    def test_requires_date(self, db_session, sample_account_id):
        with pytest.raises(HabitValidationError):
            AddDayOffUseCase(db_session).execute(sample_account_id, None)

    def test_load_calendar_is_account_scoped(self, db_session, sample_account_id):
        db_session.add(HolidayModel(date=date(2026, 3, 20), name="Vernal Equinox Day"))
        db_session.commit()
        AddDayOffUseCase(db_session).execute(sample_account_id, D)
        AddDayOffUseCase(db_session).execute(2, date(2026, 3, 5))

        holidays, day_offs = load_calendar(db_session, sample_account_id)
        assert holidays == {date(2026, 3, 20)}
        assert day_offs == {D}


class TestHolidays:
    def test_list_by_year(self, db_session):
        db_session.add_all([
            HolidayModel(date=date(2025, 12, 31), name="A"),
            HolidayModel(date=date(2026, 1, 1), name="New Year's Day"),
        ])
        db_session.commit()
        assert [h.name for h in list_holidays(db_session, 2026)] == ["New Year's Day"]
        assert len(list_holidays(db_session)) == 2


class TestHolidaySync:
    def test_fetch_parses_feed(self):
        session = _feed_session({"2026-01-12": "Coming of Age Day", "2026-01-01": "New Year's Day"})
        client = HolidayFeedClient(url_template="https://example.test/{year}.json", timeout=5, session=session)

        assert client.fetch(2026) == [
            (date(2026, 1, 1), "New Year's Day"),
            (date(2026, 1, 12), "Coming of Age Day"),
        ]
        session.get.assert_called_once_with("https://example.test/2026.json", timeout=5)

    def test_sync_inserts_only_missing(self, db_session):
        db_session.add(HolidayModel(date=date(2026, 1, 1), name="Existing"))
        db_session.commit()
        session = _feed_session({"2026-01-01": "New Year's Day", "2026-01-12": "Coming of Age Day"})
        client = HolidayFeedClient(url_template="https://example.test/{year}.json", session=session)

        assert sync_holidays(db_session, 2026, client) == 1
        names = {h.date: h.name for h in list_holidays(db_session, 2026)}
        assert names == {date(2026, 1, 1): "Existing", date(2026, 1, 12): "Coming of Age Day"}

    def test_sync_propagates_network_errors(self, db_session):
        session = Mock()
        session.get.side_effect = requests.ConnectionError("down")
        client = HolidayFeedClient(url_template="https://example.test/{year}.json", session=session)

        with pytest.raises(requests.ConnectionError):
            sync_holidays(db_session, 2026, client)
        assert list_holidays(db_session) == []
