"""
Shared pytest fixtures.
"""

import logging

import pytest

from liturgical_time.db import Database
from liturgical_time.db import MeetingStore
from liturgical_time.db import SettingsStore
from liturgical_time.models import AppConfig
from liturgical_time.models import Meeting
from liturgical_time.models import ParishSettings
from tests.fake_calendar import FakeCalendarStore

WORK_CAL_ID = "work-calendar-test"
PERSONAL_CAL_ID = "personal-calendar-test"


def make_meeting(
    title: str = "Parish Council",
    date: str = "2025-03-12",
    start: str = "18:00",
    end: str = "19:30",
    **kwargs,
) -> Meeting:
    return Meeting(title=title, date=date, start_time=start, end_time=end, **kwargs)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "test_liturgical.db"


@pytest.fixture
def db(db_path):
    with Database(db_path) as database:
        yield database


@pytest.fixture
def meeting_store(db):
    return MeetingStore(db)


@pytest.fixture
def settings_store(db):
    return SettingsStore(db)


@pytest.fixture
def app_config(db_path):
    return AppConfig(database_path=db_path)


@pytest.fixture
def parish_settings():
    return ParishSettings(
        parish_name="Sf. Nicolae",
        sunday_liturgy_time="09:00",
        saturday_vespers_time="17:00",
        weekday_liturgy_time="08:00",
    )


@pytest.fixture
def calendar_store():
    return FakeCalendarStore({WORK_CAL_ID: "Work", PERSONAL_CAL_ID: "Personal"})


@pytest.fixture
def sync_logger():
    return logging.getLogger("test_sync")
