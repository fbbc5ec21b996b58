"""
Application state and the commands that mutate it.

AppState is created once per command invocation and passed explicitly; the
calendar engine and conflict detector never see it.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from liturgical_time.conflicts import detect_conflict
from liturgical_time.conflicts import validate_meeting
from liturgical_time.conflicts import validate_parish_settings
from liturgical_time.db import Database
from liturgical_time.db import MeetingStore
from liturgical_time.db import SettingsStore
from liturgical_time.liturgical_data import DEFAULT_TABLE
from liturgical_time.liturgical_data import LiturgicalDataTable
from liturgical_time.liturgical_data import load_table
from liturgical_time.models import AppConfig
from liturgical_time.models import Conflict
from liturgical_time.models import Meeting
from liturgical_time.models import ParishSettings
from liturgical_time.models import ValidationError
from liturgical_time.sync import CalendarSynchronizer
from liturgical_time.sync import delete_meeting
from liturgical_time.sync import sync_meeting_to_calendar

if TYPE_CHECKING:
    from liturgical_time.eds_client import EDSCalendarStore

logger = logging.getLogger(__name__)

# Called with the detected conflict; returning False cancels the save.
ConfirmConflict = Callable[[Conflict], bool]


@dataclass
class AppState:
    config: AppConfig
    db: Database
    calendar_store: Optional["EDSCalendarStore"] = None
    table: LiturgicalDataTable = DEFAULT_TABLE
    parish_settings: ParishSettings | None = None
    meetings: list[Meeting] = field(default_factory=list)
    julian_calendar_enabled: bool = False
    calendar_sync_enabled: bool = False
    onboarded: bool = False
    _synchronizer: CalendarSynchronizer | None = field(default=None, repr=False)

    @property
    def meeting_store(self) -> MeetingStore:
        return MeetingStore(self.db)

    @property
    def settings_store(self) -> SettingsStore:
        return SettingsStore(self.db)

    @property
    def synchronizer(self) -> CalendarSynchronizer | None:
        if self.calendar_store is None:
            return None
        if self._synchronizer is None:
            self._synchronizer = CalendarSynchronizer(self.config, self.calendar_store, self.db)
        return self._synchronizer

    def refresh_meetings(self):
        self.meetings = self.meeting_store.list()


def load_state(
    config: AppConfig,
    db: Database,
    calendar_store: Optional["EDSCalendarStore"] = None,
) -> AppState:
    """Build the state from the database and the configured data table."""
    table = load_table(config.data_table_path) if config.data_table_path else DEFAULT_TABLE
    settings = SettingsStore(db)
    state = AppState(
        config=config,
        db=db,
        calendar_store=calendar_store,
        table=table,
        parish_settings=settings.get_parish_settings(),
        julian_calendar_enabled=settings.get_julian_enabled(),
        calendar_sync_enabled=settings.get_calendar_sync_enabled(),
        onboarded=settings.is_onboarded(),
    )
    state.refresh_meetings()
    return state


def save_parish_settings(state: AppState, settings: ParishSettings):
    validate_parish_settings(settings)
    store = state.settings_store
    store.save_parish_settings(settings)
    store.save_julian_enabled(settings.julian_calendar_enabled)
    store.set_onboarded(True)
    state.parish_settings = settings
    state.julian_calendar_enabled = settings.julian_calendar_enabled
    state.onboarded = True
    logger.info(f"Saved parish settings for {settings.parish_name}")


def set_calendar_sync_enabled(state: AppState, enabled: bool):
    state.settings_store.save_calendar_sync_enabled(enabled)
    state.calendar_sync_enabled = enabled


def toggle_julian_calendar(state: AppState) -> bool:
    enabled = not state.julian_calendar_enabled
    state.settings_store.save_julian_enabled(enabled)
    if state.parish_settings is not None:
        state.parish_settings.julian_calendar_enabled = enabled
        state.settings_store.save_parish_settings(state.parish_settings)
    state.julian_calendar_enabled = enabled
    return enabled


def _confirmed(state: AppState, meeting: Meeting, confirm: ConfirmConflict | None) -> bool:
    conflict = detect_conflict(meeting, state.parish_settings, state.table)
    if conflict is None or confirm is None:
        return True
    if confirm(conflict):
        logger.info(f"Saving {meeting.title!r} despite conflict: {conflict.message}")
        return True
    logger.info(f"Save of {meeting.title!r} cancelled: {conflict.message}")
    return False


def _export(state: AppState, meeting: Meeting):
    if not state.calendar_sync_enabled or state.calendar_store is None:
        return
    sync_meeting_to_calendar(
        state.config,
        logger,
        state.calendar_store,
        state.meeting_store,
        state.settings_store,
        meeting,
    )


def add_meeting(
    state: AppState, meeting: Meeting, confirm: ConfirmConflict | None = None
) -> Meeting | None:
    """
    Validate, conflict-check, store and export a new meeting.

    Raises ValidationError before anything is written. Returns None when
    ``confirm`` rejects a detected conflict.
    """
    validate_meeting(meeting)
    if not _confirmed(state, meeting, confirm):
        return None
    meeting.id = state.meeting_store.create(meeting)
    _export(state, meeting)
    state.refresh_meetings()
    return state.meeting_store.get_by_id(meeting.id)


def update_meeting(
    state: AppState, meeting: Meeting, confirm: ConfirmConflict | None = None
) -> Meeting | None:
    if meeting.id is None or state.meeting_store.get_by_id(meeting.id) is None:
        raise ValidationError(f"Meeting {meeting.id} does not exist")
    validate_meeting(meeting)
    if not _confirmed(state, meeting, confirm):
        return None
    state.meeting_store.update(meeting)
    _export(state, meeting)
    state.refresh_meetings()
    return state.meeting_store.get_by_id(meeting.id)


def remove_meeting(state: AppState, meeting_id: int) -> bool:
    """Delete a meeting and its calendar event; False when no such meeting."""
    meeting = state.meeting_store.get_by_id(meeting_id)
    if meeting is None:
        return False
    delete_meeting(state.config, logger, state.calendar_store, state.meeting_store, meeting)
    state.refresh_meetings()
    return True


def on_foreground(state: AppState, now: datetime | None = None):
    """Run the import and drift passes; None when sync is off or already running."""
    synchronizer = state.synchronizer
    if synchronizer is None or not state.calendar_sync_enabled:
        return None
    result = synchronizer.run_foreground_pass(now=now)
    state.refresh_meetings()
    return result


def reset(state: AppState):
    """Forget all meetings and settings."""
    state.meeting_store.delete_all()
    state.settings_store.clear_all()
    state.parish_settings = None
    state.meetings = []
    state.julian_calendar_enabled = False
    state.calendar_sync_enabled = False
    state.onboarded = False
