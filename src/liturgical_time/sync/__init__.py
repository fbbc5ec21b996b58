"""
CalendarSynchronizer: runs reconciliation passes one at a time and delegates to the sync submodules.
"""

import logging
import threading
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from liturgical_time.db import Database
from liturgical_time.db import MeetingStore
from liturgical_time.db import SettingsStore
from liturgical_time.models import AppConfig
from liturgical_time.models import DriftResult
from liturgical_time.models import ImportResult
from liturgical_time.sync.drift import sync_external_changes
from liturgical_time.sync.export import delete_meeting
from liturgical_time.sync.export import get_or_create_app_calendar
from liturgical_time.sync.export import sync_all_meetings_to_calendar
from liturgical_time.sync.export import sync_meeting_to_calendar
from liturgical_time.sync.importer import smart_import_meetings

if TYPE_CHECKING:
    from liturgical_time.eds_client import EDSCalendarStore

__all__ = [
    "CalendarSynchronizer",
    "delete_meeting",
    "get_or_create_app_calendar",
    "smart_import_meetings",
    "sync_all_meetings_to_calendar",
    "sync_external_changes",
    "sync_meeting_to_calendar",
]


class CalendarSynchronizer:
    """
    Runs reconciliation passes one at a time.

    A pass requested while another one is in flight is refused (returns
    None) instead of queueing: two overlapping imports could both miss each
    other's meetings in the duplicate check.
    """

    def __init__(self, config: AppConfig, calendar_store: "EDSCalendarStore", db: Database):
        self.config = config
        self.calendar_store = calendar_store
        self.meetings = MeetingStore(db)
        self.settings = SettingsStore(db)
        self.logger = logging.getLogger(__name__)
        self._in_flight = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._in_flight.locked()

    def _acquire(self, name: str) -> bool:
        if not self._in_flight.acquire(blocking=False):
            self.logger.warning(f"A sync pass is already running; {name} request ignored")
            return False
        return True

    def run_foreground_pass(
        self, now: datetime | None = None
    ) -> Optional[tuple[ImportResult, DriftResult]]:
        """Import new external events, then reflect external drift."""
        if not self._acquire("foreground"):
            return None
        try:
            args = (self.config, self.logger, self.calendar_store, self.meetings)
            imported = smart_import_meetings(*args, self.settings, now=now)
            drift = sync_external_changes(*args, now=now)
            return imported, drift
        finally:
            self._in_flight.release()

    def run_import(self, now: datetime | None = None) -> Optional[ImportResult]:
        if not self._acquire("import"):
            return None
        try:
            return smart_import_meetings(
                self.config, self.logger, self.calendar_store, self.meetings, self.settings, now=now
            )
        finally:
            self._in_flight.release()

    def export_all(self) -> Optional[int]:
        if not self._acquire("export"):
            return None
        try:
            return sync_all_meetings_to_calendar(
                self.config, self.logger, self.calendar_store, self.meetings, self.settings
            )
        finally:
            self._in_flight.release()

    def run(self, now: datetime | None = None):
        """Full pass: export every meeting, then import and drift."""
        if not self._acquire("full"):
            return None
        try:
            args = (self.config, self.logger, self.calendar_store, self.meetings)
            exported = sync_all_meetings_to_calendar(*args, self.settings)
            imported = smart_import_meetings(*args, self.settings, now=now)
            drift = sync_external_changes(*args, now=now)
            return exported, imported, drift
        finally:
            self._in_flight.release()
