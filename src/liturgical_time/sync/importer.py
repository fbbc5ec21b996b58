"""
Calendar → local import with duplicate detection.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from liturgical_time.db import MeetingStore
from liturgical_time.db import SettingsStore
from liturgical_time.models import AppConfig
from liturgical_time.models import CalendarStoreError
from liturgical_time.models import ImportResult
from liturgical_time.models import Meeting
from liturgical_time.sync.utils import add_months
from liturgical_time.sync.utils import event_to_fields
from liturgical_time.sync.utils import find_duplicate
from liturgical_time.sync.utils import now_iso
from liturgical_time.sync.utils import permission_granted

if TYPE_CHECKING:
    from liturgical_time.eds_client import EDSCalendarStore

IMPORT_WINDOW_MONTHS = 3


def smart_import_meetings(
    config: AppConfig,
    logger,
    calendar_store: "EDSCalendarStore",
    meetings: MeetingStore,
    settings: SettingsStore,
    now: datetime | None = None,
) -> ImportResult:
    """
    Import events from every calendar except the app's own.

    Events already mirrored by a meeting, and events duplicating an existing
    meeting (same date, overlapping window, same title ignoring case), are
    counted as skipped.
    """
    result = ImportResult()
    if not permission_granted(calendar_store, logger):
        return result

    now = now or datetime.now()
    try:
        app_calendar_id = settings.get_app_calendar_id()
        calendar_ids = [
            info.id
            for info in calendar_store.list_calendars()
            if info.id != app_calendar_id and info.title != config.calendar_name
        ]
        if not calendar_ids:
            return result
        events = calendar_store.list_events(
            calendar_ids, now, add_months(now, IMPORT_WINDOW_MONTHS)
        )
    except CalendarStoreError as e:
        logger.error(f"Failed to list calendar events for import: {e}")
        return result

    known_ids = {m.external_event_id for m in meetings.list() if m.external_event_id}

    for event in events:
        if event.id in known_ids:
            result.skipped += 1
            continue

        fields = event_to_fields(event)
        if fields["end_time"] <= fields["start_time"]:
            logger.debug(f"Skipping zero-length event {event.id}")
            result.skipped += 1
            continue

        duplicate = find_duplicate(meetings.list_by_date(fields["date"]), event)
        if duplicate is not None:
            logger.debug(f"Event {event.id} duplicates meeting {duplicate.id}, skipping")
            result.skipped += 1
            continue

        meeting = Meeting(
            **fields,
            notes=event.notes,
            external_event_id=event.id,
            calendar_source=event.calendar_title,
            last_synced=now_iso(now),
        )
        meeting.id = meetings.create(meeting)
        known_ids.add(event.id)
        result.imported += 1
        logger.debug(f"Imported event {event.id} as meeting {meeting.id}")

    logger.info(f"Import: {result.imported} imported, {result.skipped} skipped")
    return result
