"""
Local → calendar export and linked-event deletion.
"""

from typing import TYPE_CHECKING, Optional

from liturgical_time.db import MeetingStore
from liturgical_time.db import SettingsStore
from liturgical_time.models import AppConfig
from liturgical_time.models import CalendarStoreError
from liturgical_time.models import EventNotFoundError
from liturgical_time.models import Meeting
from liturgical_time.sync.utils import meeting_to_event_details
from liturgical_time.sync.utils import permission_granted

if TYPE_CHECKING:
    from liturgical_time.eds_client import EDSCalendarStore


def get_or_create_app_calendar(
    config: AppConfig,
    logger,
    calendar_store: "EDSCalendarStore",
    settings: SettingsStore,
) -> Optional[str]:
    """
    Return the id of the app's own calendar, creating it when absent.

    A stored id is reused while the calendar still exists; otherwise the
    calendar is looked up by name before a new one is created. The id found
    is recorded in the settings store.
    """
    if not permission_granted(calendar_store, logger):
        return None

    calendars = calendar_store.list_calendars()
    stored_id = settings.get_app_calendar_id()
    if stored_id and any(info.id == stored_id for info in calendars):
        return stored_id

    calendar_id = next(
        (info.id for info in calendars if info.title == config.calendar_name), None
    )
    if calendar_id:
        logger.debug(f"Found existing calendar {config.calendar_name!r}: {calendar_id}")
    else:
        calendar_id = calendar_store.create_calendar(config.calendar_name)
        logger.info(f"Created calendar {config.calendar_name!r}")

    settings.save_app_calendar_id(calendar_id)
    return calendar_id


def sync_meeting_to_calendar(
    config: AppConfig,
    logger,
    calendar_store: "EDSCalendarStore",
    meetings: MeetingStore,
    settings: SettingsStore,
    meeting: Meeting,
) -> Optional[str]:
    """
    Export one meeting to the app calendar and return the event id.

    Returns None when permission is missing or the calendar store fails;
    the meeting itself stays valid locally either way.
    """
    try:
        calendar_id = get_or_create_app_calendar(config, logger, calendar_store, settings)
        if calendar_id is None:
            return None

        details = meeting_to_event_details(meeting)
        if meeting.calendar_event_id:
            try:
                calendar_store.update_event(meeting.calendar_event_id, details)
                event_id = meeting.calendar_event_id
                logger.debug(f"Updated event {event_id} for meeting {meeting.id}")
            except EventNotFoundError:
                logger.info(
                    f"Event {meeting.calendar_event_id} vanished, recreating meeting {meeting.id}"
                )
                event_id = calendar_store.create_event(calendar_id, details)
        else:
            event_id = calendar_store.create_event(calendar_id, details)
            logger.debug(f"Created event {event_id} for meeting {meeting.id}")
    except CalendarStoreError as e:
        logger.error(f"Failed to export meeting {meeting.id} to calendar: {e}")
        return None

    if meeting.id is not None and event_id != meeting.calendar_event_id:
        meetings.update_calendar_event_id(meeting.id, event_id)
        meeting.calendar_event_id = event_id
    return event_id


def delete_meeting(
    config: AppConfig,
    logger,
    calendar_store: "EDSCalendarStore",
    meetings: MeetingStore,
    meeting: Meeting,
):
    """Delete the linked calendar event (best effort), then the meeting."""
    if meeting.calendar_event_id and calendar_store is not None:
        try:
            if calendar_store.permission_status() == "granted":
                calendar_store.delete_event(meeting.calendar_event_id)
                logger.debug(f"Removed event {meeting.calendar_event_id}")
        except CalendarStoreError as e:
            logger.warning(
                f"Failed to remove event {meeting.calendar_event_id} (may already be gone): {e}"
            )
    meetings.delete(meeting.id)


def sync_all_meetings_to_calendar(
    config: AppConfig,
    logger,
    calendar_store: "EDSCalendarStore",
    meetings: MeetingStore,
    settings: SettingsStore,
) -> int:
    """Export every meeting; return how many were exported."""
    if not permission_granted(calendar_store, logger):
        return 0
    exported = 0
    for meeting in meetings.list():
        if sync_meeting_to_calendar(config, logger, calendar_store, meetings, settings, meeting):
            exported += 1
    logger.info(f"Exported {exported} meeting(s) to the calendar")
    return exported
