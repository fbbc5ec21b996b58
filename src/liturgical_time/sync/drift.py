"""
Drift detection: reflect external edits and deletions onto imported meetings.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from liturgical_time.db import MeetingStore
from liturgical_time.models import AppConfig
from liturgical_time.models import CalendarStoreError
from liturgical_time.models import DriftResult
from liturgical_time.sync.utils import event_to_fields
from liturgical_time.sync.utils import has_drift
from liturgical_time.sync.utils import now_iso
from liturgical_time.sync.utils import permission_granted

if TYPE_CHECKING:
    from liturgical_time.eds_client import EDSCalendarStore


def sync_external_changes(
    config: AppConfig,
    logger,
    calendar_store: "EDSCalendarStore",
    meetings: MeetingStore,
    now: datetime | None = None,
) -> DriftResult:
    """
    Compare every imported meeting with its external event.

    A vanished event deletes the meeting locally; nothing is deleted on the
    calendar side since the event is already gone. A changed event
    overwrites the meeting's fields.
    """
    result = DriftResult()
    if not permission_granted(calendar_store, logger):
        return result

    for meeting in meetings.list():
        if not meeting.external_event_id:
            continue

        try:
            event = calendar_store.get_event(meeting.external_event_id)
        except CalendarStoreError as e:
            logger.warning(f"Could not fetch event {meeting.external_event_id}: {e}")
            result.errors += 1
            continue

        if event is None:
            meetings.delete(meeting.id)
            result.deleted += 1
            logger.debug(f"Event {meeting.external_event_id} is gone, deleted meeting {meeting.id}")
            continue

        if not has_drift(meeting, event):
            continue

        for name, value in event_to_fields(event).items():
            setattr(meeting, name, value)
        meeting.last_synced = now_iso(now)
        meetings.update(meeting)
        result.updated += 1
        logger.debug(f"Meeting {meeting.id} updated from event {event.id}")

    logger.info(
        f"Drift: {result.updated} updated, {result.deleted} deleted, {result.errors} error(s)"
    )
    return result
