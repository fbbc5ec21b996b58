"""
Helpers shared by the export, import and drift passes.
"""

import calendar
from datetime import datetime

from liturgical_time.conflicts import time_ranges_overlap
from liturgical_time.models import CalendarEvent
from liturgical_time.models import EventDetails
from liturgical_time.models import Meeting

# Meeting fields compared against the external event during drift detection.
DRIFT_FIELDS = ("title", "date", "start_time", "end_time", "location")


def now_iso(now: datetime | None = None) -> str:
    return (now or datetime.now()).isoformat(timespec="seconds")


def add_months(moment: datetime, months: int) -> datetime:
    """Shift by whole months, clamping the day to the target month's length."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def meeting_window(meeting: Meeting) -> tuple[datetime, datetime]:
    """Meeting start/end as naive local datetimes."""
    start = datetime.fromisoformat(f"{meeting.date}T{meeting.start_time}")
    end = datetime.fromisoformat(f"{meeting.date}T{meeting.end_time}")
    return start, end


def meeting_to_event_details(meeting: Meeting) -> EventDetails:
    start, end = meeting_window(meeting)
    return EventDetails(
        title=meeting.title,
        start=start,
        end=end,
        location=meeting.location or None,
        notes=meeting.notes or None,
    )


def event_to_fields(event: CalendarEvent) -> dict:
    """
    Project an external event onto meeting fields.

    Events spanning midnight are clipped to their start day, since meetings
    never cross a date boundary.
    """
    date = event.start.strftime("%Y-%m-%d")
    start_time = event.start.strftime("%H:%M")
    if event.end.date() > event.start.date():
        end_time = "23:59"
    else:
        end_time = event.end.strftime("%H:%M")
    return {
        "title": event.title,
        "date": date,
        "start_time": start_time,
        "end_time": end_time,
        "location": event.location or None,
    }


def has_drift(meeting: Meeting, event: CalendarEvent) -> bool:
    fields = event_to_fields(event)
    for name in DRIFT_FIELDS:
        # Empty and missing locations are the same thing.
        if (getattr(meeting, name) or None) != (fields[name] or None):
            return True
    return False


def is_duplicate(meeting: Meeting, event: CalendarEvent) -> bool:
    """Same date, overlapping window and case-insensitively equal title."""
    fields = event_to_fields(event)
    if meeting.date != fields["date"]:
        return False
    if meeting.title.casefold() != fields["title"].casefold():
        return False
    return time_ranges_overlap(
        fields["start_time"], fields["end_time"], meeting.start_time, meeting.end_time
    )


def find_duplicate(meetings: list[Meeting], event: CalendarEvent) -> Meeting | None:
    for meeting in meetings:
        if is_duplicate(meeting, event):
            return meeting
    return None


def permission_granted(calendar_store, logger) -> bool:
    """Check calendar permission; anything but 'granted' makes a pass a no-op."""
    status = calendar_store.permission_status()
    if status != "granted":
        logger.info(f"Calendar permission is {status}; skipping calendar sync")
        return False
    return True
