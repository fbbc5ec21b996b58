"""
Conflict detection between meetings and implied liturgy windows.
"""

import re
from datetime import date

from liturgical_time.calendar_engine import events_for_date
from liturgical_time.calendar_engine import is_sunday
from liturgical_time.liturgical_data import DEFAULT_TABLE
from liturgical_time.liturgical_data import LiturgicalDataTable
from liturgical_time.models import Conflict
from liturgical_time.models import Meeting
from liturgical_time.models import OrthodoxEvent
from liturgical_time.models import ParishSettings
from liturgical_time.models import ValidationError

FEAST_LITURGY_MINUTES = 120
WEEKDAY_LITURGY_MINUTES = 90
VESPERS_MINUTES = 90

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

_SEVERITY_BY_LEVEL = {"great": "high", "major": "medium"}
_TYPE_BY_LEVEL = {"great": "great_feast", "major": "major_feast"}
_SEVERITY_MARKERS = {"high": "🔴", "medium": "🟠", "low": "🟡"}


def to_minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def format_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def time_ranges_overlap(start1: str, end1: str, start2: str, end2: str) -> bool:
    """
    True when [start1, end1) and [start2, end2) share at least one minute.

    A range ending exactly when the other starts does not overlap it.
    """
    return to_minutes(start1) < to_minutes(end2) and to_minutes(end1) > to_minutes(start2)


def validate_meeting(meeting: Meeting) -> None:
    """Raise ValidationError when the meeting cannot be saved."""
    if not meeting.title or not meeting.title.strip():
        raise ValidationError("Meeting title must not be empty")
    if not isinstance(meeting.date, str) or not _DATE_RE.match(meeting.date):
        raise ValidationError(f"Invalid meeting date {meeting.date!r}, expected YYYY-MM-DD")
    try:
        date.fromisoformat(meeting.date)
    except ValueError:
        raise ValidationError(f"Invalid meeting date: {meeting.date!r}") from None
    for label, value in (("start", meeting.start_time), ("end", meeting.end_time)):
        if not isinstance(value, str) or not _TIME_RE.match(value):
            raise ValidationError(f"Invalid {label} time {value!r}, expected HH:mm")
    # Zero-padded HH:mm strings order the same way as the times they encode.
    if meeting.end_time <= meeting.start_time:
        raise ValidationError("Meeting end time must be after its start time")


def validate_parish_settings(settings: ParishSettings) -> None:
    if not settings.parish_name or not settings.parish_name.strip():
        raise ValidationError("Parish name must not be empty")
    if not _TIME_RE.match(settings.sunday_liturgy_time or ""):
        raise ValidationError(
            f"Invalid Sunday liturgy time {settings.sunday_liturgy_time!r}, expected HH:mm"
        )
    for label, value in (
        ("Saturday vespers", settings.saturday_vespers_time),
        ("weekday liturgy", settings.weekday_liturgy_time),
    ):
        if value is not None and not _TIME_RE.match(value):
            raise ValidationError(f"Invalid {label} time {value!r}, expected HH:mm")


def _liturgy_window(event: OrthodoxEvent, settings: ParishSettings) -> tuple[str, str]:
    if event.level in ("great", "major"):
        start = settings.sunday_liturgy_time
        duration = FEAST_LITURGY_MINUTES
    else:
        start = settings.weekday_liturgy_time or settings.sunday_liturgy_time
        duration = WEEKDAY_LITURGY_MINUTES
    return start, format_minutes(to_minutes(start) + duration)


def detect_conflict(
    meeting: Meeting,
    settings: ParishSettings | None,
    table: LiturgicalDataTable = DEFAULT_TABLE,
) -> Conflict | None:
    """
    Return the first liturgy conflict for ``meeting``, or None.

    Feast liturgies are checked before the ordinary Sunday liturgy, and only
    one conflict is ever reported per meeting.
    """
    if settings is None:
        return None

    meeting_day = date.fromisoformat(meeting.date)

    for event in events_for_date(meeting_day, table):
        if not event.liturgy_required:
            continue
        start, end = _liturgy_window(event, settings)
        if not time_ranges_overlap(meeting.start_time, meeting.end_time, start, end):
            continue
        severity = _SEVERITY_BY_LEVEL.get(event.level, "low")
        conflict_type = _TYPE_BY_LEVEL.get(event.level, "weekday_liturgy")
        return Conflict(
            meeting=meeting,
            orthodox_event=event,
            conflict_type=conflict_type,
            severity=severity,
            message=(
                f"This meeting overlaps with the {event.display_name} Liturgy "
                f"at {settings.parish_name} ({start} - {end})"
            ),
        )

    if is_sunday(meeting_day):
        start = settings.sunday_liturgy_time
        end = format_minutes(to_minutes(start) + FEAST_LITURGY_MINUTES)
        if time_ranges_overlap(meeting.start_time, meeting.end_time, start, end):
            return Conflict(
                meeting=meeting,
                orthodox_event=OrthodoxEvent(
                    name="Sunday",
                    name_en="Sunday Divine Liturgy",
                    date=meeting.date,
                    moveable=False,
                    liturgy_required=True,
                    level="major",
                ),
                conflict_type="sunday",
                severity="high",
                message=(
                    f"This meeting overlaps with Sunday Divine Liturgy "
                    f"at {settings.parish_name} ({start} - {end})"
                ),
            )

    return None


def detect_all_conflicts(
    meetings: list[Meeting],
    settings: ParishSettings | None,
    table: LiturgicalDataTable = DEFAULT_TABLE,
) -> list[Conflict]:
    """Conflicts for every meeting that has one, in input order."""
    conflicts = []
    for meeting in meetings:
        conflict = detect_conflict(meeting, settings, table)
        if conflict is not None:
            conflicts.append(conflict)
    return conflicts


def detect_vespers_conflict(meeting: Meeting, settings: ParishSettings | None) -> Conflict | None:
    """Return a low-severity conflict when a Saturday meeting overlaps Vespers."""
    if settings is None or not settings.saturday_vespers_time:
        return None
    meeting_day = date.fromisoformat(meeting.date)
    if meeting_day.weekday() != 5:
        return None

    start = settings.saturday_vespers_time
    end = format_minutes(to_minutes(start) + VESPERS_MINUTES)
    if not time_ranges_overlap(meeting.start_time, meeting.end_time, start, end):
        return None
    return Conflict(
        meeting=meeting,
        orthodox_event=OrthodoxEvent(
            name="Vecernie",
            name_en="Vespers",
            date=meeting.date,
            moveable=False,
            liturgy_required=False,
            level="regular",
        ),
        conflict_type="weekday_liturgy",
        severity="low",
        message=(
            f"This meeting overlaps with Saturday Vespers "
            f"at {settings.parish_name} ({start} - {end})"
        ),
    )


def conflict_summary(
    day: str,
    meetings: list[Meeting],
    settings: ParishSettings | None,
    table: LiturgicalDataTable = DEFAULT_TABLE,
) -> dict:
    """Summarise the conflicts of the meetings held on ``day`` (yyyy-MM-dd)."""
    conflicts = []
    for meeting in meetings:
        if meeting.date != day:
            continue
        for conflict in (
            detect_conflict(meeting, settings, table),
            detect_vespers_conflict(meeting, settings),
        ):
            if conflict is not None:
                conflicts.append(conflict)
    return {
        "has_conflicts": bool(conflicts),
        "high_severity": should_show_strong_warning(conflicts),
        "count": len(conflicts),
    }


def should_show_strong_warning(conflicts: list[Conflict]) -> bool:
    return any(conflict.severity == "high" for conflict in conflicts)


def format_conflict_message(conflict: Conflict) -> str:
    return f"{_SEVERITY_MARKERS[conflict.severity]} {conflict.message}"
