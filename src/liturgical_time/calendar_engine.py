"""
Liturgical calendar engine.

Pure functions of a date and a LiturgicalDataTable. Nothing here touches the
database, the calendar store or the network.
"""

from datetime import date
from datetime import timedelta

from liturgical_time.liturgical_data import DEFAULT_TABLE
from liturgical_time.liturgical_data import MOVEABLE_FEAST_NAMES
from liturgical_time.liturgical_data import MOVEABLE_KEYS
from liturgical_time.liturgical_data import LiturgicalDataTable
from liturgical_time.models import DayInfo
from liturgical_time.models import OrthodoxEvent
from liturgical_time.models import ParishSettings

JULIAN_OFFSET = timedelta(days=13)

ORDINARY_TIME = "Ordinary Time"

_SUNDAY = 6  # date.weekday(): Monday == 0
_WEDNESDAY = 2
_FRIDAY = 4
_SATURDAY = 5

_LEVEL_FILTERS = {
    "all": ("great", "major", "minor", "regular"),
    "major": ("great", "major"),
    "great": ("great",),
}


def _month_day(day: date) -> str:
    return f"{day.month:02d}-{day.day:02d}"


def _within_month_day(month_day: str, start: str, end: str) -> bool:
    """Inclusive MM-dd range check; ranges never wrap the year boundary."""
    return start <= month_day <= end


def events_for_date(day: date, table: LiturgicalDataTable = DEFAULT_TABLE) -> list[OrthodoxEvent]:
    """
    Return the fixed and moveable observances falling on ``day``.

    Great feasts come first, then major feasts, then moveable feasts. Years
    missing from the moveable table contribute no moveable events.
    """
    month_day = _month_day(day)
    iso = day.isoformat()
    events: list[OrthodoxEvent] = []

    for feast in (*table.great_feasts, *table.major_feasts):
        if feast.month_day == month_day:
            events.append(
                OrthodoxEvent(
                    name=feast.name,
                    name_en=feast.name_en,
                    date=iso,
                    moveable=False,
                    liturgy_required=feast.liturgy_required,
                    level=feast.level,
                    fasting=feast.fasting,
                )
            )

    anchors = table.moveable_for(day.year)
    if anchors is not None:
        for key in MOVEABLE_KEYS:
            if getattr(anchors, key) != iso:
                continue
            name, name_en, level = MOVEABLE_FEAST_NAMES[key]
            events.append(
                OrthodoxEvent(
                    name=name,
                    name_en=name_en,
                    date=iso,
                    moveable=True,
                    liturgy_required=True,
                    level=level,
                )
            )

    return events


def merge_events(*sources: list[OrthodoxEvent]) -> list[OrthodoxEvent]:
    """Concatenate event lists, dropping repeats of the same (name, date)."""
    seen: set[tuple[str, str]] = set()
    merged = []
    for events in sources:
        for event in events:
            key = (event.name, event.date)
            if key in seen:
                continue
            seen.add(key)
            merged.append(event)
    return merged


def is_sunday(day: date) -> bool:
    return day.weekday() == _SUNDAY


def fasting_level(day: date, table: LiturgicalDataTable = DEFAULT_TABLE) -> str:
    """
    Return the fasting level for ``day``.

    Rules are evaluated in order and the first match wins: Great Lent,
    Dormition fast, Nativity fast, strict one-day fasts, Wednesday/Friday.
    """
    lent = table.great_lent_for(day.year)
    if lent is not None and lent[0] <= day.isoformat() <= lent[1]:
        return "lent"

    month_day = _month_day(day)
    if _within_month_day(month_day, *table.dormition_fast):
        return "regular"
    if _within_month_day(month_day, *table.nativity_fast):
        return "regular"
    if month_day in table.strict_fast_days:
        return "strict"
    if day.weekday() in (_WEDNESDAY, _FRIDAY):
        return "regular"
    return "none"


def julian_date(day: date) -> date:
    """Julian calendar date, as a fixed 13-day offset (valid 1900-2099)."""
    return day - JULIAN_OFFSET


def gregorian_to_julian(day: date) -> str:
    return julian_date(day).isoformat()


def format_julian_display(day: date) -> str:
    """Format the Julian date for display, e.g. ``'12 Apr (Julian)'``."""
    julian = julian_date(day)
    return f"{julian.day} {julian.strftime('%b')} (Julian)"


def _days_since_pascha(day: date, table: LiturgicalDataTable) -> int | None:
    pascha = table.pascha_for(day.year)
    if pascha is None:
        return None
    return (day - pascha).days


def choir_tone(day: date, table: LiturgicalDataTable = DEFAULT_TABLE) -> int:
    """Return the tone (1-8) of the week containing ``day``; 1 for unknown years."""
    days = _days_since_pascha(day, table)
    if days is None:
        return 1
    return ((days // 7) % 8 + 8) % 8 + 1


def liturgical_season(day: date, table: LiturgicalDataTable = DEFAULT_TABLE) -> str:
    """Return a human-readable label for the liturgical season of ``day``."""
    days = _days_since_pascha(day, table)
    if days is None:
        return ORDINARY_TIME

    month_day = _month_day(day)
    if 0 <= days <= 7:
        return "Bright Week"
    if 8 <= days <= 49:
        return "Paschal Period"
    if _within_month_day(month_day, *table.nativity_fast):
        return "Nativity Fast"
    if month_day >= "12-25" or month_day <= "01-06":
        return "Nativity Period"
    if -48 <= days <= -1:
        week = (days + 48) // 7 + 1
        return f"Great Lent, Week {week}"
    if days >= 49 and month_day <= "06-29":
        return "Apostles' Fast"
    if _within_month_day(month_day, *table.dormition_fast):
        return "Dormition Fast"
    return ORDINARY_TIME


def liturgy_time(day: date, settings: ParishSettings, table: LiturgicalDataTable = DEFAULT_TABLE):
    """
    Return the configured liturgy start time ("HH:mm") for ``day``, or None.

    Sundays and days with a liturgy-required feast use the Sunday time.
    Other weekdays (Monday-Friday) use the weekday time when one is set.
    """
    has_liturgy = any(event.liturgy_required for event in events_for_date(day, table))
    if is_sunday(day) or has_liturgy:
        return settings.sunday_liturgy_time
    if settings.weekday_liturgy_time and day.weekday() < _SATURDAY:
        return settings.weekday_liturgy_time
    return None


def day_info(day: date, table: LiturgicalDataTable = DEFAULT_TABLE) -> DayInfo:
    return DayInfo(
        date=day.isoformat(),
        events=events_for_date(day, table),
        fasting=fasting_level(day, table),
        season=liturgical_season(day, table),
        tone=choir_tone(day, table),
        is_sunday=is_sunday(day),
        julian_date=gregorian_to_julian(day),
    )


def upcoming_events(
    start: date,
    days: int = 60,
    level: str = "all",
    table: LiturgicalDataTable = DEFAULT_TABLE,
) -> list[DayInfo]:
    """
    List the days from ``start`` that carry observances.

    ``level`` filters events: 'all', 'major' (great and major) or 'great'.
    Fast days without events are kept only within the first week.
    """
    if level not in _LEVEL_FILTERS:
        raise ValueError(f"Unknown level filter: {level!r}")
    allowed = _LEVEL_FILTERS[level]

    result = []
    for offset in range(days):
        info = day_info(start + timedelta(days=offset), table)
        info.events = [event for event in info.events if event.level in allowed]
        if info.events or (offset < 7 and info.fasting != "none"):
            result.append(info)
    return result
