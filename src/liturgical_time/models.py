"""
Pure data models with no sqlite, EDS or HTTP imports.
"""

from dataclasses import dataclass
from dataclasses import field
from datetime import datetime
from pathlib import Path

DEFAULT_DATABASE = Path.home() / ".local/share/liturgical-time.db"
DEFAULT_CONFIG = Path.home() / ".config/liturgical-time.conf"

APP_CALENDAR_NAME = "Timpul Liturgic"
DEFAULT_JURISDICTION = "romanian"
JURISDICTIONS = ("oca", "rocor", "greek", "romanian")

TODAY_API_URL = "https://orthocal.info/api"
ORTHOCAL_API_URL = "https://orthocal.info/api"
REQUEST_TIMEOUT = 8  # seconds
CACHE_TTL = 24 * 60 * 60  # seconds

FEAST_LEVELS = ("great", "major", "minor", "regular")
FASTING_LEVELS = ("none", "regular", "strict", "lent")
CONFLICT_TYPES = ("sunday", "great_feast", "major_feast", "weekday_liturgy")
SEVERITIES = ("high", "medium", "low")
PERMISSION_STATES = ("granted", "denied", "undetermined")


class LiturgicalTimeError(Exception):
    """Base exception for liturgical-time errors."""

    pass


class ValidationError(LiturgicalTimeError):
    """A meeting or settings record failed validation; nothing was persisted."""

    pass


class StoreError(LiturgicalTimeError):
    """The local database is unavailable or corrupt."""

    pass


class CalendarStoreError(LiturgicalTimeError):
    """A calendar-store operation failed."""

    pass


class EventNotFoundError(CalendarStoreError):
    """The calendar event no longer exists in the calendar store."""

    pass


@dataclass(frozen=True)
class OrthodoxEvent:
    """A feast or observance resolved for one calendar date."""

    name: str
    date: str  # yyyy-MM-dd
    moveable: bool
    liturgy_required: bool
    level: str  # one of FEAST_LEVELS
    name_en: str | None = None
    fasting: str | None = None

    @property
    def display_name(self) -> str:
        return self.name_en or self.name


@dataclass
class Meeting:
    """A meeting owned by the meeting store."""

    title: str
    date: str  # yyyy-MM-dd
    start_time: str  # HH:mm
    end_time: str  # HH:mm
    id: int | None = None
    location: str | None = None
    notes: str | None = None
    calendar_event_id: str | None = None
    external_event_id: str | None = None
    calendar_source: str | None = None
    last_synced: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class ParishSettings:
    """Parish configuration captured at setup."""

    parish_name: str
    sunday_liturgy_time: str = "09:00"
    saturday_vespers_time: str | None = None
    weekday_liturgy_time: str | None = None
    julian_calendar_enabled: bool = False


@dataclass(frozen=True)
class Conflict:
    """A meeting overlapping an implied liturgy window."""

    meeting: Meeting
    orthodox_event: OrthodoxEvent
    conflict_type: str  # one of CONFLICT_TYPES
    severity: str  # one of SEVERITIES
    message: str


@dataclass(frozen=True)
class CalendarInfo:
    """A calendar exposed by the calendar store."""

    id: str
    title: str


@dataclass(frozen=True)
class CalendarEvent:
    """An event read from the calendar store."""

    id: str
    calendar_id: str
    title: str
    start: datetime
    end: datetime
    location: str | None = None
    notes: str | None = None
    calendar_title: str | None = None


@dataclass(frozen=True)
class EventDetails:
    """Fields written to the calendar store on create/update."""

    title: str
    start: datetime
    end: datetime
    location: str | None = None
    notes: str | None = None


@dataclass
class ImportResult:
    """Counts for an import pass."""

    imported: int = 0
    skipped: int = 0


@dataclass
class DriftResult:
    """Counts for a drift-detection pass."""

    updated: int = 0
    deleted: int = 0
    errors: int = 0


@dataclass
class DayInfo:
    """Everything the engine knows about one day."""

    date: str
    events: list[OrthodoxEvent]
    fasting: str
    season: str
    tone: int
    is_sunday: bool
    julian_date: str


@dataclass
class DailyReading:
    """Response of the remote "today" lookup, with its provenance."""

    date: str
    saints: list[str] = field(default_factory=list)
    readings: dict[str, str] = field(default_factory=dict)
    fasting: str = "none"
    feast: str | None = None
    tone: int | None = None
    source: str = "live"  # 'live', 'cache' or 'offline'


@dataclass
class AppConfig:
    """Resolved runtime configuration."""

    database_path: Path = field(default_factory=lambda: DEFAULT_DATABASE)
    jurisdiction: str = DEFAULT_JURISDICTION
    data_table_path: Path | None = None
    calendar_name: str = APP_CALENDAR_NAME
    today_api_url: str = TODAY_API_URL
    orthocal_api_url: str = ORTHOCAL_API_URL
    request_timeout: float = REQUEST_TIMEOUT
    verbose: bool = False
