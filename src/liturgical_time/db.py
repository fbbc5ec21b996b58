"""
SQLite persistence: meetings, settings and the HTTP response cache.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from collections.abc import Callable
from dataclasses import asdict
from datetime import datetime
from pathlib import Path

from liturgical_time.models import CACHE_TTL
from liturgical_time.models import Meeting
from liturgical_time.models import ParishSettings
from liturgical_time.models import StoreError

logger = logging.getLogger(__name__)

# Columns added after the first release; created by _migrate() on old databases.
_MEETING_LATE_COLUMNS = {
    "calendar_event_id": "TEXT",
    "external_event_id": "TEXT",
    "calendar_source": "TEXT",
    "last_synced": "TEXT",
}

_MEETING_FIELDS = (
    "id",
    "title",
    "date",
    "start_time",
    "end_time",
    "location",
    "notes",
    "calendar_event_id",
    "external_event_id",
    "calendar_source",
    "last_synced",
    "created_at",
    "updated_at",
)


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


class Database:
    """Owns the sqlite connection and schema."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.conn: sqlite3.Connection | None = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def connect(self):
        """Open the database file, creating it and its schema when missing."""
        try:
            if str(self.db_path) != ":memory:":
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.conn = sqlite3.connect(str(self.db_path))
            self.conn.row_factory = sqlite3.Row
            self._init_schema()
            self._migrate()
        except (OSError, sqlite3.Error) as e:
            raise StoreError(f"Cannot open database {self.db_path}: {e}") from e

    def _init_schema(self):
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS meetings (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL,
                date TEXT NOT NULL,
                start_time TEXT NOT NULL,
                end_time TEXT NOT NULL,
                location TEXT,
                notes TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS response_cache (
                key TEXT PRIMARY KEY,
                data TEXT NOT NULL,
                timestamp REAL NOT NULL
            );
        """)
        self.conn.commit()

    def _migrate(self):
        """Add meeting columns that older databases lack."""
        cursor = self.conn.execute("PRAGMA table_info(meetings)")
        columns = {row["name"] for row in cursor.fetchall()}
        missing = [name for name in _MEETING_LATE_COLUMNS if name not in columns]
        for name in missing:
            self.conn.execute(f"ALTER TABLE meetings ADD COLUMN {name} {_MEETING_LATE_COLUMNS[name]}")
        if missing:
            logger.info(f"Migrated meetings table: added {', '.join(missing)}")
        self.conn.commit()

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Run one statement, converting sqlite failures into StoreError."""
        if not self.conn:
            raise StoreError("Database not connected")
        try:
            return self.conn.execute(sql, params)
        except sqlite3.Error as e:
            raise StoreError(f"Database error: {e}") from e

    def commit(self):
        if self.conn:
            try:
                self.conn.commit()
            except sqlite3.Error as e:
                raise StoreError(f"Database commit failed: {e}") from e

    def close(self):
        if self.conn:
            self.conn.close()
            self.conn = None


class MeetingStore:
    """CRUD for meetings, keyed by integer id."""

    def __init__(self, db: Database):
        self.db = db

    @staticmethod
    def _from_row(row: sqlite3.Row) -> Meeting:
        return Meeting(**{name: row[name] for name in _MEETING_FIELDS})

    def list(self) -> list[Meeting]:
        """All meetings, ascending by (date, start_time)."""
        cursor = self.db.execute("SELECT * FROM meetings ORDER BY date, start_time, id")
        return [self._from_row(row) for row in cursor.fetchall()]

    def list_by_date(self, day: str) -> list[Meeting]:
        cursor = self.db.execute(
            "SELECT * FROM meetings WHERE date = ? ORDER BY start_time, id", (day,)
        )
        return [self._from_row(row) for row in cursor.fetchall()]

    def list_by_date_range(self, start: str, end: str) -> list[Meeting]:
        cursor = self.db.execute(
            "SELECT * FROM meetings WHERE date >= ? AND date <= ? ORDER BY date, start_time, id",
            (start, end),
        )
        return [self._from_row(row) for row in cursor.fetchall()]

    def get_by_id(self, meeting_id: int) -> Meeting | None:
        cursor = self.db.execute("SELECT * FROM meetings WHERE id = ? LIMIT 1", (meeting_id,))
        row = cursor.fetchone()
        return self._from_row(row) if row else None

    def create(self, meeting: Meeting) -> int:
        """Insert the meeting and return the id assigned to it."""
        timestamp = _now_iso()
        cursor = self.db.execute(
            "INSERT INTO meetings "
            "(title, date, start_time, end_time, location, notes, "
            " calendar_event_id, external_event_id, calendar_source, last_synced, "
            " created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                meeting.title,
                meeting.date,
                meeting.start_time,
                meeting.end_time,
                meeting.location,
                meeting.notes,
                meeting.calendar_event_id,
                meeting.external_event_id,
                meeting.calendar_source,
                meeting.last_synced,
                timestamp,
                timestamp,
            ),
        )
        self.db.commit()
        return cursor.lastrowid

    def update(self, meeting: Meeting):
        """Overwrite every mutable field of an existing meeting."""
        if meeting.id is None:
            raise StoreError("Cannot update a meeting without an id")
        self.db.execute(
            "UPDATE meetings "
            "SET title = ?, date = ?, start_time = ?, end_time = ?, location = ?, notes = ?, "
            "    calendar_event_id = ?, external_event_id = ?, calendar_source = ?, "
            "    last_synced = ?, updated_at = ? "
            "WHERE id = ?",
            (
                meeting.title,
                meeting.date,
                meeting.start_time,
                meeting.end_time,
                meeting.location,
                meeting.notes,
                meeting.calendar_event_id,
                meeting.external_event_id,
                meeting.calendar_source,
                meeting.last_synced,
                _now_iso(),
                meeting.id,
            ),
        )
        self.db.commit()

    def update_calendar_event_id(self, meeting_id: int, calendar_event_id: str | None):
        self.db.execute(
            "UPDATE meetings SET calendar_event_id = ?, updated_at = ? WHERE id = ?",
            (calendar_event_id, _now_iso(), meeting_id),
        )
        self.db.commit()

    def delete(self, meeting_id: int):
        self.db.execute("DELETE FROM meetings WHERE id = ?", (meeting_id,))
        self.db.commit()

    def delete_all(self):
        self.db.execute("DELETE FROM meetings")
        self.db.commit()


class SettingsStore:
    """Key/value records: parish settings, app calendar id and preferences."""

    PARISH_SETTINGS = "parish_settings"
    APP_CALENDAR_ID = "app_calendar_id"
    CALENDAR_SYNC_ENABLED = "calendar_sync_enabled"
    JULIAN_ENABLED = "julian_enabled"
    ONBOARDED = "onboarded"

    def __init__(self, db: Database):
        self.db = db

    def _get(self, key: str, default=None):
        row = self.db.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
        if row is None:
            return default
        return json.loads(row["value"])

    def _set(self, key: str, value):
        self.db.execute(
            "INSERT INTO settings (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, json.dumps(value)),
        )
        self.db.commit()

    def _delete(self, key: str):
        self.db.execute("DELETE FROM settings WHERE key = ?", (key,))
        self.db.commit()

    def get_parish_settings(self) -> ParishSettings | None:
        raw = self._get(self.PARISH_SETTINGS)
        return ParishSettings(**raw) if raw else None

    def save_parish_settings(self, settings: ParishSettings):
        self._set(self.PARISH_SETTINGS, asdict(settings))

    def clear_parish_settings(self):
        self._delete(self.PARISH_SETTINGS)

    def get_app_calendar_id(self) -> str | None:
        return self._get(self.APP_CALENDAR_ID)

    def save_app_calendar_id(self, calendar_id: str):
        self._set(self.APP_CALENDAR_ID, calendar_id)

    def get_calendar_sync_enabled(self) -> bool:
        return self._get(self.CALENDAR_SYNC_ENABLED, False)

    def save_calendar_sync_enabled(self, enabled: bool):
        self._set(self.CALENDAR_SYNC_ENABLED, enabled)

    def get_julian_enabled(self) -> bool:
        return self._get(self.JULIAN_ENABLED, False)

    def save_julian_enabled(self, enabled: bool):
        self._set(self.JULIAN_ENABLED, enabled)

    def is_onboarded(self) -> bool:
        return self._get(self.ONBOARDED, False)

    def set_onboarded(self, onboarded: bool):
        self._set(self.ONBOARDED, onboarded)

    def clear_all(self):
        """Forget every setting (app reset)."""
        self.db.execute("DELETE FROM settings")
        self.db.commit()


class ResponseCache:
    """
    Time-limited JSON cache for remote lookups.

    Each remote integration uses its own ``prefix`` so their keyspaces never
    mix. Entries are stale once ``now - timestamp >= ttl``.
    """

    def __init__(
        self,
        db: Database,
        prefix: str,
        ttl: float = CACHE_TTL,
        clock: Callable[[], float] = time.time,
    ):
        self.db = db
        self.prefix = prefix
        self.ttl = ttl
        self.clock = clock

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str):
        """Return cached data for ``key``, or None when absent or stale."""
        row = self.db.execute(
            "SELECT data, timestamp FROM response_cache WHERE key = ?", (self._key(key),)
        ).fetchone()
        if row is None:
            return None
        if self.clock() - row["timestamp"] >= self.ttl:
            self.db.execute("DELETE FROM response_cache WHERE key = ?", (self._key(key),))
            self.db.commit()
            return None
        return json.loads(row["data"])

    def set(self, key: str, data):
        self.db.execute(
            "INSERT INTO response_cache (key, data, timestamp) VALUES (?, ?, ?) "
            "ON CONFLICT(key) DO UPDATE SET data = excluded.data, timestamp = excluded.timestamp",
            (self._key(key), json.dumps(data), self.clock()),
        )
        self.db.commit()

    def clear(self) -> int:
        """Remove every entry in this cache's namespace; return the count removed."""
        cursor = self.db.execute(
            "DELETE FROM response_cache WHERE key LIKE ? ESCAPE '\\'",
            (self.prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_") + "%",),
        )
        self.db.commit()
        return cursor.rowcount


def query_status(db_path: Path) -> dict:
    """
    Return summary counts for the status command.

    Returns an empty dict when the database file does not exist yet.
    """
    if not db_path.exists():
        return {}
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        tables = {
            row["name"]
            for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        }
        if "meetings" not in tables:
            return {}
        row = conn.execute("""
            SELECT
                COUNT(*)                                     AS meetings,
                SUM(calendar_event_id IS NOT NULL)           AS exported,
                SUM(external_event_id IS NOT NULL)           AS imported,
                MAX(last_synced)                             AS last_synced
            FROM meetings
        """).fetchone()
        return {
            "meetings": row["meetings"] or 0,
            "exported": row["exported"] or 0,
            "imported": row["imported"] or 0,
            "last_synced": row["last_synced"],
        }
    except sqlite3.Error as e:
        raise StoreError(f"Cannot read database {db_path}: {e}") from e
    finally:
        conn.close()
