"""
Remote "today" lookup with a 24-hour cache and a local fallback.

Resolution is two-tiered: the remote service (through the cache), then the
local calendar engine. Every DailyReading says which tier produced it.
"""

import logging
from dataclasses import asdict
from datetime import date
from datetime import timedelta

import requests

from liturgical_time.calendar_engine import choir_tone
from liturgical_time.calendar_engine import events_for_date
from liturgical_time.calendar_engine import fasting_level
from liturgical_time.db import Database
from liturgical_time.db import ResponseCache
from liturgical_time.liturgical_data import DEFAULT_TABLE
from liturgical_time.liturgical_data import LiturgicalDataTable
from liturgical_time.models import CACHE_TTL
from liturgical_time.models import DEFAULT_JURISDICTION
from liturgical_time.models import FASTING_LEVELS
from liturgical_time.models import JURISDICTIONS
from liturgical_time.models import REQUEST_TIMEOUT
from liturgical_time.models import TODAY_API_URL
from liturgical_time.models import DailyReading

logger = logging.getLogger(__name__)

CACHE_PREFIX = "orthodox_cache_"


def local_reading(day: date, table: LiturgicalDataTable = DEFAULT_TABLE) -> DailyReading:
    """Synthesize a reading from the local engine; it knows no scripture readings."""
    events = events_for_date(day, table)
    feast = next((e.display_name for e in events if e.level in ("great", "major")), None)
    return DailyReading(
        date=day.isoformat(),
        saints=[event.display_name for event in events],
        readings={},
        fasting=fasting_level(day, table),
        feast=feast,
        tone=choir_tone(day, table) if table.pascha_for(day.year) else None,
        source="offline",
    )


def _parse_response(day: date, payload: dict) -> DailyReading:
    readings = payload.get("readings") or {}
    parsed = {}
    for key in ("epistle", "gospel"):
        value = readings.get(key) or payload.get(key)
        if value:
            parsed[key] = value
    fasting = payload.get("fast_level") or payload.get("fasting") or "none"
    if fasting not in FASTING_LEVELS:
        fasting = "regular"
    return DailyReading(
        date=day.isoformat(),
        saints=list(payload.get("saints") or []),
        readings=parsed,
        fasting=fasting,
        feast=payload.get("feast"),
        tone=payload.get("tone"),
        source="live",
    )


class TodayLookupClient:
    """Fetch daily saints, readings and fasting for a jurisdiction."""

    def __init__(
        self,
        db: Database,
        base_url: str = TODAY_API_URL,
        jurisdiction: str = DEFAULT_JURISDICTION,
        timeout: float = REQUEST_TIMEOUT,
        table: LiturgicalDataTable = DEFAULT_TABLE,
        ttl: float = CACHE_TTL,
        cache: ResponseCache | None = None,
    ):
        if jurisdiction not in JURISDICTIONS:
            raise ValueError(f"Unknown jurisdiction {jurisdiction!r}, expected one of {JURISDICTIONS}")
        self.base_url = base_url.rstrip("/")
        self.jurisdiction = jurisdiction
        self.timeout = timeout
        self.table = table
        self.cache = cache or ResponseCache(db, CACHE_PREFIX, ttl=ttl)

    def _cache_key(self, day: date) -> str:
        return f"{self.jurisdiction}_{day.isoformat()}"

    def _request(self, day: date) -> dict:
        response = requests.get(
            f"{self.base_url}/daily",
            params={"date": day.isoformat(), "jurisdiction": self.jurisdiction},
            headers={"Accept": "application/json"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    def fetch(self, day: date) -> DailyReading:
        """
        Return the reading for ``day``.

        A fresh cache entry wins. Otherwise the service is asked; on any
        failure the local engine's reading is returned, and cached too so
        the service is not hit again within the TTL.
        """
        key = self._cache_key(day)
        cached = self.cache.get(key)
        if cached is not None:
            reading = DailyReading(**cached)
            if reading.source == "live":
                reading.source = "cache"
            return reading

        try:
            reading = _parse_response(day, self._request(day))
        except (requests.RequestException, ValueError, AttributeError) as e:
            logger.warning(f"Today lookup failed for {day}, using local data: {e}")
            reading = local_reading(day, self.table)

        self.cache.set(key, asdict(reading))
        return reading

    def fetch_range(self, start: date, end: date) -> dict[str, DailyReading]:
        """Readings for every day from ``start`` to ``end`` inclusive."""
        results = {}
        current = start
        while current <= end:
            results[current.isoformat()] = self.fetch(current)
            current += timedelta(days=1)
        return results

    def clear_cache(self) -> int:
        removed = self.cache.clear()
        logger.info(f"Cleared {removed} cached daily reading(s)")
        return removed
