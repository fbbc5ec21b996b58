"""
orthocal.info day-detail client.

Responses are cached for 24 hours under their own prefix, separate from the
daily-reading cache. A failed fetch returns None and the caller falls back
to the local calendar engine.
"""

import logging
from datetime import date

import requests

from liturgical_time.db import Database
from liturgical_time.db import ResponseCache
from liturgical_time.models import CACHE_TTL
from liturgical_time.models import ORTHOCAL_API_URL
from liturgical_time.models import REQUEST_TIMEOUT
from liturgical_time.models import OrthodoxEvent

logger = logging.getLogger(__name__)

CACHE_PREFIX = "orthocal_cache_"

# orthocal feast_level: 0 no service, 1 simple, 2 six stichera,
# 3 full service, 4 vigil, 5 great feast
_LIT_LEVEL_THRESHOLD = 3

_FASTING_BY_LEVEL = {0: "none", 1: "regular", 2: "lent", 3: "strict"}


class OrthocalClient:
    def __init__(
        self,
        db: Database,
        base_url: str = ORTHOCAL_API_URL,
        timeout: float = REQUEST_TIMEOUT,
        ttl: float = CACHE_TTL,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache = ResponseCache(db, CACHE_PREFIX, ttl=ttl)

    def fetch_day(self, day: date) -> dict | None:
        """Return the orthocal record for ``day``, or None when unavailable."""
        key = f"{day.year}-{day.month:02d}-{day.day:02d}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        url = f"{self.base_url}/gregorian/{day.year}/{day.month}/{day.day}/"
        try:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"orthocal lookup failed for {day}: {e}")
            return None

        self.cache.set(key, data)
        return data

    def clear_cache(self) -> int:
        return self.cache.clear()


def _map_level(feast_level: int) -> str:
    if feast_level >= 5:
        return "great"
    if feast_level >= 3:
        return "major"
    if feast_level >= 1:
        return "minor"
    return "regular"


def orthocal_to_events(day: dict) -> list[OrthodoxEvent]:
    """Turn an orthocal record into events: saints first, then feasts not already named."""
    iso = f"{day['year']:04d}-{day['month']:02d}-{day['day']:02d}"
    feast_level = day.get("feast_level") or 0
    saints = day.get("saints") or []
    names = list(saints)
    names.extend(feast for feast in day.get("feasts") or [] if feast not in saints)
    return [
        OrthodoxEvent(
            name=name,
            date=iso,
            moveable=False,
            liturgy_required=feast_level >= _LIT_LEVEL_THRESHOLD,
            level=_map_level(feast_level),
        )
        for name in names
    ]


def orthocal_fasting_level(day: dict) -> str:
    fast_level = day.get("fast_level") or 0
    if fast_level in _FASTING_BY_LEVEL:
        return _FASTING_BY_LEVEL[fast_level]
    return "regular" if fast_level > 0 else "none"


def readings_display(day: dict) -> list[str]:
    return [f"{r['source']}: {r['display']}" for r in day.get("readings") or []]


def tone_display(day: dict) -> str:
    tone = day.get("tone") or 0
    return f"Glasul {tone}" if tone > 0 else ""
