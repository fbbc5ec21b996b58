"""
Tests for the "today" lookup: live, cached and offline provenance.
"""

from datetime import date

import pytest
import responses
from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import Timeout

from liturgical_time.db import ResponseCache
from liturgical_time.lookup import CACHE_PREFIX
from liturgical_time.lookup import TodayLookupClient
from liturgical_time.lookup import local_reading

BASE_URL = "https://orthocal.test/api"
DAILY_URL = f"{BASE_URL}/daily"
PASCHA = date(2025, 4, 20)

_LIVE_PAYLOAD = {
    "saints": ["Învierea Domnului"],
    "readings": {"epistle": "Acts 1:1-8", "gospel": "John 1:1-17"},
    "fast_level": "none",
    "feast": "Pascha",
    "tone": 1,
}


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client(db, clock):
    return TodayLookupClient(
        db,
        base_url=BASE_URL,
        cache=ResponseCache(db, CACHE_PREFIX, ttl=100, clock=clock),
    )


class TestTodayLookupClient:
    @responses.activate
    def test_live_response(self, client):
        responses.add(responses.GET, DAILY_URL, json=_LIVE_PAYLOAD, status=200)

        reading = client.fetch(PASCHA)

        assert reading.source == "live"
        assert reading.date == "2025-04-20"
        assert reading.saints == ["Învierea Domnului"]
        assert reading.readings == {"epistle": "Acts 1:1-8", "gospel": "John 1:1-17"}
        assert reading.fasting == "none"
        assert reading.feast == "Pascha"
        assert reading.tone == 1
        assert len(responses.calls) == 1
        assert "date=2025-04-20" in responses.calls[0].request.url
        assert "jurisdiction=romanian" in responses.calls[0].request.url

    @responses.activate
    def test_second_fetch_comes_from_cache(self, client):
        responses.add(responses.GET, DAILY_URL, json=_LIVE_PAYLOAD, status=200)

        client.fetch(PASCHA)
        reading = client.fetch(PASCHA)

        assert reading.source == "cache"
        assert reading.saints == ["Învierea Domnului"]
        assert len(responses.calls) == 1

    @responses.activate
    def test_cache_expires(self, client, clock):
        responses.add(responses.GET, DAILY_URL, json=_LIVE_PAYLOAD, status=200)

        client.fetch(PASCHA)
        clock.now += 100
        reading = client.fetch(PASCHA)

        assert reading.source == "live"
        assert len(responses.calls) == 2

    @responses.activate
    def test_server_error_falls_back_to_local(self, client):
        responses.add(responses.GET, DAILY_URL, json={"error": "boom"}, status=500)

        reading = client.fetch(PASCHA)

        assert reading.source == "offline"
        assert reading.saints == ["Pascha (Easter)"]
        assert reading.feast == "Pascha (Easter)"
        assert reading.readings == {}
        assert reading.fasting == "none"
        assert reading.tone == 1

    @responses.activate
    def test_offline_fallback_is_cached(self, client):
        responses.add(responses.GET, DAILY_URL, body=Timeout("Request timed out"))

        first = client.fetch(PASCHA)
        second = client.fetch(PASCHA)

        assert first.source == "offline"
        assert second.source == "offline"
        assert len(responses.calls) == 1

    @responses.activate
    def test_connection_error_and_malformed_body(self, client):
        responses.add(responses.GET, DAILY_URL, body=RequestsConnectionError("unreachable"))
        assert client.fetch(date(2025, 3, 5)).source == "offline"

        responses.replace(responses.GET, DAILY_URL, body="not json", status=200)
        assert client.fetch(date(2025, 3, 6)).source == "offline"

        responses.replace(responses.GET, DAILY_URL, json=["not", "an", "object"], status=200)
        assert client.fetch(date(2025, 3, 7)).source == "offline"

    @responses.activate
    def test_flat_payload_and_unknown_fasting(self, client):
        responses.add(
            responses.GET,
            DAILY_URL,
            json={"saints": [], "gospel": "Mark 8:34-9:1", "fasting": "xerophagy"},
            status=200,
        )

        reading = client.fetch(date(2025, 3, 23))

        assert reading.readings == {"gospel": "Mark 8:34-9:1"}
        assert reading.fasting == "regular"
        assert reading.feast is None

    @responses.activate
    def test_cache_is_keyed_by_jurisdiction(self, db, clock):
        responses.add(responses.GET, DAILY_URL, json=_LIVE_PAYLOAD, status=200)
        cache = ResponseCache(db, CACHE_PREFIX, ttl=100, clock=clock)
        romanian = TodayLookupClient(db, base_url=BASE_URL, cache=cache)
        greek = TodayLookupClient(db, base_url=BASE_URL, jurisdiction="greek", cache=cache)

        romanian.fetch(PASCHA)
        assert greek.fetch(PASCHA).source == "live"
        assert len(responses.calls) == 2
        assert "jurisdiction=greek" in responses.calls[1].request.url

    @responses.activate
    def test_fetch_range_is_inclusive(self, client):
        responses.add(responses.GET, DAILY_URL, json=_LIVE_PAYLOAD, status=200)

        results = client.fetch_range(date(2025, 4, 18), date(2025, 4, 20))

        assert list(results) == ["2025-04-18", "2025-04-19", "2025-04-20"]
        assert len(responses.calls) == 3

    @responses.activate
    def test_clear_cache(self, client):
        responses.add(responses.GET, DAILY_URL, json=_LIVE_PAYLOAD, status=200)

        client.fetch(PASCHA)
        assert client.clear_cache() == 1
        assert client.fetch(PASCHA).source == "live"
        assert len(responses.calls) == 2

    def test_unknown_jurisdiction(self, db):
        with pytest.raises(ValueError):
            TodayLookupClient(db, jurisdiction="martian")


class TestLocalReading:
    def test_lenten_weekday(self):
        reading = local_reading(date(2025, 3, 5))
        assert reading.source == "offline"
        assert reading.saints == []
        assert reading.feast is None
        assert reading.fasting == "lent"

    def test_unsupported_year_has_no_tone(self):
        reading = local_reading(date(2035, 12, 25))
        assert reading.tone is None
        assert reading.feast == "Nativity of Christ"
