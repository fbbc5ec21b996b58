"""
Tests for the orthocal.info client and its record converters.
"""

from datetime import date

import pytest
import responses
from requests.exceptions import Timeout

from liturgical_time.orthocal import OrthocalClient
from liturgical_time.orthocal import orthocal_fasting_level
from liturgical_time.orthocal import orthocal_to_events
from liturgical_time.orthocal import readings_display
from liturgical_time.orthocal import tone_display

BASE_URL = "https://orthocal.test/api"
PASCHA_URL = f"{BASE_URL}/gregorian/2025/4/20/"

_PASCHA_RECORD = {
    "year": 2025,
    "month": 4,
    "day": 20,
    "tone": 0,
    "feast_level": 5,
    "fast_level": 0,
    "saints": ["Holy Pascha"],
    "feasts": ["Holy Pascha", "The Bright Resurrection"],
    "readings": [
        {"source": "Epistle", "display": "Acts 1.1-8"},
        {"source": "Gospel", "display": "John 1.1-17"},
    ],
}


@pytest.fixture
def client(db):
    return OrthocalClient(db, base_url=BASE_URL)


class TestOrthocalClient:
    @responses.activate
    def test_fetch_day_uses_unpadded_path(self, client):
        responses.add(responses.GET, PASCHA_URL, json=_PASCHA_RECORD, status=200)

        record = client.fetch_day(date(2025, 4, 20))

        assert record["feast_level"] == 5
        assert len(responses.calls) == 1
        assert responses.calls[0].request.url == PASCHA_URL

    @responses.activate
    def test_second_fetch_is_cached(self, client):
        responses.add(responses.GET, PASCHA_URL, json=_PASCHA_RECORD, status=200)

        client.fetch_day(date(2025, 4, 20))
        assert client.fetch_day(date(2025, 4, 20)) == _PASCHA_RECORD
        assert len(responses.calls) == 1

    @responses.activate
    def test_failure_returns_none_and_is_not_cached(self, client):
        responses.add(responses.GET, PASCHA_URL, body=Timeout("Request timed out"))
        responses.add(responses.GET, PASCHA_URL, json=_PASCHA_RECORD, status=200)

        assert client.fetch_day(date(2025, 4, 20)) is None
        assert client.fetch_day(date(2025, 4, 20)) == _PASCHA_RECORD
        assert len(responses.calls) == 2

    @responses.activate
    def test_http_error_returns_none(self, client):
        responses.add(responses.GET, PASCHA_URL, status=404)
        assert client.fetch_day(date(2025, 4, 20)) is None

    @responses.activate
    def test_clear_cache(self, client):
        responses.add(responses.GET, PASCHA_URL, json=_PASCHA_RECORD, status=200)

        client.fetch_day(date(2025, 4, 20))
        assert client.clear_cache() == 1
        client.fetch_day(date(2025, 4, 20))
        assert len(responses.calls) == 2


class TestConverters:
    def test_events_list_saints_then_new_feasts(self):
        events = orthocal_to_events(_PASCHA_RECORD)
        assert [e.name for e in events] == ["Holy Pascha", "The Bright Resurrection"]
        assert all(e.date == "2025-04-20" for e in events)
        assert all(e.level == "great" and e.liturgy_required for e in events)
        assert not any(e.moveable for e in events)

    @pytest.mark.parametrize(
        ("feast_level", "level", "liturgy"),
        [(5, "great", True), (4, "major", True), (3, "major", True), (2, "minor", False),
         (1, "minor", False), (0, "regular", False)],
    )
    def test_level_mapping(self, feast_level, level, liturgy):
        record = {"year": 2025, "month": 1, "day": 7, "feast_level": feast_level, "saints": ["X"]}
        (event,) = orthocal_to_events(record)
        assert event.level == level
        assert event.liturgy_required is liturgy
        assert event.date == "2025-01-07"

    @pytest.mark.parametrize(
        ("fast_level", "expected"),
        [(0, "none"), (1, "regular"), (2, "lent"), (3, "strict"), (7, "regular"), (None, "none")],
    )
    def test_fasting_level(self, fast_level, expected):
        assert orthocal_fasting_level({"fast_level": fast_level}) == expected

    def test_readings_display(self):
        assert readings_display(_PASCHA_RECORD) == ["Epistle: Acts 1.1-8", "Gospel: John 1.1-17"]
        assert readings_display({}) == []

    def test_tone_display(self):
        assert tone_display({"tone": 3}) == "Glasul 3"
        assert tone_display(_PASCHA_RECORD) == ""
