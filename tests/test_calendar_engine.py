"""
Unit tests for the liturgical calendar engine: events, fasting precedence,
seasons, choir tone and Julian dates.
"""

from datetime import date
from datetime import timedelta

import pytest

from liturgical_time.calendar_engine import ORDINARY_TIME
from liturgical_time.calendar_engine import choir_tone
from liturgical_time.calendar_engine import day_info
from liturgical_time.calendar_engine import events_for_date
from liturgical_time.calendar_engine import fasting_level
from liturgical_time.calendar_engine import format_julian_display
from liturgical_time.calendar_engine import gregorian_to_julian
from liturgical_time.calendar_engine import is_sunday
from liturgical_time.calendar_engine import julian_date
from liturgical_time.calendar_engine import liturgical_season
from liturgical_time.calendar_engine import liturgy_time
from liturgical_time.calendar_engine import merge_events
from liturgical_time.calendar_engine import upcoming_events
from liturgical_time.models import FASTING_LEVELS
from liturgical_time.models import OrthodoxEvent
from liturgical_time.models import ParishSettings


def _dates(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


# ---------------------------------------------------------------------------
# events_for_date
# ---------------------------------------------------------------------------


class TestEventsForDate:
    def test_pascha_is_a_moveable_great_feast(self):
        events = events_for_date(date(2025, 4, 20))
        assert len(events) == 1
        pascha = events[0]
        assert pascha.name_en == "Pascha (Easter)"
        assert pascha.level == "great"
        assert pascha.moveable is True
        assert pascha.liturgy_required is True
        assert pascha.date == "2025-04-20"

    def test_fixed_feast_date_is_rewritten_to_query_year(self):
        events = events_for_date(date(2031, 12, 25))
        assert [e.name_en for e in events] == ["Nativity of Christ"]
        assert events[0].date == "2031-12-25"
        assert events[0].moveable is False

    def test_fixed_before_moveable(self):
        """Ascension 2026 falls on Saints Constantine and Helen."""
        events = events_for_date(date(2026, 5, 21))
        assert [(e.name_en, e.moveable) for e in events] == [
            ("Saints Constantine and Helen", False),
            ("Ascension", True),
        ]

    def test_all_saints_is_major(self):
        (event,) = events_for_date(date(2024, 6, 30))
        assert event.name_en == "All Saints Sunday"
        assert event.level == "major"

    def test_unsupported_year_has_no_moveable_feasts(self):
        assert events_for_date(date(2035, 4, 8)) == []

    def test_plain_day_has_no_events(self):
        assert events_for_date(date(2025, 7, 10)) == []

    def test_pure(self):
        day = date(2025, 4, 20)
        assert events_for_date(day) == events_for_date(date(2025, 4, 20))


def test_merge_events_dedupes_by_name_and_date():
    a = OrthodoxEvent("Floriile", "2025-04-13", True, True, "great")
    b = OrthodoxEvent("Floriile", "2025-04-13", True, True, "great", name_en="Palm Sunday")
    c = OrthodoxEvent("Sf. Gheorghe", "2025-04-23", False, True, "major")
    assert merge_events([a], [b, c]) == [a, c]


def test_is_sunday():
    assert is_sunday(date(2025, 4, 20))
    assert not is_sunday(date(2025, 4, 19))


# ---------------------------------------------------------------------------
# fasting_level
# ---------------------------------------------------------------------------


class TestFastingLevel:
    @pytest.mark.parametrize(
        ("day", "expected"),
        [
            (date(2025, 3, 5), "lent"),  # Wednesday inside Great Lent
            (date(2025, 4, 19), "lent"),  # Holy Saturday, last day of the range
            (date(2025, 4, 20), "none"),  # Pascha
            (date(2025, 8, 6), "regular"),  # Dormition fast (Wednesday too)
            (date(2025, 8, 15), "regular"),  # Dormition itself is a Friday
            (date(2025, 12, 1), "regular"),  # Nativity fast
            (date(2024, 9, 14), "strict"),  # Elevation of the Cross, a Saturday
            (date(2025, 7, 9), "regular"),  # Wednesday
            (date(2025, 7, 11), "regular"),  # Friday
            (date(2025, 7, 10), "none"),  # Thursday
            (date(2025, 12, 25), "none"),  # Nativity, a Thursday
        ],
    )
    def test_rules(self, day, expected):
        assert fasting_level(day) == expected

    def test_every_lenten_wednesday_and_friday_is_lent(self):
        for day in _dates(date(2025, 3, 3), date(2025, 4, 19)):
            if day.weekday() in (2, 4):
                assert fasting_level(day) == "lent", day

    def test_always_one_of_the_four_levels(self):
        for day in _dates(date(2023, 1, 1), date(2029, 12, 31)):
            assert fasting_level(day) in FASTING_LEVELS

    def test_unsupported_year_skips_lent(self):
        # 2035-03-07 is a Wednesday; no Great Lent range is known for 2035.
        assert fasting_level(date(2035, 3, 7)) == "regular"


# ---------------------------------------------------------------------------
# Julian dates
# ---------------------------------------------------------------------------


class TestJulian:
    def test_julian_is_thirteen_days_earlier(self):
        for day in _dates(date(2024, 12, 20), date(2025, 3, 5)):
            assert julian_date(day) == day - timedelta(days=13)

    def test_gregorian_to_julian_string(self):
        assert gregorian_to_julian(date(2025, 1, 7)) == "2024-12-25"

    def test_display(self):
        assert format_julian_display(date(2025, 4, 25)) == "12 Apr (Julian)"


# ---------------------------------------------------------------------------
# choir_tone / liturgical_season
# ---------------------------------------------------------------------------


class TestChoirTone:
    def test_pascha_week_is_tone_one(self):
        pascha = date(2024, 5, 5)
        assert choir_tone(pascha) == 1
        assert choir_tone(pascha + timedelta(days=6)) == 1

    def test_cycle_repeats_after_eight_weeks(self):
        pascha = date(2024, 5, 5)
        assert choir_tone(date(2024, 6, 30)) == 1
        assert choir_tone(pascha + timedelta(days=56)) == choir_tone(pascha)

    def test_weekly_progression(self):
        pascha = date(2024, 5, 5)
        tones = [choir_tone(pascha + timedelta(weeks=n)) for n in range(9)]
        assert tones == [1, 2, 3, 4, 5, 6, 7, 8, 1]

    def test_week_before_pascha_is_tone_eight(self):
        assert choir_tone(date(2024, 5, 4)) == 8

    def test_unknown_year_degrades_to_one(self):
        assert choir_tone(date(2035, 6, 1)) == 1


class TestLiturgicalSeason:
    @pytest.mark.parametrize(
        ("day", "expected"),
        [
            (date(2025, 4, 20), "Bright Week"),
            (date(2025, 4, 27), "Bright Week"),
            (date(2025, 4, 28), "Paschal Period"),
            (date(2025, 6, 8), "Paschal Period"),  # Pentecost, day 49
            (date(2025, 6, 9), "Apostles' Fast"),
            (date(2025, 6, 29), "Apostles' Fast"),
            (date(2025, 6, 30), ORDINARY_TIME),
            (date(2025, 8, 10), "Dormition Fast"),
            (date(2025, 11, 20), "Nativity Fast"),
            (date(2025, 12, 30), "Nativity Period"),
            (date(2025, 1, 5), "Nativity Period"),
            (date(2025, 3, 3), "Great Lent, Week 1"),
            (date(2025, 3, 10), "Great Lent, Week 2"),
            (date(2025, 4, 19), "Great Lent, Week 7"),
            (date(2025, 3, 2), ORDINARY_TIME),
            (date(2025, 10, 1), ORDINARY_TIME),
        ],
    )
    def test_labels(self, day, expected):
        assert liturgical_season(day) == expected

    def test_unknown_year_degrades_to_ordinary_time(self):
        assert liturgical_season(date(2035, 12, 25)) == ORDINARY_TIME


# ---------------------------------------------------------------------------
# liturgy_time / day_info / upcoming_events
# ---------------------------------------------------------------------------


class TestLiturgyTime:
    def test_sunday_and_feasts_use_sunday_time(self, parish_settings):
        assert liturgy_time(date(2025, 7, 13), parish_settings) == "09:00"
        assert liturgy_time(date(2025, 3, 25), parish_settings) == "09:00"  # Annunciation

    def test_weekday_uses_weekday_time(self, parish_settings):
        assert liturgy_time(date(2025, 7, 10), parish_settings) == "08:00"

    def test_saturday_without_feast_has_none(self, parish_settings):
        assert liturgy_time(date(2025, 7, 12), parish_settings) is None

    def test_no_weekday_time_configured(self):
        settings = ParishSettings(parish_name="Sf. Ilie")
        assert liturgy_time(date(2025, 7, 10), settings) is None


def test_day_info_for_pascha():
    info = day_info(date(2025, 4, 20))
    assert info.date == "2025-04-20"
    assert info.is_sunday is True
    assert info.season == "Bright Week"
    assert info.tone == 1
    assert info.fasting == "none"
    assert info.julian_date == "2025-04-07"
    assert [e.name_en for e in info.events] == ["Pascha (Easter)"]


class TestUpcomingEvents:
    def test_great_filter(self):
        result = upcoming_events(date(2025, 4, 14), days=10, level="great")
        assert [info.date for info in result if info.events] == ["2025-04-20"]
        # Saint George (major) is filtered out; its Wednesday fast is past the first week.
        assert "2025-04-23" not in [info.date for info in result]

    def test_fast_days_kept_within_first_week(self):
        result = upcoming_events(date(2025, 4, 14), days=10, level="great")
        assert "2025-04-14" in [info.date for info in result]

    def test_all_includes_major(self):
        result = upcoming_events(date(2025, 4, 14), days=10)
        assert "2025-04-23" in [info.date for info in result]

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            upcoming_events(date(2025, 4, 14), level="minor")
