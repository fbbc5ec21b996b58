"""
Tests for the meeting edit command.
"""

import pytest
from typer.testing import CliRunner

from liturgical_time.cli import app
from liturgical_time.db import Database
from liturgical_time.db import MeetingStore
from liturgical_time.db import SettingsStore
from tests.conftest import make_meeting

SUNDAY = "2025-07-13"

runner = CliRunner()


@pytest.fixture
def seeded(tmp_path, db_path, parish_settings):
    """Store one exported meeting; return (base args, meeting id)."""
    with Database(db_path) as database:
        SettingsStore(database).save_parish_settings(parish_settings)
        meeting_id = MeetingStore(database).create(
            make_meeting(
                date=SUNDAY,
                start="14:00",
                end="15:00",
                location="Sala mare",
                calendar_event_id="app::evt-1",
            )
        )
    base = ["--config", str(tmp_path / "missing.conf"), "--database", str(db_path)]
    return base, meeting_id


def _stored(db_path, meeting_id):
    with Database(db_path) as database:
        return MeetingStore(database).get_by_id(meeting_id)


def test_edit_changes_only_given_fields(seeded, db_path):
    base, meeting_id = seeded
    result = runner.invoke(
        app, base + ["meeting", "edit", str(meeting_id), "--title", "Choir", "--end", "16:00"]
    )
    assert result.exit_code == 0, result.output

    meeting = _stored(db_path, meeting_id)
    assert meeting.title == "Choir"
    assert meeting.start_time == "14:00"
    assert meeting.end_time == "16:00"
    assert meeting.location == "Sala mare"
    assert meeting.calendar_event_id == "app::evt-1"


def test_declined_conflict_leaves_meeting(seeded, db_path):
    base, meeting_id = seeded
    result = runner.invoke(
        app,
        base + ["meeting", "edit", str(meeting_id), "--start", "09:30", "--end", "10:30"],
        input="n\n",
    )
    assert result.exit_code == 1
    assert _stored(db_path, meeting_id).start_time == "14:00"


def test_yes_saves_despite_conflict(seeded, db_path):
    base, meeting_id = seeded
    result = runner.invoke(
        app,
        base + ["meeting", "edit", str(meeting_id), "--start", "09:30", "--end", "10:30", "--yes"],
    )
    assert result.exit_code == 0, result.output
    assert _stored(db_path, meeting_id).start_time == "09:30"


@pytest.mark.parametrize(
    "args",
    [
        ["--date", "20250713"],
        ["--start", "16:00"],
    ],
)
def test_invalid_edit_is_rejected(seeded, db_path, args):
    base, meeting_id = seeded
    result = runner.invoke(app, base + ["meeting", "edit", str(meeting_id)] + args)
    assert result.exit_code == 1
    meeting = _stored(db_path, meeting_id)
    assert meeting.date == SUNDAY
    assert meeting.start_time == "14:00"


def test_unknown_meeting(seeded):
    base, _ = seeded
    result = runner.invoke(app, base + ["meeting", "edit", "999", "--title", "x"])
    assert result.exit_code == 1
