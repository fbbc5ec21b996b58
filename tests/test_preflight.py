"""
Tests for the checks run before calendar passes.
"""

import io

from rich.console import Console

from liturgical_time.preflight import run_preflight_checks
from tests.fake_calendar import FakeCalendarStore


def _console() -> Console:
    return Console(file=io.StringIO(), width=120)


def test_import_and_export_do_not_need_parish_settings(app_config, db, calendar_store):
    console = _console()
    assert run_preflight_checks(app_config, console, calendar_store, require_settings=False)
    assert console.file.getvalue() == ""


def test_missing_parish_settings_fail_when_required(app_config, db, calendar_store):
    console = _console()
    assert not run_preflight_checks(app_config, console, calendar_store)
    assert "Parish settings" in console.file.getvalue()


def test_all_checks_pass(app_config, db, calendar_store, settings_store, parish_settings):
    settings_store.save_parish_settings(parish_settings)
    assert run_preflight_checks(app_config, _console(), calendar_store)


def test_denied_permission_fails_without_settings_check(app_config, db):
    console = _console()
    store = FakeCalendarStore(permission="denied")
    assert not run_preflight_checks(app_config, console, store, require_settings=False)
    output = console.file.getvalue()
    assert "permission denied" in output
    assert "Parish settings" not in output
