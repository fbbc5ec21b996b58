"""
Checks run before a calendar pass so that a misconfiguration is reported
once, up front, instead of as a stream of per-meeting failures.
"""

import logging
import sqlite3
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from liturgical_time.models import AppConfig
from liturgical_time.models import CalendarStoreError

logger = logging.getLogger(__name__)

Issue = tuple[str, str, str]  # (label, detail, hint)

_EDS_HINT = "Is evolution-data-server running?"


def _check_calendar_store(calendar_store) -> list[Issue]:
    status = calendar_store.permission_status()
    if status != "granted":
        logger.error("Calendar permission is %s", status)
        return [("Calendar access", f"permission {status}", _EDS_HINT)]
    try:
        calendar_store.list_calendars()
    except CalendarStoreError as e:
        logger.error("Calendar store unreachable: %s", e)
        return [("Calendar store", str(e), _EDS_HINT)]
    return []


def _check_database(db_path: Path) -> list[Issue]:
    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("Cannot create database directory %s: %s", db_path.parent, e)
        return [("Database", f"{db_path}: {e}", f"Check permissions on {db_path.parent}")]
    if not db_path.exists():
        return []

    conn = sqlite3.connect(db_path)
    try:
        # A write lock needs a journal file next to the database.
        conn.execute("BEGIN IMMEDIATE")
        conn.execute("ROLLBACK")
    except sqlite3.Error as e:
        logger.error("Database not writable (%s): %s", db_path, e)
        return [
            (
                "Database",
                f"{db_path}: {e}",
                f"Check that journal files can be created in {db_path.parent}",
            )
        ]
    finally:
        conn.close()
    return []


def _check_parish_settings(db_path: Path) -> list[Issue]:
    missing = [("Parish settings", "not configured", "Run: liturgical-time setup")]
    if not db_path.exists():
        return missing
    conn = sqlite3.connect(db_path)
    try:
        row = conn.execute(
            "SELECT 1 FROM settings WHERE key = 'parish_settings' LIMIT 1"
        ).fetchone()
    except sqlite3.Error as e:
        logger.debug("Cannot read settings table: %s", e)
        row = None
    finally:
        conn.close()
    return [] if row else missing


def run_preflight_checks(
    cfg: AppConfig, console: Console, calendar_store, require_settings: bool = True
) -> bool:
    """
    Return True if a calendar pass may run; print the issues and return False otherwise.

    Parish settings are only checked when ``require_settings`` is set, for
    commands that read them.
    """
    issues = _check_calendar_store(calendar_store) + _check_database(cfg.database_path)
    if require_settings:
        issues += _check_parish_settings(cfg.database_path)
    if issues:
        _print_issues(issues, console)
        return False
    return True


def _print_issues(issues: list[Issue], console: Console) -> None:
    body = Text()
    for label, detail, hint in issues:
        if body:
            body.append("\n")
        body.append(f"  ✗  {label}: {detail}", style="bold red")
        body.append(f"\n       → {hint}", style="yellow")

    console.print(
        Panel(body, title=f"[bold red]{len(issues)} preflight check(s) failed[/bold red]")
    )
