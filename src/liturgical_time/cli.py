"""
Command-line interface for Liturgical Time.
"""

import logging
from configparser import ConfigParser
from dataclasses import dataclass
from dataclasses import field
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from liturgical_time.calendar_engine import day_info
from liturgical_time.calendar_engine import format_julian_display
from liturgical_time.calendar_engine import liturgy_time
from liturgical_time.calendar_engine import upcoming_events
from liturgical_time.conflicts import conflict_summary
from liturgical_time.conflicts import detect_all_conflicts
from liturgical_time.conflicts import detect_vespers_conflict
from liturgical_time.conflicts import format_conflict_message
from liturgical_time.conflicts import should_show_strong_warning
from liturgical_time.db import Database
from liturgical_time.db import query_status
from liturgical_time.lookup import TodayLookupClient
from liturgical_time.models import DEFAULT_CONFIG
from liturgical_time.models import DEFAULT_DATABASE
from liturgical_time.models import JURISDICTIONS
from liturgical_time.models import AppConfig
from liturgical_time.models import Conflict
from liturgical_time.models import LiturgicalTimeError
from liturgical_time.models import Meeting
from liturgical_time.models import ParishSettings
from liturgical_time.models import ValidationError
from liturgical_time.orthocal import OrthocalClient
from liturgical_time.orthocal import orthocal_fasting_level
from liturgical_time.orthocal import readings_display
from liturgical_time.orthocal import tone_display
from liturgical_time.preflight import run_preflight_checks
from liturgical_time.state import AppState
from liturgical_time.state import add_meeting
from liturgical_time.state import load_state
from liturgical_time.state import remove_meeting
from liturgical_time.state import save_parish_settings
from liturgical_time.state import set_calendar_sync_enabled
from liturgical_time.state import toggle_julian_calendar
from liturgical_time.state import update_meeting

# ---------------------------------------------------------------------------
# Typer apps
# ---------------------------------------------------------------------------

app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Schedule parish meetings around Orthodox liturgical observances.",
)
meeting_app = typer.Typer(no_args_is_help=True, help="Add, edit, list and delete meetings.")
app.add_typer(meeting_app, name="meeting")

console = Console()

_LEVEL_STYLES = {"great": "bold red", "major": "bold yellow", "minor": "cyan", "regular": "dim"}
_FASTING_STYLES = {"none": "dim", "regular": "yellow", "strict": "bold red", "lent": "magenta"}
_SOURCE_STYLES = {"live": "green", "cache": "cyan", "offline": "yellow"}


# ---------------------------------------------------------------------------
# Global state shared across subcommands
# ---------------------------------------------------------------------------


@dataclass
class _State:
    config_path: Path = field(default_factory=lambda: DEFAULT_CONFIG)
    database: Path | None = None
    verbose: bool = False


state = _State()


@app.callback()
def _global(
    config: Annotated[
        Path,
        typer.Option("--config", "-c", help=f"Config file path (default: {DEFAULT_CONFIG})"),
    ] = DEFAULT_CONFIG,
    database: Annotated[
        Path | None,
        typer.Option("--database", help=f"Database path (default: {DEFAULT_DATABASE})"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose debug output"),
    ] = False,
) -> None:
    state.config_path = config
    state.database = database
    state.verbose = verbose
    _setup_logging(verbose)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False, console=console)],
    )


def _load_config_file(config_path: Path) -> dict[str, str]:
    if not config_path.exists():
        return {}
    parser = ConfigParser()
    parser.read(config_path)
    if "liturgical-time" not in parser:
        return {}
    return dict(parser["liturgical-time"])


def _build_config() -> AppConfig:
    config_file = _load_config_file(state.config_path)
    cfg = AppConfig(verbose=state.verbose)
    if state.database:
        cfg.database_path = state.database
    elif config_file.get("database"):
        cfg.database_path = Path(config_file["database"]).expanduser()
    if config_file.get("data_table"):
        cfg.data_table_path = Path(config_file["data_table"]).expanduser()
    for key in ("jurisdiction", "calendar_name", "today_api_url", "orthocal_api_url"):
        if config_file.get(key):
            setattr(cfg, key, config_file[key])
    if cfg.jurisdiction not in JURISDICTIONS:
        console.print(f"[bold red]Error:[/] Unknown jurisdiction: {cfg.jurisdiction!r}")
        raise typer.Exit(1)
    if config_file.get("request_timeout"):
        try:
            cfg.request_timeout = float(config_file["request_timeout"])
        except ValueError:
            console.print(
                f"[bold red]Error:[/] Invalid request_timeout: {config_file['request_timeout']!r}"
            )
            raise typer.Exit(1) from None
    return cfg


def _open_calendar_store():
    """Connect to EDS; exits when PyGObject or the EDS bindings are missing."""
    try:
        from liturgical_time.eds_client import EDSCalendarStore
    except (ImportError, ValueError) as e:
        console.print(f"[bold red]Error:[/] Evolution Data Server bindings unavailable: {e}")
        console.print("[dim]Install with: pip install 'liturgical-time[eds]'[/dim]")
        raise typer.Exit(1) from None
    return EDSCalendarStore()


def _open_state(cfg: AppConfig, db: Database, with_calendar: bool = False) -> AppState:
    calendar_store = _open_calendar_store() if with_calendar else None
    try:
        return load_state(cfg, db, calendar_store)
    except LiturgicalTimeError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(1) from None


def _parse_date(value: str | None) -> date:
    if not value:
        return date.today()
    try:
        return date.fromisoformat(value)
    except ValueError:
        console.print(f"[bold red]Error:[/] Invalid date: {value!r}")
        raise typer.Exit(1) from None


def _require_settings(app_state: AppState) -> ParishSettings:
    if app_state.parish_settings is None:
        console.print(
            "[bold red]Error:[/] Parish settings are not configured; run "
            "[cyan]liturgical-time setup[/]."
        )
        raise typer.Exit(1)
    return app_state.parish_settings


def _print_conflict(conflict: Conflict) -> None:
    style = {"high": "bold red", "medium": "yellow", "low": "cyan"}[conflict.severity]
    console.print(Text(format_conflict_message(conflict), style=style))


def _meeting_table(meetings: list[Meeting], title: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("ID", justify="right", style="bold")
    table.add_column("Date")
    table.add_column("Time")
    table.add_column("Title")
    table.add_column("Location")
    table.add_column("Linked")
    for meeting in meetings:
        linked = []
        if meeting.calendar_event_id:
            linked.append("exported")
        if meeting.external_event_id:
            linked.append(f"from {meeting.calendar_source or 'calendar'}")
        table.add_row(
            str(meeting.id),
            meeting.date,
            f"{meeting.start_time}–{meeting.end_time}",
            meeting.title,
            meeting.location or "",
            Text(", ".join(linked), style="dim"),
        )
    return table


# ---------------------------------------------------------------------------
# Subcommands: setup / settings
# ---------------------------------------------------------------------------


@app.command()
def setup(
    parish_name: Annotated[str, typer.Option("--parish", prompt="Parish name")],
    sunday_liturgy: Annotated[
        str, typer.Option("--sunday-liturgy", prompt="Sunday liturgy time (HH:mm)")
    ] = "09:00",
    saturday_vespers: Annotated[
        str | None, typer.Option("--saturday-vespers", help="Saturday vespers time (HH:mm)")
    ] = None,
    weekday_liturgy: Annotated[
        str | None, typer.Option("--weekday-liturgy", help="Weekday liturgy time (HH:mm)")
    ] = None,
    julian: Annotated[
        bool, typer.Option("--julian/--no-julian", help="Show Julian calendar dates")
    ] = False,
    calendar_sync: Annotated[
        bool,
        typer.Option(
            "--calendar-sync/--no-calendar-sync",
            help="Export meetings to the desktop calendar as they are saved",
        ),
    ] = False,
) -> None:
    """Configure the parish liturgy schedule."""
    cfg = _build_config()
    settings = ParishSettings(
        parish_name=parish_name,
        sunday_liturgy_time=sunday_liturgy,
        saturday_vespers_time=saturday_vespers,
        weekday_liturgy_time=weekday_liturgy,
        julian_calendar_enabled=julian,
    )
    with Database(cfg.database_path) as db:
        app_state = _open_state(cfg, db)
        try:
            save_parish_settings(app_state, settings)
        except ValidationError as e:
            console.print(f"[bold red]Error:[/] {e}")
            raise typer.Exit(1) from None
        set_calendar_sync_enabled(app_state, calendar_sync)
    console.print(f"[green]Saved settings for[/] [bold]{parish_name}[/]")


@app.command()
def settings(
    toggle_julian: Annotated[
        bool, typer.Option("--toggle-julian", help="Toggle Julian date display")
    ] = False,
) -> None:
    """Show the parish settings."""
    cfg = _build_config()
    with Database(cfg.database_path) as db:
        app_state = _open_state(cfg, db)
        parish = _require_settings(app_state)
        if toggle_julian:
            enabled = toggle_julian_calendar(app_state)
            console.print(f"Julian dates {'enabled' if enabled else 'disabled'}")

    info = Table.grid(padding=(0, 2))
    info.add_column(style="bold")
    info.add_column()
    info.add_row("Parish", parish.parish_name)
    info.add_row("Sunday liturgy", parish.sunday_liturgy_time)
    info.add_row("Saturday vespers", parish.saturday_vespers_time or "—")
    info.add_row("Weekday liturgy", parish.weekday_liturgy_time or "—")
    info.add_row("Julian dates", "on" if app_state.julian_calendar_enabled else "off")
    info.add_row("Calendar sync", "on" if app_state.calendar_sync_enabled else "off")
    info.add_row("Data table", app_state.table.version)
    console.print(Panel(info, title="[bold]Parish Settings[/bold]", expand=False))


# ---------------------------------------------------------------------------
# Subcommands: day / upcoming
# ---------------------------------------------------------------------------


@app.command()
def day(
    when: Annotated[str | None, typer.Argument(help="Date YYYY-MM-DD (default: today)")] = None,
    online: Annotated[
        bool, typer.Option("--online", help="Also ask orthocal.info for saints and readings")
    ] = False,
) -> None:
    """Show the observances, fasting and season of a day."""
    cfg = _build_config()
    target = _parse_date(when)

    with Database(cfg.database_path) as db:
        app_state = _open_state(cfg, db)
        info = day_info(target, app_state.table)

        body = Text()
        body.append("  Season:  ", style="bold")
        body.append(f"{info.season}\n")
        body.append("  Tone:    ", style="bold")
        body.append(f"{info.tone}\n")
        body.append("  Fasting: ", style="bold")
        body.append(info.fasting, style=_FASTING_STYLES[info.fasting])
        if app_state.julian_calendar_enabled:
            body.append("\n  Julian:  ", style="bold")
            body.append(format_julian_display(target))
        if app_state.parish_settings is not None:
            start = liturgy_time(target, app_state.parish_settings, app_state.table)
            body.append("\n  Liturgy: ", style="bold")
            body.append(start or "—")
        for event in info.events:
            body.append("\n  • ")
            body.append(event.display_name, style=_LEVEL_STYLES[event.level])
            if event.name_en and event.name != event.name_en:
                body.append(f"  ({event.name})", style="dim")
        console.print(Panel(body, title=f"[bold]{target.strftime('%A, %d %B %Y')}[/bold]"))

        if online:
            _print_online_day(cfg, db, target)


def _print_online_day(cfg: AppConfig, db: Database, target: date) -> None:
    reading = TodayLookupClient(
        db,
        base_url=cfg.today_api_url,
        jurisdiction=cfg.jurisdiction,
        timeout=cfg.request_timeout,
    ).fetch(target)
    body = Text()
    for saint in reading.saints:
        body.append(f"  • {saint}\n")
    for key, value in reading.readings.items():
        body.append(f"  {key.capitalize()}: ", style="bold")
        body.append(f"{value}\n")
    body.append("  Source: ", style="bold")
    body.append(reading.source, style=_SOURCE_STYLES[reading.source])
    console.print(Panel(body, title=f"[bold]Daily reading ({cfg.jurisdiction})[/bold]"))

    detail = OrthocalClient(db, base_url=cfg.orthocal_api_url, timeout=cfg.request_timeout)
    record = detail.fetch_day(target)
    if record is None:
        console.print("[yellow]orthocal.info unavailable, showing local data only.[/]")
        return
    body = Text()
    if tone_display(record):
        body.append(f"  {tone_display(record)}\n", style="bold")
    body.append("  Fasting: ", style="bold")
    body.append(f"{orthocal_fasting_level(record)}\n")
    for line in readings_display(record):
        body.append(f"  {line}\n")
    console.print(Panel(body, title="[bold]orthocal.info[/bold]"))


@app.command()
def upcoming(
    days: Annotated[int, typer.Option("--days", "-d", help="Days to look ahead")] = 60,
    level: Annotated[
        str, typer.Option("--level", help="Event filter: all, major or great")
    ] = "all",
    from_date: Annotated[
        str | None, typer.Option("--from-date", help="Start date YYYY-MM-DD (default: today)")
    ] = None,
) -> None:
    """List upcoming feasts and fast days."""
    cfg = _build_config()
    start = _parse_date(from_date)
    with Database(cfg.database_path) as db:
        table_data = _open_state(cfg, db).table
    try:
        infos = upcoming_events(start, days=days, level=level, table=table_data)
    except ValueError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(1) from None

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Date")
    table.add_column("Observance")
    table.add_column("Fasting")
    for info in infos:
        names = Text()
        for i, event in enumerate(info.events):
            if i:
                names.append("\n")
            names.append(event.display_name, style=_LEVEL_STYLES[event.level])
        table.add_row(info.date, names, Text(info.fasting, style=_FASTING_STYLES[info.fasting]))
    console.print(table)


# ---------------------------------------------------------------------------
# Subcommands: meeting add / edit / list / delete, conflicts
# ---------------------------------------------------------------------------


def _conflict_confirmer(yes: bool):
    def _confirm(conflict: Conflict) -> bool:
        _print_conflict(conflict)
        if yes:
            return True
        if should_show_strong_warning([conflict]):
            console.print("[bold red]This meeting would disrupt the Divine Liturgy.[/]")
        return typer.confirm("Save anyway?", default=False)

    return _confirm


@meeting_app.command("add")
def meeting_add(
    title: Annotated[str, typer.Argument(help="Meeting title")],
    when: Annotated[str, typer.Option("--date", help="Date YYYY-MM-DD")],
    start: Annotated[str, typer.Option("--start", help="Start time HH:mm")],
    end: Annotated[str, typer.Option("--end", help="End time HH:mm")],
    location: Annotated[str | None, typer.Option("--location")] = None,
    notes: Annotated[str | None, typer.Option("--notes")] = None,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Save despite conflicts")] = False,
) -> None:
    """Add a meeting, warning about liturgy conflicts first."""
    cfg = _build_config()
    meeting = Meeting(
        title=title, date=when, start_time=start, end_time=end, location=location, notes=notes
    )

    with Database(cfg.database_path) as db:
        app_state = _open_state(cfg, db)
        if app_state.calendar_sync_enabled:
            app_state.calendar_store = _open_calendar_store()
        try:
            saved = add_meeting(app_state, meeting, confirm=_conflict_confirmer(yes))
        except ValidationError as e:
            console.print(f"[bold red]Error:[/] {e}")
            raise typer.Exit(1) from None
        if saved is None:
            console.print("[yellow]Meeting not saved.[/]")
            raise typer.Exit(1)

        vespers = detect_vespers_conflict(saved, app_state.parish_settings)
        if vespers is not None:
            _print_conflict(vespers)
    console.print(f"[green]Saved meeting[/] [bold]#{saved.id}[/] {saved.title}")


@meeting_app.command("edit")
def meeting_edit(
    meeting_id: Annotated[int, typer.Argument(help="Meeting id")],
    title: Annotated[str | None, typer.Option("--title")] = None,
    when: Annotated[str | None, typer.Option("--date", help="Date YYYY-MM-DD")] = None,
    start: Annotated[str | None, typer.Option("--start", help="Start time HH:mm")] = None,
    end: Annotated[str | None, typer.Option("--end", help="End time HH:mm")] = None,
    location: Annotated[str | None, typer.Option("--location")] = None,
    notes: Annotated[str | None, typer.Option("--notes")] = None,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Save despite conflicts")] = False,
) -> None:
    """Change a stored meeting and re-export it when calendar sync is on."""
    cfg = _build_config()
    changes = {
        "title": title,
        "date": when,
        "start_time": start,
        "end_time": end,
        "location": location,
        "notes": notes,
    }
    changes = {k: v for k, v in changes.items() if v is not None}

    with Database(cfg.database_path) as db:
        app_state = _open_state(cfg, db)
        stored = app_state.meeting_store.get_by_id(meeting_id)
        if stored is None:
            console.print(f"[bold red]Error:[/] No meeting #{meeting_id}")
            raise typer.Exit(1)
        if not changes:
            console.print("[yellow]Nothing to change.[/]")
            return
        # Linkage fields (calendar_event_id, external_event_id, ...) carry over.
        meeting = replace(stored, **changes)
        if app_state.calendar_sync_enabled:
            app_state.calendar_store = _open_calendar_store()
        try:
            saved = update_meeting(app_state, meeting, confirm=_conflict_confirmer(yes))
        except ValidationError as e:
            console.print(f"[bold red]Error:[/] {e}")
            raise typer.Exit(1) from None
        if saved is None:
            console.print("[yellow]Meeting not changed.[/]")
            raise typer.Exit(1)

        vespers = detect_vespers_conflict(saved, app_state.parish_settings)
        if vespers is not None:
            _print_conflict(vespers)
    console.print(f"[green]Updated meeting[/] [bold]#{saved.id}[/] {saved.title}")


@meeting_app.command("list")
def meeting_list(
    when: Annotated[str | None, typer.Option("--date", help="Only this date")] = None,
) -> None:
    """List stored meetings."""
    cfg = _build_config()
    with Database(cfg.database_path) as db:
        app_state = _open_state(cfg, db)
        if when:
            meetings = app_state.meeting_store.list_by_date(_parse_date(when).isoformat())
        else:
            meetings = app_state.meetings
    if not meetings:
        console.print("[yellow]No meetings.[/]")
        return
    console.print(_meeting_table(meetings, "Meetings"))


@meeting_app.command("delete")
def meeting_delete(
    meeting_id: Annotated[int, typer.Argument(help="Meeting id")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt")] = False,
) -> None:
    """Delete a meeting and its exported calendar event."""
    cfg = _build_config()
    with Database(cfg.database_path) as db:
        app_state = _open_state(cfg, db)
        meeting = app_state.meeting_store.get_by_id(meeting_id)
        if meeting is None:
            console.print(f"[bold red]Error:[/] No meeting #{meeting_id}")
            raise typer.Exit(1)
        if not yes:
            typer.confirm(f"Delete {meeting.title!r} on {meeting.date}?", abort=True)
        if meeting.calendar_event_id:
            app_state.calendar_store = _open_calendar_store()
        remove_meeting(app_state, meeting_id)
    console.print(f"[green]Deleted meeting[/] #{meeting_id}")


@app.command()
def conflicts(
    when: Annotated[str | None, typer.Option("--date", help="Summarise one date")] = None,
    include_past: Annotated[
        bool, typer.Option("--all", help="Include meetings before today")
    ] = False,
) -> None:
    """Report meetings that overlap a liturgy."""
    cfg = _build_config()
    with Database(cfg.database_path) as db:
        app_state = _open_state(cfg, db)
    parish = _require_settings(app_state)

    if when:
        target = _parse_date(when).isoformat()
        summary = conflict_summary(target, app_state.meetings, parish, app_state.table)
        style = "bold red" if summary["high_severity"] else "green"
        console.print(Text(f"{target}: {summary['count']} conflict(s)", style=style))
        return

    today = date.today().isoformat()
    meetings = [m for m in app_state.meetings if include_past or m.date >= today]
    found = detect_all_conflicts(meetings, parish, app_state.table)
    for meeting in meetings:
        vespers = detect_vespers_conflict(meeting, parish)
        if vespers is not None:
            found.append(vespers)
    if not found:
        console.print("[green]No conflicts.[/]")
        return
    for conflict in found:
        console.print(f"[bold]#{conflict.meeting.id}[/] {conflict.meeting.date} ", end="")
        _print_conflict(conflict)


# ---------------------------------------------------------------------------
# Subcommands: sync / import / export / calendars
# ---------------------------------------------------------------------------


def _results_panel(rows: list[tuple[str, int]], errors: int = 0) -> Panel:
    results = Table.grid(padding=(0, 2))
    results.add_column(style="bold")
    results.add_column(justify="right")
    for label, value in rows:
        results.add_row(label, str(value))
    error_val = Text(str(errors))
    if errors == 0:
        error_val.append(" ✓", style="green")
    else:
        error_val.stylize("bold red")
    results.add_row("Errors", error_val)
    return Panel(results, title="[bold]Results[/bold]", expand=False)


def _open_sync_state(cfg: AppConfig, db: Database, require_settings: bool = False) -> AppState:
    app_state = _open_state(cfg, db, with_calendar=True)
    if not run_preflight_checks(cfg, console, app_state.calendar_store, require_settings):
        raise typer.Exit(1)
    return app_state


@app.command()
def sync() -> None:
    """Export every meeting, then import and reconcile external events."""
    cfg = _build_config()
    with Database(cfg.database_path) as db:
        app_state = _open_sync_state(cfg, db, require_settings=True)
        try:
            outcome = app_state.synchronizer.run()
        except LiturgicalTimeError as e:
            console.print(f"[bold red]Sync failed:[/] {e}")
            raise typer.Exit(1) from None
        except KeyboardInterrupt:
            console.print("[yellow]Interrupted by user[/]")
            raise typer.Exit(130) from None
        if outcome is None:
            raise typer.Exit(1)
        app_state.refresh_meetings()
        today = date.today().isoformat()
        clashes = detect_all_conflicts(
            [m for m in app_state.meetings if m.external_event_id and m.date >= today],
            app_state.parish_settings,
            app_state.table,
        )
    exported, imported, drift = outcome
    console.print(
        _results_panel(
            [
                ("Exported", exported),
                ("Imported", imported.imported),
                ("Skipped", imported.skipped),
                ("Updated", drift.updated),
                ("Deleted", drift.deleted),
            ],
            drift.errors,
        )
    )
    if clashes:
        console.print(
            f"[yellow]{len(clashes)} imported meeting(s) overlap a liturgy; run[/] "
            "[cyan]liturgical-time conflicts[/] [yellow]for details.[/]"
        )
    if drift.errors:
        raise typer.Exit(1)


@app.command("import")
def import_() -> None:
    """Import events from other calendars for the next three months."""
    cfg = _build_config()
    with Database(cfg.database_path) as db:
        result = _open_sync_state(cfg, db).synchronizer.run_import()
    if result is None:
        raise typer.Exit(1)
    console.print(_results_panel([("Imported", result.imported), ("Skipped", result.skipped)]))


@app.command()
def export() -> None:
    """Export every meeting to the app calendar."""
    cfg = _build_config()
    with Database(cfg.database_path) as db:
        exported = _open_sync_state(cfg, db).synchronizer.export_all()
    if exported is None:
        raise typer.Exit(1)
    console.print(_results_panel([("Exported", exported)]))


@app.command()
def calendars() -> None:
    """List the calendars available to import from."""
    cfg = _build_config()
    store = _open_calendar_store()
    with Database(cfg.database_path) as db:
        app_calendar_id = _open_state(cfg, db).settings_store.get_app_calendar_id()
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Display Name / UID", min_width=36, overflow="fold")
    table.add_column("Role")
    for info in store.list_calendars():
        name_cell = Text()
        name_cell.append(info.title or "(unnamed)", style="bold")
        name_cell.append("\n")
        name_cell.append(info.id, style="dim")
        if info.id == app_calendar_id or info.title == cfg.calendar_name:
            role = Text("app calendar (export)", style="green")
        else:
            role = Text("import source", style="cyan")
        table.add_row(name_cell, role)
    console.print(table)


# ---------------------------------------------------------------------------
# Subcommands: status / clear-cache
# ---------------------------------------------------------------------------


@app.command()
def status() -> None:
    """Show configuration and database summary."""
    cfg = _build_config()
    config_exists = state.config_path.exists()
    db_exists = cfg.database_path.exists()

    cfg_info = Text()
    cfg_info.append("  Config:       ", style="bold")
    cfg_info.append(str(state.config_path) + " ")
    cfg_info.append(
        "✓" if config_exists else "(not found)", style="green" if config_exists else "red"
    )
    cfg_info.append("\n  Database:     ", style="bold")
    cfg_info.append(str(cfg.database_path) + " ")
    cfg_info.append("✓" if db_exists else "(not found)", style="green" if db_exists else "yellow")
    cfg_info.append("\n  Jurisdiction: ", style="bold")
    cfg_info.append(cfg.jurisdiction)
    cfg_info.append("\n  Calendar:     ", style="bold")
    cfg_info.append(cfg.calendar_name)
    console.print(Panel(cfg_info, title="[bold]Liturgical Time — Status[/bold]"))

    try:
        summary = query_status(cfg.database_path)
    except LiturgicalTimeError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(1) from None
    if not summary:
        console.print(
            "[yellow]No database yet: run[/] [cyan]liturgical-time setup[/] "
            "[yellow]to create it.[/]"
        )
        return

    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column(justify="right")
    table.add_row("Meetings", str(summary["meetings"]))
    table.add_row("Exported", str(summary["exported"]))
    table.add_row("Imported", str(summary["imported"]))
    table.add_row("Last synced", summary["last_synced"] or "—")
    console.print(Panel(table, title="[bold]Meetings[/bold]", expand=False))


@app.command("clear-cache")
def clear_cache() -> None:
    """Forget cached daily readings and orthocal.info responses."""
    cfg = _build_config()
    with Database(cfg.database_path) as db:
        removed = TodayLookupClient(db, jurisdiction=cfg.jurisdiction).clear_cache()
        removed += OrthocalClient(db).clear_cache()
    console.print(f"Removed [bold]{removed}[/] cached response(s)")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    app()
