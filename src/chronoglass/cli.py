"""Command-line interface for chronoglass."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, TypeVar

import typer

from .config import ServerSettings
from .paths import get_data_path, get_log_path
from .session_store import SessionStateError, SessionStore
from .storage import DataStore

app = typer.Typer(help="Personal work-session timer with weekly balance.")

T = TypeVar("T")

DataOption = typer.Option(
    None,
    "--data",
    path_type=Path,
    help="Location of the data.json file.",
)


@app.callback(no_args_is_help=True)
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs."),
    log_to_file: bool = typer.Option(
        False, "--log-file", help="Also write logs to the application log file."
    ),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    if log_to_file:
        handler = logging.FileHandler(get_log_path(), encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logging.getLogger().addHandler(handler)


def _open_store(data_path: Optional[Path]) -> SessionStore:
    return SessionStore(DataStore(data_path or get_data_path()))


def _guard(operation: Callable[[], T]) -> T:
    try:
        return operation()
    except (SessionStateError, ValueError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc


def _parse_start(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d %H:%M")
    except ValueError as exc:
        raise typer.BadParameter("Use the format 'YYYY-MM-DD HH:MM'.") from exc
    return int(parsed.timestamp() * 1000)


@app.command()
def start(
    title: Optional[str] = typer.Option(None, "--title", "-t", help="First task of the session."),
    at: Optional[str] = typer.Option(
        None, "--at", help="Backdate the start (local 'YYYY-MM-DD HH:MM')."
    ),
    data_path: Optional[Path] = DataOption,
) -> None:
    """Start a work session."""
    store = _open_store(data_path)
    start_time = _parse_start(at)
    session = _guard(lambda: store.start_session(title, start_time))
    typer.echo(f"Started session {session.id} on {session.date}.")


@app.command()
def stop(data_path: Optional[Path] = DataOption) -> None:
    """Stop the running session."""
    from .durations import format_clock, interval_duration

    store = _open_store(data_path)
    session = _guard(store.stop_session)
    typer.echo(f"Stopped after {format_clock(interval_duration(session))}.")


@app.command()
def task(
    title: str = typer.Argument(..., help="What you are working on now."),
    data_path: Optional[Path] = DataOption,
) -> None:
    """Log a new task in the running session, closing the previous one."""
    store = _open_store(data_path)
    sub = _guard(lambda: store.log_sub_activity(title))
    typer.echo(f"Now working on: {sub.title}")


@app.command()
def done(data_path: Optional[Path] = DataOption) -> None:
    """Close the current task but keep the session running."""
    store = _open_store(data_path)
    closed = _guard(store.stop_current_task)
    typer.echo(f"Finished: {closed.title}" if closed else "No task was running.")


@app.command()
def status(data_path: Optional[Path] = DataOption) -> None:
    """Show the timer, balance and today's tasks."""
    from .reporting import SummaryPrinter

    SummaryPrinter(_open_store(data_path)).print_status()


@app.command()
def week(data_path: Optional[Path] = DataOption) -> None:
    """Chart hours per day for the current week."""
    from .reporting import SummaryPrinter

    SummaryPrinter(_open_store(data_path)).print_week()


@app.command()
def history(
    limit: Optional[int] = typer.Option(None, "--limit", min=1, help="Show only the latest N weeks."),
    data_path: Optional[Path] = DataOption,
) -> None:
    """List every recorded week with its total and balance."""
    from .reporting import SummaryPrinter

    SummaryPrinter(_open_store(data_path)).print_history(limit=limit)


@app.command()
def settings(
    target: Optional[float] = typer.Option(None, "--target", min=0, help="Weekly hours target."),
    name: Optional[str] = typer.Option(None, "--name", help="Display name."),
    data_path: Optional[Path] = DataOption,
) -> None:
    """Show or change settings."""
    store = _open_store(data_path)
    if target is None and name is None:
        current = store.settings
    else:
        current = store.update_settings(weekly_hours_target=target, user_name=name)
    typer.echo(f"Weekly target: {current.weekly_hours_target}h")
    typer.echo(f"User name:     {current.user_name}")


@app.command("export")
def export_data(
    destination: Path = typer.Argument(..., help="File to write the export to."),
    data_path: Optional[Path] = DataOption,
) -> None:
    """Write all sessions and settings to a JSON file."""
    store = _open_store(data_path)
    destination.write_text(store.export_json(), encoding="utf-8")
    typer.echo(f"Exported {len(store.sessions)} sessions to {destination}.")


@app.command("import")
def import_data(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Export file to load."),
    data_path: Optional[Path] = DataOption,
) -> None:
    """Replace all data with the contents of an export file."""
    store = _open_store(data_path)
    text = source.read_text(encoding="utf-8")
    data = _guard(lambda: store.import_json(text))
    typer.echo(f"Imported {len(data.sessions)} sessions.")


@app.command()
def clear(
    day: Optional[str] = typer.Option(None, "--day", help="Remove one day (YYYY-MM-DD)."),
    start_day: Optional[str] = typer.Option(None, "--start", help="First day of a range."),
    end_day: Optional[str] = typer.Option(None, "--end", help="Last day of a range."),
    reset: bool = typer.Option(False, "--reset", help="Delete the data file, settings included."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
    data_path: Optional[Path] = DataOption,
) -> None:
    """Remove sessions: one day, a date range, or everything."""
    if (start_day is None) != (end_day is None):
        raise typer.BadParameter("--start and --end must be given together.")
    if not yes:
        typer.confirm("This permanently removes recorded sessions. Continue?", abort=True)

    store = _open_store(data_path)
    if reset:
        store.reset()
        typer.echo("All data removed.")
    elif day:
        typer.echo(f"Removed {store.clear_day(day)} sessions.")
    elif start_day and end_day:
        typer.echo(f"Removed {store.clear_range(start_day, end_day)} sessions.")
    else:
        store.clear_all()
        typer.echo("All sessions removed.")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the API."),
    port: int = typer.Option(45321, "--port", min=1, max=65535, help="TCP port for the API."),
    poll_seconds: float = typer.Option(
        1.0, "--poll-interval", min=0.2, help="Refresh cadence suggested to clients."
    ),
    open_browser: bool = typer.Option(
        False,
        "--open-browser/--no-open-browser",
        help="Open the dashboard endpoint in your default browser.",
    ),
    data_path: Optional[Path] = DataOption,
) -> None:
    """Serve the local HTTP API."""
    from .server_runner import run_server

    run_server(
        data_path=data_path or get_data_path(),
        settings=ServerSettings.from_options(host=host, port=port, poll_seconds=poll_seconds),
        open_browser=open_browser,
    )
