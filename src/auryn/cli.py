"""Auryn CLI - tasks and calendar."""

import json
import logging
import sys
from datetime import date

import click

from .client import ApiClient, Command, Notice, TaskBoard
from .config import load_config
from .core.calendar import DayBucket, Event, month_title, summarize_day, task_chip_class
from .core.offline import render_service_worker
from .core.tasks import PRIORITIES, Task, date_label, due_badge
from .errors import AurynError, StorageError
from .workflows import get_store


def _board() -> TaskBoard:
    config = load_config()
    return TaskBoard(api=ApiClient(config.base_url), timezone=config.timezone)


def _report(notice: Notice | None) -> None:
    """Print a notice; failures go to stderr and exit non-zero."""
    if notice is None:
        return
    if notice.error:
        click.echo(f"Error: {notice.message}", err=True)
        sys.exit(1)
    click.echo(f"✓ {notice.message}")


def _load(board: TaskBoard) -> None:
    notice = board.dispatch(Command.LOAD)
    if notice is not None:
        _report(notice)


def _format_task(task: Task, as_of: date) -> str:
    label = date_label(task, as_of)
    badge = due_badge(task, as_of) if not task.completed else None
    marker = "x" if task.completed else " "
    meta = ", ".join(part for part in (task.category, label) if part)
    line = f"[{marker}] {task.priority:6} {task.title} ({meta}) [{task.id}]"
    return f"{line}  {badge}" if badge else line


def _format_item(item: Task | Event, as_of: date) -> str:
    if isinstance(item, Event):
        return f"{item.format_time():8} {item.title}"
    return f"{'task':8} {item.title} ({task_chip_class(item, as_of)}, {item.priority} priority · {item.category})"


@click.group()
@click.version_option(package_name="auryn")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """Auryn - personal tasks and calendar."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if debug else logging.WARNING,
    )


@main.command()
def serve():
    """Run the HTTP API server."""
    from .server import serve as run_server

    logging.getLogger("auryn").setLevel(logging.INFO)
    try:
        run_server(load_config())
    except KeyboardInterrupt:
        click.echo("\nServer stopped.")


@main.command()
def init():
    """Create an empty task document if none exists."""
    store = get_store(load_config())
    try:
        created = store.initialize()
    except (OSError, StorageError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"Created {store.path}" if created else f"{store.path} already exists")


@main.command()
@click.option("--priority", type=click.Choice(["all", *PRIORITIES]), default="all", help="Priority filter")
@click.option("--status", type=click.Choice(["active", "completed", "all"]), default="active", help="Status filter")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def tasks(priority: str, status: str, as_json: bool):
    """List tasks in display order."""
    board = _board()
    _load(board)
    board.dispatch(Command.FILTER_PRIORITY, value=priority)
    board.dispatch(Command.FILTER_STATUS, value=status)
    visible = board.visible_tasks()

    if as_json:
        click.echo(json.dumps([t.to_dict() for t in visible], indent=2))
        return

    if not visible:
        click.echo("No completed tasks yet." if status == "completed" else "No tasks here!")
        return

    today = board.today()
    for task in visible:
        click.echo(_format_task(task, today))


@main.command()
@click.argument("title")
@click.option("--priority", "-p", type=click.Choice(PRIORITIES), default="medium")
@click.option("--category", "-c", default="Admin")
@click.option("--due", "due_date", default=None, help="Due date (YYYY-MM-DD)")
def add(title: str, priority: str, category: str, due_date: str | None):
    """Add a task."""
    board = _board()
    notice = board.dispatch(Command.ADD, title=title, priority=priority, category=category, due_date=due_date)
    if notice is None:
        click.echo("Error: Title is required", err=True)
        sys.exit(1)
    _report(notice)


def _set_completed(task_id: str, completed: bool) -> None:
    board = _board()
    try:
        task = board.api.patch_task(task_id, {"completed": completed})
    except AurynError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(_format_task(task, board.today()))


@main.command()
@click.argument("task_id")
def done(task_id: str):
    """Mark a task complete."""
    _set_completed(task_id, True)


@main.command()
@click.argument("task_id")
def reopen(task_id: str):
    """Mark a task active again."""
    _set_completed(task_id, False)


@main.command("rm")
@click.argument("task_id")
def remove(task_id: str):
    """Delete a task."""
    board = _board()
    _load(board)
    notice = board.dispatch(Command.DELETE, task_id=task_id)
    if notice is None:
        click.echo("Error: Task not found", err=True)
        sys.exit(1)
    _report(notice)


@main.command()
def stats():
    """Show task counters and the due alert."""
    board = _board()
    _load(board)
    s = board.stats()
    click.echo(f"Total: {s.total}  Active: {s.active}  Done: {s.done}  Overdue: {s.overdue}  Today: {s.due_today}")
    alert = s.alert()
    if alert:
        click.echo(alert)


def _show_day(bucket: DayBucket, as_of: date, full: bool) -> None:
    click.echo(f"### {bucket.date.strftime('%A, %B %d')}")
    if full:
        if not bucket.items:
            click.echo("  Nothing scheduled")
        for item in bucket.items:
            click.echo(f"  {_format_item(item, as_of)}")
        return

    cell = summarize_day(bucket)
    for item in cell.shown:
        click.echo(f"  {_format_item(item, as_of)}")
    if cell.overflow_label:
        click.echo(f"  {cell.overflow_label}")


@main.command()
@click.option("--year", type=int, default=None)
@click.option("--month", type=click.IntRange(1, 12), default=None)
@click.option("--day", "target_day", default=None, help="Show every item of one day (YYYY-MM-DD)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def calendar(year: int | None, month: int | None, target_day: str | None, as_json: bool):
    """Show a month of tasks and calendar events."""
    board = _board()
    if target_day:
        try:
            day = date.fromisoformat(target_day)
        except ValueError:
            click.echo(f"Error: invalid date {target_day!r}", err=True)
            sys.exit(1)
        year, month = day.year, day.month

    notice = board.dispatch(Command.LOAD_CALENDAR, year=year, month=month)
    if notice is not None and notice.error and not board.calendar_data.get("events_unavailable"):
        _report(notice)

    if as_json:
        click.echo(json.dumps(board.calendar_data, indent=2))
        return

    click.echo(month_title(board.cal_year, board.cal_month))
    if notice is not None:
        click.echo(f"({notice.message})", err=True)

    today = board.today()
    if target_day:
        _show_day(board.day_items(day), today, full=True)
        return

    busy = [b for b in board.month_days() if b.items]
    if not busy:
        click.echo("Nothing scheduled this month.")
    for bucket in busy:
        _show_day(bucket, today, full=False)


@main.command("cal-auth")
def cal_auth():
    """Authenticate with Google Calendar (calendar_backend = google)."""
    config = load_config()

    if not config.google_config_folder:
        click.echo("GOOGLE_CONFIG_FOLDER not set in auryn.conf", err=True)
        sys.exit(1)

    if not config.google_client_secret_file:
        click.echo("GOOGLE_CLIENT_SECRET_FILE not set in auryn.conf", err=True)
        sys.exit(1)

    from .adapters.google_calendar import GoogleCalendarAdapter

    adapter = GoogleCalendarAdapter(
        config_folder=config.google_config_folder,
        client_secret_file=config.google_client_secret_file,
        timezone=config.timezone,
    )
    if adapter.authenticate():
        click.echo(f"  ✓ Token saved to {adapter._token_path}")
    else:
        click.echo("  ✗ Authentication failed", err=True)
        sys.exit(1)


@main.command("sw")
def service_worker():
    """Print the service worker script."""
    click.echo(render_service_worker())


if __name__ == "__main__":
    main()
