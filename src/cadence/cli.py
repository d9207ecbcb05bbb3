"""Cadence CLI - habit and to-do tracker."""

import json
import logging
import sys
from datetime import date, timedelta

import click

from .adapters.json_store import StoreError
from .config import load_config
from .core.calendar import EntryKind
from .core.errors import CadenceError
from .core.models import PeriodProgress
from .workflows import (
    calendar_query,
    dashboard_query,
    get_store,
    record_completion,
    resolve_today,
    undo_completion,
)


def _parse_date_option(ctx, param, value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"expected YYYY-MM-DD, got {value!r}")


def _fail(e: Exception) -> None:
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)


def _progress_dict(p: PeriodProgress) -> dict:
    return {
        "task_id": p.task_id,
        "title": p.title,
        "period": p.period_key,
        "completed": p.completed,
        "target": p.target,
        "met": p.is_met,
    }


def _progress_line(p: PeriodProgress) -> str:
    mark = "x" if p.is_met else " "
    return f"[{mark}] {p.title} {p.completed}/{p.target} ({p.period_key})"


@click.group()
@click.version_option()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """Cadence - recurring habits and one-time tasks."""
    config = load_config()
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if debug else config.log_level,
    )


@main.command()
@click.option("--start", callback=_parse_date_option, help="First day (YYYY-MM-DD), defaults to today")
@click.option("--end", callback=_parse_date_option, help="Last day (YYYY-MM-DD)")
@click.option("--days", type=int, default=None, help="Number of days when --end is omitted")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def calendar(start: date | None, end: date | None, days: int | None, as_json: bool):
    """Show recurring completions and to-dos by date."""
    config = load_config()
    start = start or resolve_today(config)
    if end is None:
        end = start + timedelta(days=(days or config.calendar_days) - 1)

    try:
        feed = calendar_query(get_store(config), config.owner_id, start, end, strict=config.strict)
    except (CadenceError, StoreError) as e:
        _fail(e)

    if as_json:
        click.echo(
            json.dumps(
                {
                    "entries": [entry.to_dict() for entry in feed],
                    "errors": [{"task_id": e.task_id, "kind": e.kind, "message": e.message} for e in feed.errors],
                },
                indent=2,
            )
        )
        return

    if not feed.entries:
        click.echo("Nothing scheduled.")

    current_date = None
    for entry in feed:
        if entry.date != current_date:
            if current_date is not None:
                click.echo()
            click.echo(f"### {entry.date.strftime('%A, %B %d')}")
            current_date = entry.date

        mark = "x" if entry.completed else " "
        if entry.kind is EntryKind.ONE_TIME:
            click.echo(f"  [{mark}] {entry.title} (to-do)")
            continue
        extra = f" x{entry.count}" if entry.count > 1 else ""
        if entry.period_key:
            extra += f" [{entry.period_completed}/{entry.period_target} {entry.period_key}]"
        click.echo(f"  [{mark}] {entry.title}{extra}")

    for error in feed.errors:
        click.echo(f"Skipped {error.task_id}: {error.message}", err=True)


@main.command()
@click.option("--date", "-d", "reference", callback=_parse_date_option, help="Reference date, defaults to today")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def dashboard(reference: date | None, as_json: bool):
    """Show today's habits and this week's and month's progress."""
    config = load_config()
    reference = reference or resolve_today(config)

    try:
        snapshot = dashboard_query(get_store(config), config.owner_id, reference, strict=config.strict)
    except (CadenceError, StoreError) as e:
        _fail(e)

    if as_json:
        click.echo(
            json.dumps(
                {
                    "date": reference.isoformat(),
                    "daily": [
                        {
                            "task_id": i.task_id,
                            "title": i.title,
                            "done": i.done,
                            "logged": i.logged,
                            "note": i.note,
                        }
                        for i in snapshot.daily
                    ],
                    "weekly": [_progress_dict(p) for p in snapshot.weekly],
                    "monthly": [_progress_dict(p) for p in snapshot.monthly],
                    "errors": [{"task_id": e.task_id, "kind": e.kind, "message": e.message} for e in snapshot.errors],
                },
                indent=2,
            )
        )
        return

    click.echo(f"## {reference.strftime('%A, %B %d')}")
    click.echo(f"\nToday ({snapshot.daily_done}/{snapshot.daily_total})")
    for item in snapshot.daily:
        click.echo(f"  [{'x' if item.done else ' '}] {item.title}")
    click.echo(f"\nThis week ({snapshot.weekly_met}/{len(snapshot.weekly)} met)")
    for p in snapshot.weekly:
        click.echo(f"  {_progress_line(p)}")
    click.echo(f"\nThis month ({snapshot.monthly_met}/{len(snapshot.monthly)} met)")
    for p in snapshot.monthly:
        click.echo(f"  {_progress_line(p)}")

    for error in snapshot.errors:
        click.echo(f"Skipped {error.task_id}: {error.message}", err=True)


@main.command("log")
@click.argument("task_id")
@click.option("--date", "-d", "log_date", callback=_parse_date_option, help="Day to log, defaults to today")
@click.option("--count", "-n", type=int, default=1, help="Completions to record")
@click.option("--note", default=None, help="Optional note")
@click.option("--not-done", is_flag=True, help="Record the day as not completed")
@click.option("--undo", is_flag=True, help="Remove the day's log")
def log_cmd(task_id: str, log_date: date | None, count: int, note: str | None, not_done: bool, undo: bool):
    """Record a completion for a recurring task."""
    config = load_config()
    log_date = log_date or resolve_today(config)
    store = get_store(config)

    try:
        if undo:
            progress = undo_completion(store, config.owner_id, task_id, log_date)
        else:
            progress = record_completion(
                store, config.owner_id, task_id, log_date, completed=not not_done, count=count, note=note
            )
    except (CadenceError, StoreError, ValueError) as e:
        _fail(e)

    click.echo(_progress_line(progress))


@main.command()
@click.option("--all", "show_all", is_flag=True, help="Include inactive habits")
def habits(show_all: bool):
    """List recurring tasks."""
    config = load_config()
    store = get_store(config)
    tasks = store.list_recurring_tasks(config.owner_id)
    if not show_all:
        tasks = [t for t in tasks if t.active]

    if not tasks:
        click.echo("No habits yet.")
        return

    for task in tasks:
        target = f" target={task.target_count}" if task.target_count else ""
        status = "" if task.active else " (inactive)"
        click.echo(f"{task.id}  {task.title}  {json.dumps(task.recurrence)}{target}{status}")


@main.command("add-habit")
@click.argument("title")
@click.option("--rule", "rule_json", required=True,
              help='Recurrence, e.g. \'{"frequency": "daily", "weekdays": ["mon", "wed"]}\'')
@click.option("--target", type=int, default=None, help="Target count for weekly/monthly target rules")
@click.option("--category", default="", help="Category label")
def add_habit(title: str, rule_json: str, target: int | None, category: str):
    """Add a recurring task."""
    config = load_config()
    try:
        recurrence = json.loads(rule_json)
        task = get_store(config).add_recurring_task(
            config.owner_id, title, recurrence, target_count=target, category=category
        )
    except json.JSONDecodeError as e:
        _fail(ValueError(f"--rule is not valid JSON: {e}"))
    except (CadenceError, StoreError) as e:
        _fail(e)

    click.echo(task.id)


@main.command()
def todos():
    """List one-time tasks."""
    config = load_config()
    tasks = get_store(config).list_one_time_tasks(config.owner_id)

    if not tasks:
        click.echo("No to-dos.")
        return

    for task in sorted(tasks, key=lambda t: (t.due_date or date.max, t.title.casefold())):
        mark = "x" if task.completed else " "
        due = f" (due {task.due_date})" if task.due_date else ""
        click.echo(f"[{mark}] {task.id}  {task.title}{due}")


@main.command("add-todo")
@click.argument("title")
@click.option("--due", callback=_parse_date_option, help="Due date (YYYY-MM-DD)")
@click.option("--category", default="", help="Category label")
def add_todo(title: str, due: date | None, category: str):
    """Add a one-time task."""
    config = load_config()
    try:
        task = get_store(config).add_one_time_task(config.owner_id, title, due_date=due, category=category)
    except StoreError as e:
        _fail(e)

    click.echo(task.id)


@main.command()
@click.argument("todo_id")
@click.option("--reopen", is_flag=True, help="Mark as not completed")
def done(todo_id: str, reopen: bool):
    """Mark a one-time task completed."""
    config = load_config()
    try:
        task = get_store(config).set_one_time_completed(config.owner_id, todo_id, completed=not reopen)
    except StoreError as e:
        _fail(e)

    click.echo(f"[{'x' if task.completed else ' '}] {task.title}")


if __name__ == "__main__":
    main()
