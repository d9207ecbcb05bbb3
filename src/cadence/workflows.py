"""Query and command layer between the CLI and the functional core.

Each function fetches a snapshot from the store, runs the pure core over it
and returns the derived view. Nothing is cached between calls.
"""

import logging
from datetime import date

from .adapters.clock import SystemClock
from .adapters.json_store import JsonFileStore
from .config import Config
from .core.calendar import CalendarFeed, assemble, validate_range
from .core.errors import OrphanLog
from .core.models import PeriodProgress, RecurringTask
from .core.rules import PeriodKind, period_window_for, window_containing
from .core.summary import DashboardSnapshot, summarize
from .core.tally import aggregate
from .ports.clock import Clock
from .ports.store import Store

logger = logging.getLogger(__name__)


def get_store(config: Config) -> JsonFileStore:
    """Resolve the data store from config."""
    return JsonFileStore(config.data_dir)


def resolve_today(config: Config, clock: Clock | None = None) -> date:
    """Today's date in the configured timezone, via the injected clock."""
    clock = clock or SystemClock()
    return clock.today(config.timezone)


def _covering_range(start: date, end: date) -> tuple[date, date]:
    """Extend a range to whole weeks and months so period totals are complete."""
    first = [window_containing(kind, start) for kind in (PeriodKind.WEEK, PeriodKind.MONTH)]
    last = [window_containing(kind, end) for kind in (PeriodKind.WEEK, PeriodKind.MONTH)]
    return min(w.start for w in first), max(w.end for w in last)


def calendar_query(
    store: Store,
    owner_id: str,
    start: date,
    end: date,
    strict: bool = False,
) -> CalendarFeed:
    """Calendar feed for ``[start, end]``. Raises InvalidRange."""
    validate_range(start, end)

    fetch_start, fetch_end = _covering_range(start, end)
    recurring = store.list_recurring_tasks(owner_id)
    logs = store.list_logs(owner_id, start=fetch_start, end=fetch_end)
    todos = store.list_one_time_tasks(owner_id, start, end)

    feed = assemble(owner_id, start, end, logs, todos, recurring, strict=strict)
    if feed.errors:
        logger.warning(f"Calendar for {owner_id} skipped {len(feed.errors)} record(s)")
    return feed


def dashboard_query(
    store: Store,
    owner_id: str,
    reference_date: date,
    strict: bool = False,
) -> DashboardSnapshot:
    """Daily, weekly and monthly progress as of ``reference_date``."""
    fetch_start, fetch_end = _covering_range(reference_date, reference_date)
    recurring = store.list_recurring_tasks(owner_id)
    logs = store.list_logs(owner_id, start=fetch_start, end=fetch_end)
    return summarize(owner_id, reference_date, recurring, logs, strict=strict)


def _find_task(store: Store, owner_id: str, task_id: str) -> RecurringTask:
    for task in store.list_recurring_tasks(owner_id):
        if task.id == task_id:
            return task
    raise OrphanLog(task_id)


def _window_progress(
    store: Store,
    owner_id: str,
    task: RecurringTask,
    window_date: date,
) -> PeriodProgress:
    rule = task.rule()
    window = period_window_for(rule, window_date)
    logs = store.list_logs(owner_id, task_id=task.id, start=window.start, end=window.end)
    return aggregate(rule, logs, window, task.id, task.title)


def record_completion(
    store: Store,
    owner_id: str,
    task_id: str,
    log_date: date,
    completed: bool = True,
    count: int = 1,
    note: str | None = None,
) -> PeriodProgress:
    """
    Upsert the day's log and return progress for the window containing it.

    Raises OrphanLog for an unknown task, InvalidRuleShape if the task's rule
    cannot be evaluated and ValueError for ``count < 1``.
    """
    if count < 1:
        raise ValueError(f"count must be >= 1, got {count}")

    task = _find_task(store, owner_id, task_id)
    # A task with a broken rule never gains logs
    task.rule()

    store.upsert_log(owner_id, task_id, log_date, completed=completed, count=count, note=note)
    return _window_progress(store, owner_id, task, log_date)


def undo_completion(
    store: Store,
    owner_id: str,
    task_id: str,
    log_date: date,
) -> PeriodProgress:
    """Remove the day's log and return the recomputed window progress."""
    task = _find_task(store, owner_id, task_id)
    task.rule()
    if not store.delete_log(owner_id, task_id, log_date):
        logger.info(f"No log for {task_id} on {log_date} to remove")
    return _window_progress(store, owner_id, task, log_date)
