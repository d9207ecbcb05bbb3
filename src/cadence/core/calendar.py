"""Unified calendar feed assembly - no I/O dependencies."""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, Iterator

from .errors import InvalidRange, InvalidRuleShape, OrphanLog, TaskError
from .models import CompletionLog, OneTimeTask, PeriodProgress, RecurringTask
from .rules import WeekdaySet, is_due, iter_windows, period_kind
from .tally import aggregate

logger = logging.getLogger(__name__)


class EntryKind(Enum):
    """What produced a calendar entry."""

    RECURRING = "recurring-completion"
    ONE_TIME = "one-time-task"


@dataclass
class CalendarEntry:
    """A single dated item in the calendar feed. Derived, never stored."""

    date: date
    kind: EntryKind
    owner_id: str
    task_id: str
    title: str
    category: str = ""
    completed: bool = False
    count: int = 0
    note: str | None = None
    implicit: bool = False
    period_key: str | None = None
    period_completed: int | None = None
    period_target: int | None = None

    @property
    def sort_key(self) -> tuple:
        # Recurring entries before one-time entries on the same day
        kind_rank = 0 if self.kind is EntryKind.RECURRING else 1
        return (self.date, kind_rank, self.title.casefold(), self.task_id)

    def to_dict(self) -> dict:
        data = {
            "date": self.date.isoformat(),
            "kind": self.kind.value,
            "task_id": self.task_id,
            "title": self.title,
            "category": self.category,
            "completed": self.completed,
        }
        if self.kind is EntryKind.RECURRING:
            data.update(count=self.count, note=self.note, implicit=self.implicit)
        if self.period_key is not None:
            data.update(
                period_key=self.period_key,
                period_completed=self.period_completed,
                period_target=self.period_target,
            )
        return data


@dataclass
class CalendarFeed:
    """Sorted calendar entries plus the records that had to be skipped."""

    entries: list[CalendarEntry] = field(default_factory=list)
    errors: list[TaskError] = field(default_factory=list)

    def __iter__(self) -> Iterator[CalendarEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index):
        return self.entries[index]


def validate_range(start: date, end: date) -> None:
    """Raise InvalidRange unless ``start <= end`` and both are dates."""
    if not isinstance(start, date) or not isinstance(end, date):
        raise InvalidRange(start, end, "bounds must be dates")
    if end < start:
        raise InvalidRange(start, end)


def dedupe_logs(logs: Iterable[CompletionLog]) -> list[CompletionLog]:
    """Collapse logs sharing a (task, date) key to the most recently created."""
    latest: dict[tuple[str, date], CompletionLog] = {}
    for log in logs:
        existing = latest.get(log.key)
        if existing is None or log.created_at >= existing.created_at:
            latest[log.key] = log
    return list(latest.values())


def split_orphans(
    logs: Iterable[CompletionLog],
    known_task_ids: set[str],
) -> tuple[list[CompletionLog], list[TaskError]]:
    """Separate logs whose task is known from orphans, reported as errors."""
    valid = []
    errors = []
    for log in logs:
        if log.task_id in known_task_ids:
            valid.append(log)
            continue
        error = OrphanLog(log.task_id, log.id)
        logger.warning(f"Skipping {error}")
        errors.append(TaskError.from_exception(error, log.task_id, log.date))
    return valid, errors


def _recurring_entry(
    owner_id: str,
    task: RecurringTask,
    d: date,
    log: CompletionLog | None,
    progress: PeriodProgress | None = None,
) -> CalendarEntry:
    return CalendarEntry(
        date=d,
        kind=EntryKind.RECURRING,
        owner_id=owner_id,
        task_id=task.id,
        title=task.title,
        category=task.category,
        completed=log.completed if log else False,
        count=log.count if log else 0,
        note=log.note if log else None,
        implicit=log is None,
        period_key=progress.period_key if progress else None,
        period_completed=progress.completed if progress else None,
        period_target=progress.target if progress else None,
    )


def _one_time_entry(owner_id: str, todo: OneTimeTask) -> CalendarEntry:
    return CalendarEntry(
        date=todo.due_date,
        kind=EntryKind.ONE_TIME,
        owner_id=owner_id,
        task_id=todo.id,
        title=todo.title,
        category=todo.category,
        completed=todo.completed,
    )


def assemble(
    owner_id: str,
    start_date: date,
    end_date: date,
    logs: Iterable[CompletionLog],
    one_time_tasks: Iterable[OneTimeTask],
    recurring_tasks: Iterable[RecurringTask],
    strict: bool = False,
) -> CalendarFeed:
    """
    Merge recurring obligations, completions and one-time tasks into one feed.

    Weekday-set tasks get one entry per due date in range, carrying that
    day's log or an implicit not-completed entry. Weekly and monthly tasks
    get one entry per logged date in range, annotated with the progress of
    the window containing it; pass logs covering those whole windows for
    accurate period totals. One-time tasks appear on their due date.

    Tasks with invalid rules and orphan logs are skipped and reported in
    ``feed.errors``. Output is sorted by date, then recurring before
    one-time, then title. Pure function - no I/O.
    """
    validate_range(start_date, end_date)

    recurring_tasks = list(recurring_tasks)
    valid_logs, errors = split_orphans(dedupe_logs(logs), {t.id for t in recurring_tasks})

    logs_by_task: dict[str, dict[date, CompletionLog]] = {}
    for log in valid_logs:
        logs_by_task.setdefault(log.task_id, {})[log.date] = log

    days = [start_date + timedelta(days=i) for i in range((end_date - start_date).days + 1)]
    entries: list[CalendarEntry] = []

    for task in recurring_tasks:
        if not task.active:
            continue
        try:
            rule = task.rule()
        except InvalidRuleShape as e:
            logger.warning(f"Skipping task in calendar: {e}")
            errors.append(TaskError.from_exception(e, task.id))
            continue

        task_logs = logs_by_task.get(task.id, {})

        if isinstance(rule, WeekdaySet):
            for d in days:
                if is_due(rule, d):
                    entries.append(_recurring_entry(owner_id, task, d, task_logs.get(d)))
            continue

        for window in iter_windows(period_kind(rule), start_date, end_date, strict=strict):
            progress = aggregate(rule, task_logs.values(), window, task.id, task.title)
            for d in sorted(task_logs):
                if window.contains(d) and start_date <= d <= end_date:
                    entries.append(_recurring_entry(owner_id, task, d, task_logs[d], progress))

    for todo in one_time_tasks:
        if todo.due_date is not None and start_date <= todo.due_date <= end_date:
            entries.append(_one_time_entry(owner_id, todo))

    seen: set[tuple] = set()
    unique = []
    for entry in sorted(entries, key=lambda e: e.sort_key):
        key = (entry.kind, entry.task_id, entry.date)
        if key in seen:
            continue
        seen.add(key)
        unique.append(entry)

    return CalendarFeed(entries=unique, errors=errors)
