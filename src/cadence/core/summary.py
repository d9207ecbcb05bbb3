"""Dashboard snapshot assembly - no I/O dependencies."""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from .calendar import dedupe_logs, split_orphans
from .errors import InvalidRuleShape, OverlapViolation, TaskError
from .models import CompletionLog, PeriodProgress, RecurringTask
from .rules import PeriodKind, WeekdaySet, is_due, period_kind, period_window_for
from .tally import aggregate

logger = logging.getLogger(__name__)


@dataclass
class DailyItem:
    """A weekday-set task due on the reference date.

    ``logged`` is true when any log exists for the day; ``done`` only when
    that log is marked completed.
    """

    task_id: str
    title: str
    done: bool
    category: str = ""
    count: int = 0
    note: str | None = None
    logged: bool = False


@dataclass
class DashboardSnapshot:
    """Daily, weekly and monthly progress for one user on one date."""

    owner_id: str
    reference_date: date
    daily: list[DailyItem] = field(default_factory=list)
    weekly: list[PeriodProgress] = field(default_factory=list)
    monthly: list[PeriodProgress] = field(default_factory=list)
    errors: list[TaskError] = field(default_factory=list)

    @property
    def daily_done(self) -> int:
        return sum(1 for item in self.daily if item.done)

    @property
    def daily_total(self) -> int:
        return len(self.daily)

    @property
    def weekly_met(self) -> int:
        return sum(1 for p in self.weekly if p.is_met)

    @property
    def monthly_met(self) -> int:
        return sum(1 for p in self.monthly if p.is_met)


def summarize(
    owner_id: str,
    reference_date: date,
    recurring_tasks: Iterable[RecurringTask],
    logs: Iterable[CompletionLog],
    strict: bool = False,
) -> DashboardSnapshot:
    """
    Build the dashboard snapshot for ``reference_date``.

    A task whose rule cannot be evaluated is reported in ``errors`` and left
    out of every list and total; the remaining tasks are still summarized.
    Pure function - the reference date comes from the caller.
    """
    recurring_tasks = list(recurring_tasks)
    valid_logs, errors = split_orphans(dedupe_logs(logs), {t.id for t in recurring_tasks})
    snapshot = DashboardSnapshot(owner_id=owner_id, reference_date=reference_date, errors=errors)

    for task in sorted(recurring_tasks, key=lambda t: (t.title.casefold(), t.id)):
        if not task.active:
            continue
        try:
            rule = task.rule()
        except InvalidRuleShape as e:
            logger.warning(f"Excluding task from dashboard: {e}")
            snapshot.errors.append(TaskError.from_exception(e, task.id))
            continue

        task_logs = [log for log in valid_logs if log.task_id == task.id]

        if isinstance(rule, WeekdaySet):
            if not is_due(rule, reference_date):
                continue
            log = next((log for log in task_logs if log.date == reference_date), None)
            snapshot.daily.append(
                DailyItem(
                    task_id=task.id,
                    title=task.title,
                    done=bool(log and log.completed),
                    category=task.category,
                    count=log.count if log else 0,
                    note=log.note if log else None,
                    logged=log is not None,
                )
            )
            continue

        window = period_window_for(rule, reference_date)
        if not window.contains(reference_date):
            error = OverlapViolation(window, reference_date)
            if strict:
                raise error
            logger.error(f"Excluding task {task.id} from dashboard: {error}")
            continue

        progress = aggregate(rule, task_logs, window, task.id, task.title)
        if period_kind(rule) is PeriodKind.WEEK:
            snapshot.weekly.append(progress)
        else:
            snapshot.monthly.append(progress)

    return snapshot
