"""Fold completion logs into period progress - no I/O dependencies."""

from typing import Iterable

from .models import CompletionLog, PeriodProgress
from .rules import PeriodWindow, Rule, is_tally, target_for


def logs_in_window(
    logs: Iterable[CompletionLog],
    window: PeriodWindow,
    task_id: str | None = None,
) -> list[CompletionLog]:
    """Logs dated inside the window (inclusive), optionally for one task."""
    return [
        log
        for log in logs
        if window.contains(log.date) and (task_id is None or log.task_id == task_id)
    ]


def aggregate(
    rule: Rule,
    logs: Iterable[CompletionLog],
    window: PeriodWindow,
    task_id: str | None = None,
    title: str = "",
) -> PeriodProgress:
    """
    Compute completed-vs-target progress for one task in one window.

    Tally rules sum ``count`` over every log in the window, unclamped,
    against the rule's target. Checklist and weekday rules score 1 if any
    log in the window is completed, against a target of 1.

    Pure function - the window is supplied by the caller.
    """
    in_window = logs_in_window(logs, window, task_id)

    if is_tally(rule):
        completed = sum(log.count for log in in_window)
    else:
        completed = 1 if any(log.completed for log in in_window) else 0

    return PeriodProgress(
        window=window,
        completed=completed,
        target=target_for(rule),
        task_id=task_id,
        title=title,
    )
