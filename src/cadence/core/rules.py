"""Recurrence rules and period windows - no I/O dependencies.

Weeks are ISO weeks and always start on Monday. Months are calendar months.
Day, week and month windows each tile the calendar with no gaps or overlaps.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum

from dateutil.relativedelta import relativedelta

from .errors import InvalidRuleShape, OverlapViolation

logger = logging.getLogger(__name__)

WEEKDAY_LABELS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")
_FULL_WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
_WEEKDAY_INDEX = {
    **{label: i for i, label in enumerate(WEEKDAY_LABELS)},
    **{name: i for i, name in enumerate(_FULL_WEEKDAY_NAMES)},
}


class PeriodKind(Enum):
    """Granularity of a period window."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True)
class PeriodWindow:
    """An inclusive date range a rule's tally is evaluated against."""

    kind: PeriodKind
    start: date
    end: date

    @property
    def key(self) -> str:
        """Stable identifier: 2025-01-15, 2025-W03 or 2025-01."""
        match self.kind:
            case PeriodKind.DAY:
                return self.start.isoformat()
            case PeriodKind.WEEK:
                iso = self.start.isocalendar()
                return f"{iso[0]}-W{iso[1]:02d}"
            case PeriodKind.MONTH:
                return f"{self.start.year}-{self.start.month:02d}"

    def contains(self, d: date) -> bool:
        return self.start <= d <= self.end

    def overlaps(self, other: "PeriodWindow") -> bool:
        return self.start <= other.end and other.start <= self.end

    def days(self) -> int:
        return (self.end - self.start).days + 1

    def __str__(self) -> str:
        return f"{self.key} ({self.start.isoformat()}..{self.end.isoformat()})"


# Recurrence variants


@dataclass(frozen=True)
class WeekdaySet:
    """Due on each listed weekday (0 = Monday)."""

    days: frozenset[int]

    def labels(self) -> list[str]:
        return [WEEKDAY_LABELS[d] for d in sorted(self.days)]


@dataclass(frozen=True)
class WeeklyChecklist:
    """Done once per week."""


@dataclass(frozen=True)
class WeeklyTarget:
    """Accumulate ``target`` completions per week."""

    target: int


@dataclass(frozen=True)
class MonthlyChecklist:
    """Done once per month."""


@dataclass(frozen=True)
class MonthlyTarget:
    """Accumulate ``target`` completions per month."""

    target: int


Rule = WeekdaySet | WeeklyChecklist | WeeklyTarget | MonthlyChecklist | MonthlyTarget


def _weekday_index(label, task_id: str | None) -> int:
    if not isinstance(label, str) or label.strip().lower() not in _WEEKDAY_INDEX:
        raise InvalidRuleShape(f"unknown weekday {label!r}", task_id)
    return _WEEKDAY_INDEX[label.strip().lower()]


def _validate_target(target_count, task_id: str | None) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(target_count, bool) or not isinstance(target_count, int):
        raise InvalidRuleShape(f"target_count must be an integer, got {target_count!r}", task_id)
    if target_count < 1:
        raise InvalidRuleShape(f"target_count must be >= 1, got {target_count}", task_id)
    return target_count


def parse_rule(raw, target_count: int | None = None, task_id: str | None = None) -> Rule:
    """
    Parse a stored recurrence configuration into a rule variant.

    Accepted shapes:
        {"frequency": "daily", "weekdays": ["mon", "wed", "fri"]}
        {"frequency": "weekly" | "monthly", "mode": "checklist" | "target"}

    ``target_count`` must be given for target modes and absent otherwise.
    Raises InvalidRuleShape for anything else.
    """
    if not isinstance(raw, dict):
        raise InvalidRuleShape(f"expected a mapping, got {type(raw).__name__}", task_id)

    frequency = raw.get("frequency")
    if not isinstance(frequency, str):
        raise InvalidRuleShape("missing frequency", task_id)

    match frequency.lower():
        case "daily":
            if target_count is not None:
                raise InvalidRuleShape("daily rules take no target_count", task_id)
            labels = raw.get("weekdays")
            if not isinstance(labels, (list, tuple)) or not labels:
                raise InvalidRuleShape("daily rules need a non-empty weekdays list", task_id)
            return WeekdaySet(frozenset(_weekday_index(label, task_id) for label in labels))
        case "weekly" | "monthly" as freq:
            mode = raw.get("mode")
            if mode == "checklist":
                if target_count is not None:
                    raise InvalidRuleShape(f"{freq} checklist takes no target_count", task_id)
                return WeeklyChecklist() if freq == "weekly" else MonthlyChecklist()
            if mode == "target":
                target = _validate_target(target_count, task_id)
                return WeeklyTarget(target) if freq == "weekly" else MonthlyTarget(target)
            raise InvalidRuleShape(f"unknown {freq} mode {mode!r}", task_id)
        case _:
            raise InvalidRuleShape(f"unknown frequency {frequency!r}", task_id)


def period_kind(rule: Rule) -> PeriodKind:
    """Window granularity governing a rule's tally."""
    match rule:
        case WeekdaySet():
            return PeriodKind.DAY
        case WeeklyChecklist() | WeeklyTarget():
            return PeriodKind.WEEK
        case MonthlyChecklist() | MonthlyTarget():
            return PeriodKind.MONTH
        case _:
            raise InvalidRuleShape(f"unsupported rule {rule!r}")


def is_tally(rule: Rule) -> bool:
    """True for target variants, whose progress is a count sum."""
    return isinstance(rule, (WeeklyTarget, MonthlyTarget))


def target_for(rule: Rule) -> int:
    match rule:
        case WeeklyTarget(target=target) | MonthlyTarget(target=target):
            return target
        case WeekdaySet() | WeeklyChecklist() | MonthlyChecklist():
            return 1
        case _:
            raise InvalidRuleShape(f"unsupported rule {rule!r}")


def is_due(rule: Rule, d: date) -> bool:
    """
    Whether the task can be completed toward its goal on ``d``.

    Weekday sets depend only on the weekday. Weekly and monthly rules are
    open for the whole of their window, so every date qualifies.

    Calendar assembly consults this only for weekday sets. Weekly and monthly
    tasks get an entry on each logged date instead, never one per due date.
    """
    match rule:
        case WeekdaySet(days=days):
            return d.weekday() in days
        case WeeklyChecklist() | WeeklyTarget() | MonthlyChecklist() | MonthlyTarget():
            return True
        case _:
            raise InvalidRuleShape(f"unsupported rule {rule!r}")


def window_containing(kind: PeriodKind, d: date) -> PeriodWindow:
    """The single window of ``kind`` that contains ``d``."""
    match kind:
        case PeriodKind.DAY:
            return PeriodWindow(kind, d, d)
        case PeriodKind.WEEK:
            start = d - timedelta(days=d.weekday())
            return PeriodWindow(kind, start, start + timedelta(days=6))
        case PeriodKind.MONTH:
            start = d.replace(day=1)
            return PeriodWindow(kind, start, start + relativedelta(months=1, days=-1))


def period_window_for(rule: Rule, d: date) -> PeriodWindow:
    """Window (day, ISO week or month) governing the rule's tally on ``d``."""
    return window_containing(period_kind(rule), d)


def iter_windows(
    kind: PeriodKind,
    start: date,
    end: date,
    strict: bool = False,
) -> list[PeriodWindow]:
    """
    Consecutive windows of ``kind`` covering ``[start, end]``.

    Each window must begin the day after the previous one ends. A violation
    raises OverlapViolation when ``strict``; otherwise it is logged and the
    offending window is skipped.
    """
    windows: list[PeriodWindow] = []
    current = window_containing(kind, start)
    while current.start <= end:
        if windows and current.start != windows[-1].end + timedelta(days=1):
            prev = windows[-1]
            error = OverlapViolation(prev, current)
            if strict:
                raise error
            logger.error(f"Skipping window: {error}")
            current = window_containing(kind, max(prev.end, current.end) + timedelta(days=1))
            continue
        windows.append(current)
        current = window_containing(kind, current.end + timedelta(days=1))
    return windows
