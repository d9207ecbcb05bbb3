"""Functional core - pure business logic with no I/O."""

from .errors import (
    CadenceError,
    InvalidRange,
    InvalidRuleShape,
    OrphanLog,
    OverlapViolation,
    TaskError,
)
from .models import CompletionLog, OneTimeTask, PeriodProgress, RecurringTask
from .rules import (
    MonthlyChecklist,
    MonthlyTarget,
    PeriodKind,
    PeriodWindow,
    Rule,
    WeekdaySet,
    WeeklyChecklist,
    WeeklyTarget,
    is_due,
    iter_windows,
    parse_rule,
    period_window_for,
)
from .tally import aggregate
from .calendar import CalendarEntry, CalendarFeed, EntryKind, assemble
from .summary import DailyItem, DashboardSnapshot, summarize

__all__ = [
    # Errors
    "CadenceError",
    "InvalidRange",
    "InvalidRuleShape",
    "OrphanLog",
    "OverlapViolation",
    "TaskError",
    # Records
    "CompletionLog",
    "OneTimeTask",
    "PeriodProgress",
    "RecurringTask",
    # Rules
    "MonthlyChecklist",
    "MonthlyTarget",
    "PeriodKind",
    "PeriodWindow",
    "Rule",
    "WeekdaySet",
    "WeeklyChecklist",
    "WeeklyTarget",
    "is_due",
    "iter_windows",
    "parse_rule",
    "period_window_for",
    # Tally
    "aggregate",
    # Calendar
    "CalendarEntry",
    "CalendarFeed",
    "EntryKind",
    "assemble",
    # Dashboard
    "DailyItem",
    "DashboardSnapshot",
    "summarize",
]
