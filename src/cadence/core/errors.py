"""Error kinds raised and reported by the engine."""

from dataclasses import dataclass
from datetime import date


class CadenceError(Exception):
    """Base class for engine errors."""

    kind = "error"


class InvalidRuleShape(CadenceError):
    """Recurrence configuration matches no known variant."""

    kind = "invalid_rule_shape"

    def __init__(self, reason: str, task_id: str | None = None):
        self.reason = reason
        self.task_id = task_id
        prefix = f"task {task_id}: " if task_id else ""
        super().__init__(f"{prefix}invalid recurrence rule: {reason}")


class OrphanLog(CadenceError):
    """A completion log references a task that is not in the task set."""

    kind = "orphan_log"

    def __init__(self, task_id: str, log_id: str | None = None):
        self.task_id = task_id
        self.log_id = log_id
        super().__init__(f"log {log_id or '?'} references unknown task {task_id}")


class InvalidRange(CadenceError):
    """End date precedes start date, or a bound is not a date."""

    kind = "invalid_range"

    def __init__(self, start, end, reason: str = "end date precedes start date"):
        self.start = start
        self.end = end
        super().__init__(f"invalid date range {start}..{end}: {reason}")


class OverlapViolation(CadenceError):
    """Computed period windows overlap or leave a gap. Always a bug."""

    kind = "overlap_violation"

    def __init__(self, first, second):
        self.first = first
        self.second = second
        super().__init__(f"period windows do not tile: {first} / {second}")


@dataclass
class TaskError:
    """A per-record failure reported alongside a partial result."""

    task_id: str
    kind: str
    message: str
    log_date: date | None = None

    @classmethod
    def from_exception(cls, exc: CadenceError, task_id: str, log_date: date | None = None) -> "TaskError":
        return cls(task_id=task_id, kind=exc.kind, message=str(exc), log_date=log_date)
