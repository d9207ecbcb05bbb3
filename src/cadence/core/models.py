"""Persisted records and derived progress - no I/O dependencies."""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from .rules import PeriodWindow, Rule, parse_rule


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    return date.fromisoformat(value[:10])


def _parse_datetime(value: str | None) -> datetime:
    if not value:
        return _utcnow()
    return datetime.fromisoformat(value)


@dataclass
class RecurringTask:
    """A recurring task definition owned by one user.

    ``recurrence`` holds the raw configuration as stored; ``rule()`` turns it
    into one of the closed recurrence variants.
    """

    id: str
    owner_id: str
    title: str
    recurrence: dict
    target_count: int | None = None
    category: str = ""
    description: str = ""
    active: bool = True
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def rule(self) -> Rule:
        """Parse the recurrence configuration. Raises InvalidRuleShape."""
        return parse_rule(self.recurrence, self.target_count, task_id=self.id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "title": self.title,
            "recurrence": self.recurrence,
            "target_count": self.target_count,
            "category": self.category,
            "description": self.description,
            "active": self.active,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RecurringTask":
        return cls(
            id=data["id"],
            owner_id=data["owner_id"],
            title=data["title"],
            recurrence=data.get("recurrence") or {},
            target_count=data.get("target_count"),
            category=data.get("category", ""),
            description=data.get("description", ""),
            active=data.get("active", True),
            created_at=_parse_datetime(data.get("created_at")),
            updated_at=_parse_datetime(data.get("updated_at")),
        )


@dataclass
class CompletionLog:
    """One day's completion record for a recurring task."""

    id: str
    task_id: str
    owner_id: str
    date: date
    completed: bool = True
    count: int = 1
    note: str | None = None
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        if self.count < 1:
            raise ValueError(f"count must be >= 1, got {self.count}")

    @property
    def key(self) -> tuple[str, date]:
        """Uniqueness key: one log per task per day."""
        return (self.task_id, self.date)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "owner_id": self.owner_id,
            "date": self.date.isoformat(),
            "completed": self.completed,
            "count": self.count,
            "note": self.note,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CompletionLog":
        return cls(
            id=data["id"],
            task_id=data["task_id"],
            owner_id=data["owner_id"],
            date=date.fromisoformat(data["date"]),
            completed=data.get("completed", True),
            count=data.get("count", 1),
            note=data.get("note"),
            created_at=_parse_datetime(data.get("created_at")),
        )


@dataclass
class OneTimeTask:
    """A to-do with an optional due date."""

    id: str
    owner_id: str
    title: str
    due_date: date | None = None
    completed: bool = False
    category: str = ""
    description: str = ""
    # Set only after a successful external calendar call-out
    calendar_added: bool = False
    calendar_event_id: str | None = None
    created_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "title": self.title,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "completed": self.completed,
            "category": self.category,
            "description": self.description,
            "calendar_added": self.calendar_added,
            "calendar_event_id": self.calendar_event_id,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "OneTimeTask":
        return cls(
            id=data["id"],
            owner_id=data["owner_id"],
            title=data["title"],
            due_date=_parse_date(data.get("due_date")),
            completed=data.get("completed", False),
            category=data.get("category", ""),
            description=data.get("description", ""),
            calendar_added=data.get("calendar_added", False),
            calendar_event_id=data.get("calendar_event_id"),
            created_at=_parse_datetime(data.get("created_at")),
        )


@dataclass
class PeriodProgress:
    """Completed-vs-target progress of one task in one period window."""

    window: PeriodWindow
    completed: int
    target: int
    task_id: str | None = None
    title: str = ""

    @property
    def period_key(self) -> str:
        return self.window.key

    @property
    def is_met(self) -> bool:
        return self.completed >= self.target

    @property
    def remaining(self) -> int:
        return max(0, self.target - self.completed)

    @property
    def percent(self) -> int:
        """Progress percentage, capped at 100 for display."""
        if self.target <= 0:
            return 100
        return min(100, int(self.completed * 100 / self.target))
