"""Task store interface."""

from datetime import date
from typing import Protocol

from cadence.core.models import OneTimeTask, RecurringTask


class TaskStore(Protocol):
    """Interface for reading task definitions scoped to one owner."""

    def list_recurring_tasks(self, owner_id: str) -> list[RecurringTask]:
        """All recurring tasks, active or not."""
        ...

    def list_active_recurring_tasks(self, owner_id: str) -> list[RecurringTask]:
        """Recurring tasks with ``active`` set."""
        ...

    def list_one_time_tasks(
        self,
        owner_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> list[OneTimeTask]:
        """One-time tasks, limited to those due in ``[start, end]`` when given."""
        ...
