"""Completion log store interface."""

from datetime import date
from typing import Protocol

from cadence.core.models import CompletionLog


class LogStore(Protocol):
    """Interface for reading and writing completion logs.

    ``upsert_log`` must be atomic on the (task_id, date) key: two writes for
    the same task and day leave exactly one record.
    """

    def list_logs(
        self,
        owner_id: str,
        task_id: str | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[CompletionLog]:
        """Logs for an owner, optionally filtered by task and inclusive date range."""
        ...

    def upsert_log(
        self,
        owner_id: str,
        task_id: str,
        log_date: date,
        completed: bool = True,
        count: int = 1,
        note: str | None = None,
    ) -> CompletionLog:
        """Create or replace the log for (task_id, log_date)."""
        ...

    def delete_log(self, owner_id: str, task_id: str, log_date: date) -> bool:
        """Remove the log for (task_id, log_date). Returns False if none existed."""
        ...
