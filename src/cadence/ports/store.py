"""Combined store interface."""

from typing import Protocol

from .log_store import LogStore
from .task_store import TaskStore


class Store(TaskStore, LogStore, Protocol):
    """A backend serving both tasks and completion logs."""
