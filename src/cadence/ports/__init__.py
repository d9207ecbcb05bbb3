"""Ports - interfaces/protocols for external dependencies."""

from .task_store import TaskStore
from .log_store import LogStore
from .store import Store
from .clock import Clock

__all__ = [
    "TaskStore",
    "LogStore",
    "Store",
    "Clock",
]
