"""Adapters - I/O implementations of ports."""

from .json_store import JsonFileStore, StoreError
from .clock import FixedClock, SystemClock

__all__ = [
    "JsonFileStore",
    "StoreError",
    "FixedClock",
    "SystemClock",
]
