"""Clock interface."""

from datetime import date
from typing import Protocol


class Clock(Protocol):
    """Source of the current date, injected so period math stays testable."""

    def today(self, timezone: str) -> date:
        """Current date in the given IANA timezone."""
        ...
