"""Clock adapters."""

from datetime import date, datetime
from zoneinfo import ZoneInfo


class SystemClock:
    """
    Wall-clock date in a given timezone.

    Implements Clock protocol.
    """

    def today(self, timezone: str) -> date:
        return datetime.now(ZoneInfo(timezone)).date()


class FixedClock:
    """
    Clock pinned to a single date, for tests and backfills.

    Implements Clock protocol.
    """

    def __init__(self, fixed: date):
        self.fixed = fixed

    def today(self, timezone: str) -> date:
        return self.fixed
