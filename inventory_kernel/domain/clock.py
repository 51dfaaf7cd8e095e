"""
Clock -- injectable time source.

Responsibility:
    Services never call ``datetime.now()`` directly.  Movement ``occurred_at``
    stamps, posting timestamps and report generation times all come from a
    Clock passed in at construction.

Architecture position:
    Kernel > Domain -- zero I/O, except SystemClock.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """
    Abstract clock interface.

    Guarantees:
        ``now()`` returns a timezone-aware UTC ``datetime``.
    """

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    """Production clock returning the current UTC time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock.  ``now()`` stays put until ``advance()`` moves it, so ledger
    ordering in tests is explicit.
    """

    DEFAULT_START = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __init__(self, start: datetime | None = None):
        self._now = start or self.DEFAULT_START

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: int = 1) -> None:
        self._now += timedelta(seconds=seconds)
