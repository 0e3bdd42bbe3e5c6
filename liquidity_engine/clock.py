"""
Clock abstraction.

Business rules never read the wall clock directly. They receive a Clock,
so cycle rollover and due-date logic can be driven deterministically.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta


class Clock(ABC):
    """Source of the current time."""

    @abstractmethod
    def now(self) -> datetime:
        pass

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Reads local wall-clock time."""

    def now(self) -> datetime:
        return datetime.now()


class FixedClock(Clock):
    """A clock that only moves when told to. Used by tests and replays."""

    def __init__(self, current: datetime):
        self._current = current

    def now(self) -> datetime:
        return self._current

    def set(self, current: datetime) -> None:
        self._current = current

    def advance(self, **kwargs) -> datetime:
        """Move forward by a timedelta built from kwargs (days=, hours=...)."""
        self._current = self._current + timedelta(**kwargs)
        return self._current
