"""
Single source of "today" for every date comparison in the engine.

SystemClock reads the wall clock in the configured timezone; FixedClock is
injected by tests (and by the API through a dependency override) so
day-of-week / day-of-month triggers are deterministic.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Protocol
from zoneinfo import ZoneInfo

from lifelog.core.config import settings


class Clock(Protocol):
    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    def __init__(self, tz_name: str | None = None):
        self.tz = ZoneInfo(tz_name or settings.TIMEZONE)

    def now(self) -> datetime:
        return datetime.now(tz=self.tz)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    def __init__(self, today: date):
        self._today = today

    def now(self) -> datetime:
        return datetime(self._today.year, self._today.month, self._today.day, 12, 0)

    def today(self) -> date:
        return self._today

    def advance(self, days: int = 1) -> None:
        self._today = date.fromordinal(self._today.toordinal() + days)


def get_clock() -> Clock:
    """FastAPI dependency. Overridden in tests."""
    return SystemClock()
