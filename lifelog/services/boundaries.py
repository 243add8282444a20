"""
Boundary calculator: week / month windows and trigger-day predicates.

Pure functions, no I/O, no wall clock. Callers pass `today` obtained from
lifelog.core.clock so every comparison shares one injectable source.

Weeks are Sunday-aligned: start = the Sunday on or before the date,
end = start + 6 (the Saturday). Every date belongs to exactly one week.

Public API
----------
week_start(d) / week_end(d)            -> date
week_window(d)                          -> PeriodWindow
month_window(year, month)               -> PeriodWindow
month_window_of(d)                      -> PeriodWindow
is_past_window(window, today)           -> bool
is_trigger_day(kind, today)             -> bool
last_elapsed_week(today)                -> PeriodWindow
last_elapsed_month(today)               -> PeriodWindow
day_of_year(d)                          -> int
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta

from lifelog.models.reminder_shown import ReminderKind


# ---------------------------------------------------------------------------
# Window type
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PeriodWindow:
    start: date
    end: date
    year: int   # calendar year of `start`

    @property
    def key(self) -> tuple[date, date]:
        """Window identity used for dedup and per-window state."""
        return (self.start, self.end)

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, d: date) -> bool:
        return self.start <= d <= self.end

    def describe(self) -> str:
        if self.start.day == 1 and self.end == _last_day_of_month(self.start.year, self.start.month):
            return f"{self.start.year}-{self.start.month:02d}"
        return f"{self.start} ~ {self.end}"


def _window(start: date, end: date) -> PeriodWindow:
    return PeriodWindow(start=start, end=end, year=start.year)


def _last_day_of_month(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


# ---------------------------------------------------------------------------
# Weeks
# ---------------------------------------------------------------------------

def week_start(d: date) -> date:
    """The Sunday on or before `d` (date.weekday(): Monday=0 … Sunday=6)."""
    return d - timedelta(days=(d.weekday() + 1) % 7)


def week_end(d: date) -> date:
    return week_start(d) + timedelta(days=6)


def week_window(d: date) -> PeriodWindow:
    return _window(week_start(d), week_end(d))


def last_elapsed_week(today: date) -> PeriodWindow:
    """The full week immediately before the week containing `today`."""
    return week_window(week_start(today) - timedelta(days=1))


# ---------------------------------------------------------------------------
# Months
# ---------------------------------------------------------------------------

def month_window(year: int, month: int) -> PeriodWindow:
    return _window(date(year, month, 1), _last_day_of_month(year, month))


def month_window_of(d: date) -> PeriodWindow:
    return month_window(d.year, d.month)


def last_elapsed_month(today: date) -> PeriodWindow:
    return month_window_of(today.replace(day=1) - timedelta(days=1))


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def is_past_window(window: PeriodWindow, today: date) -> bool:
    """True iff the window ended strictly before today (its data is complete)."""
    return window.end < today


def is_trigger_day(kind: ReminderKind, today: date) -> bool:
    if kind == ReminderKind.weekly_summary_due:
        return today.weekday() == 0  # Monday
    if kind == ReminderKind.monthly_summary_due:
        return today.day == 1
    return True


def day_of_year(d: date) -> int:
    return d.timetuple().tm_yday
