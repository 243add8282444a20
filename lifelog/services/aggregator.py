"""
Period Aggregator — groups dated records into week / month windows.

Year scans
----------
A year scan covers every window whose start OR end falls in that year, so a
week straddling Dec/Jan is produced whole by both the old-year and the
new-year scan. merge_aggregates() collapses such repeats by window key
(start, end): the first entry wins and later record ids are merged into it.

Public API
----------
aggregate_by_week(records, year)                   -> list[PeriodAggregate]
aggregate_by_month(records, year)                  -> list[PeriodAggregate]
merge_aggregates(scans, newest_first=False)        -> list[PeriodAggregate]
enrich_with_summaries(db, user_id, kind, aggs)     -> list[PeriodAggregate]
collect_weeks(db, user_id, source, from, to)       -> list[PeriodAggregate]
collect_months(db, user_id, source, year)          -> list[PeriodAggregate]
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lifelog.models.period_summary import SummaryKind
from lifelog.services.boundaries import (
    PeriodWindow,
    month_window_of,
    week_end,
    week_start,
    week_window,
)
from lifelog.services.records import list_record_days
from lifelog.services.summary_generator import GenerationTracker, get_summary

logger = logging.getLogger(__name__)

# (record id, record day)
DatedRecord = tuple[int, date]


@dataclass
class PeriodAggregate:
    window: PeriodWindow
    source_record_ids: list[int] = field(default_factory=list)
    has_summary: bool = False
    summary_content: Optional[str] = None
    is_generating: bool = False

    @property
    def source_count(self) -> int:
        return len(self.source_record_ids)


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------

def _group(
    records: Iterable[DatedRecord],
    window_of: Callable[[date], PeriodWindow],
    in_scan: Callable[[PeriodWindow], bool],
) -> list[PeriodAggregate]:
    by_key: dict[tuple[date, date], PeriodAggregate] = {}
    for record_id, day in records:
        window = window_of(day)
        if not in_scan(window):
            continue
        agg = by_key.get(window.key)
        if agg is None:
            agg = by_key[window.key] = PeriodAggregate(window=window)
        if record_id not in agg.source_record_ids:
            agg.source_record_ids.append(record_id)
    return sorted(by_key.values(), key=lambda a: a.window.start)


def aggregate_by_week(records: Iterable[DatedRecord], year: int) -> list[PeriodAggregate]:
    return _group(
        records,
        week_window,
        lambda w: w.start.year == year or w.end.year == year,
    )


def aggregate_by_month(records: Iterable[DatedRecord], year: int) -> list[PeriodAggregate]:
    return _group(records, month_window_of, lambda w: w.year == year)


def merge_aggregates(
    scans: Iterable[Iterable[PeriodAggregate]],
    newest_first: bool = False,
) -> list[PeriodAggregate]:
    merged: dict[tuple[date, date], PeriodAggregate] = {}
    for scan in scans:
        for agg in scan:
            seen = merged.get(agg.window.key)
            if seen is None:
                merged[agg.window.key] = agg
                continue
            for record_id in agg.source_record_ids:
                if record_id not in seen.source_record_ids:
                    seen.source_record_ids.append(record_id)
    return sorted(merged.values(), key=lambda a: a.window.start, reverse=newest_first)


# ---------------------------------------------------------------------------
# Summary status
# ---------------------------------------------------------------------------

def enrich_with_summaries(
    db: Session,
    user_id: str,
    kind: SummaryKind,
    aggregates: list[PeriodAggregate],
    tracker: Optional[GenerationTracker] = None,
) -> list[PeriodAggregate]:
    """
    Look up each window's summary independently. A failed lookup marks only
    that window as unsummarized.
    """
    for agg in aggregates:
        try:
            summary = get_summary(db, user_id, kind, agg.window)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning(
                "Summary lookup failed for %s %s (user %s): %s",
                kind.value, agg.window.describe(), user_id, exc,
            )
            summary = None
        agg.has_summary = summary is not None
        agg.summary_content = summary.content if summary is not None else None
        if tracker is not None:
            agg.is_generating = tracker.is_generating(user_id, kind, agg.window)
    return aggregates


# ---------------------------------------------------------------------------
# Selector lists
# ---------------------------------------------------------------------------

def collect_weeks(
    db: Session,
    user_id: str,
    source: str,
    from_year: int,
    to_year: int,
    newest_first: bool = True,
    tracker: Optional[GenerationTracker] = None,
) -> list[PeriodAggregate]:
    """Weeks with at least one record across [from_year, to_year], deduplicated."""
    scans = []
    for year in range(from_year, to_year + 1):
        days = list_record_days(
            db, user_id, source,
            week_start(date(year, 1, 1)),
            week_end(date(year, 12, 31)),
        )
        scans.append(aggregate_by_week(days, year))
    merged = merge_aggregates(scans, newest_first=newest_first)
    return enrich_with_summaries(db, user_id, SummaryKind(f"weekly_{source}"), merged, tracker)


def collect_months(
    db: Session,
    user_id: str,
    source: str,
    year: int,
    newest_first: bool = True,
    tracker: Optional[GenerationTracker] = None,
) -> list[PeriodAggregate]:
    days = list_record_days(db, user_id, source, date(year, 1, 1), date(year, 12, 31))
    months = merge_aggregates([aggregate_by_month(days, year)], newest_first=newest_first)
    return enrich_with_summaries(db, user_id, SummaryKind(f"monthly_{source}"), months, tracker)
