"""
Reports router — weekly / monthly summaries of diaries and completed work.

GET  /reports/weeks     — week selector (newest first) with summary status
GET  /reports/months    — month selector for one year
POST /reports/weekly    — generate (or return) the summary of a past week
POST /reports/monthly   — generate (or return) the summary of a past month
GET  /reports/summary   — read one stored summary
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from lifelog.core.clock import Clock, get_clock
from lifelog.core.deps import get_current_user_id
from lifelog.core.errors import SummaryNotFoundError
from lifelog.db.base import get_db
from lifelog.models.period_summary import PeriodSummary, SummaryKind
from lifelog.schemas.reports import (
    MonthlyReportRequest,
    PeriodAggregateOut,
    PeriodListResponse,
    Source,
    SummaryResponse,
    WeeklyReportRequest,
    WindowOut,
)
from lifelog.services.aggregator import PeriodAggregate, collect_months, collect_weeks
from lifelog.services.boundaries import PeriodWindow, month_window, week_window
from lifelog.services.summarizer import Summarizer, get_summarizer
from lifelog.services.summary_generator import (
    GenerationTracker,
    generate_for_window,
    get_generation_tracker,
    get_summary,
)

router = APIRouter(prefix="/reports", tags=["reports"])

_GENERATION_RESPONSES = {
    200: {"description": "Summary created, regenerated, or already present."},
    409: {"description": "A summary for this window is already being generated."},
    422: {"description": "Window has not fully elapsed, or has no records."},
    502: {"description": "Summarization provider failed; nothing was saved."},
    503: {"description": "Summary was generated but could not be saved."},
}


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _window_out(window: PeriodWindow) -> WindowOut:
    return WindowOut(start=window.start, end=window.end, year=window.year, label=window.describe())


def _aggregate_out(agg: PeriodAggregate) -> PeriodAggregateOut:
    return PeriodAggregateOut(
        window=_window_out(agg.window),
        source_count=agg.source_count,
        source_record_ids=agg.source_record_ids,
        has_summary=agg.has_summary,
        summary_content=agg.summary_content,
        is_generating=agg.is_generating,
    )


def _summary_out(summary: PeriodSummary, status: Optional[str] = None) -> SummaryResponse:
    return SummaryResponse(
        id=summary.id,
        kind=summary.kind,
        period_start=summary.period_start,
        period_end=summary.period_end,
        content=summary.content,
        source_count=summary.source_count,
        status=status,
    )


# ---------------------------------------------------------------------------
# Selectors
# ---------------------------------------------------------------------------

@router.get("/weeks", response_model=PeriodListResponse, summary="Weeks with records")
def list_weeks(
    source: Source = Query(default="work"),
    from_year: Optional[int] = Query(default=None, ge=1970, le=9999),
    to_year: Optional[int] = Query(default=None, ge=1970, le=9999),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    tracker: GenerationTracker = Depends(get_generation_tracker),
):
    """
    Every week holding at least one record, newest first. A week straddling
    the new year appears exactly once.
    """
    this_year = clock.today().year
    first = from_year or this_year
    last = to_year or this_year
    weeks = collect_weeks(db, user_id, source, min(first, last), max(first, last), tracker=tracker)
    return PeriodListResponse(source=source, items=[_aggregate_out(w) for w in weeks])


@router.get("/months", response_model=PeriodListResponse, summary="Months with records")
def list_months(
    source: Source = Query(default="work"),
    year: Optional[int] = Query(default=None, ge=1970, le=9999),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    tracker: GenerationTracker = Depends(get_generation_tracker),
):
    months = collect_months(db, user_id, source, year or clock.today().year, tracker=tracker)
    return PeriodListResponse(source=source, items=[_aggregate_out(m) for m in months])


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

@router.post(
    "/weekly",
    response_model=SummaryResponse,
    summary="Generate a weekly summary",
    responses=_GENERATION_RESPONSES,
)
async def post_weekly(
    payload: WeeklyReportRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    summarizer: Summarizer = Depends(get_summarizer),
    tracker: GenerationTracker = Depends(get_generation_tracker),
):
    """
    Summarize the Sunday-aligned week containing `week_start`. An existing
    summary is returned unchanged unless `confirm_regenerate` is true.
    """
    result = await generate_for_window(
        db, user_id,
        SummaryKind(f"weekly_{payload.source}"),
        week_window(payload.week_start),
        summarizer,
        clock.today(),
        confirm_regenerate=payload.confirm_regenerate,
        tracker=tracker,
    )
    return _summary_out(result.summary, result.status)


@router.post(
    "/monthly",
    response_model=SummaryResponse,
    summary="Generate a monthly summary",
    responses=_GENERATION_RESPONSES,
)
async def post_monthly(
    payload: MonthlyReportRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    summarizer: Summarizer = Depends(get_summarizer),
    tracker: GenerationTracker = Depends(get_generation_tracker),
):
    result = await generate_for_window(
        db, user_id,
        SummaryKind(f"monthly_{payload.source}"),
        month_window(payload.year, payload.month),
        summarizer,
        clock.today(),
        confirm_regenerate=payload.confirm_regenerate,
        tracker=tracker,
    )
    return _summary_out(result.summary, result.status)


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------

@router.get(
    "/summary",
    response_model=SummaryResponse,
    summary="Read a stored summary",
    responses={404: {"description": "No summary for this window."}},
)
def read_summary(
    kind: SummaryKind = Query(...),
    start: date = Query(..., description="Any date inside the period."),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    window = week_window(start) if kind.period == "weekly" else month_window(start.year, start.month)
    summary = get_summary(db, user_id, kind, window)
    if summary is None:
        raise SummaryNotFoundError(kind.value, window.start, window.end)
    return _summary_out(summary)
