"""
Idempotent Summary Generator — one persisted AI summary per (user, kind, window).

Flow for generate_summary()
---------------------------
  1. Reject windows that have not fully elapsed  → WindowNotElapsedError
  2. Reject windows without source records       → EmptyWindowError
  3. Read the existing row for (user, kind, window)
       exists and not confirmed → return it unchanged, provider not called
       otherwise                → call the provider once
  4. Persist via INSERT … ON CONFLICT on the unique key
       first generation  → DO NOTHING, then re-read (a concurrent writer wins)
       confirmed regen   → DO UPDATE content in place

Failure semantics
-----------------
Provider error → ExternalCallFailedError, nothing written.
Store error after a successful call → PersistenceFailedError. The spent call
is not retried; re-invoking is safe because of the unique key.

Store reads and writes run in worker threads (asyncio.to_thread); only the
provider call runs on the event loop.

Known race: two requests for the same window in different processes can
both see "no row" and both call the provider. Storage still ends with one
row. Within one process GenerationTracker rejects the second request.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lifelog.core.errors import (
    EmptyWindowError,
    ExternalCallFailedError,
    GenerationInProgressError,
    LifelogException,
    PersistenceFailedError,
    WindowNotElapsedError,
)
from lifelog.db.upsert import upsert
from lifelog.models.period_summary import PeriodSummary, SummaryKind
from lifelog.services.boundaries import PeriodWindow, is_past_window
from lifelog.services.records import SourceRecord, list_source_records
from lifelog.services.summarizer import PROVIDER_NAME, Summarizer

logger = logging.getLogger(__name__)

_CONFLICT_KEYS = ("user_id", "kind", "period_start", "period_end")
_REGENERATE_KEYS = ("content", "source_count", "updated_at")


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------

class GenerationStatus:
    CREATED     = "created"
    EXISTING    = "existing"
    REGENERATED = "regenerated"


@dataclass
class GenerationResult:
    summary: PeriodSummary
    status: str


# ---------------------------------------------------------------------------
# Per-window "generating" flags
# ---------------------------------------------------------------------------

class GenerationTracker:
    """
    Set of windows currently being generated, keyed by
    (user_id, kind, window.start, window.end).
    Generating window A never blocks or clears the flag of window B.
    """

    def __init__(self) -> None:
        self._active: set[tuple[str, str, date, date]] = set()

    @staticmethod
    def _key(user_id: str, kind: SummaryKind, window: PeriodWindow) -> tuple[str, str, date, date]:
        return (user_id, kind.value, window.start, window.end)

    def is_generating(self, user_id: str, kind: SummaryKind, window: PeriodWindow) -> bool:
        return self._key(user_id, kind, window) in self._active

    @contextmanager
    def track(self, user_id: str, kind: SummaryKind, window: PeriodWindow) -> Iterator[None]:
        key = self._key(user_id, kind, window)
        if key in self._active:
            raise GenerationInProgressError(kind.value, window.start, window.end)
        self._active.add(key)
        try:
            yield
        finally:
            self._active.discard(key)


generation_tracker = GenerationTracker()


def get_generation_tracker() -> GenerationTracker:
    return generation_tracker


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------

def get_summary(
    db: Session,
    user_id: str,
    kind: SummaryKind,
    window: PeriodWindow,
) -> Optional[PeriodSummary]:
    return (
        db.query(PeriodSummary)
        .filter(
            PeriodSummary.user_id == user_id,
            PeriodSummary.kind == kind.value,
            PeriodSummary.period_start == window.start,
            PeriodSummary.period_end == window.end,
        )
        .first()
    )


def _persist(
    db: Session,
    user_id: str,
    kind: SummaryKind,
    window: PeriodWindow,
    content: str,
    source_count: int,
    overwrite: bool,
) -> PeriodSummary:
    now = datetime.now(tz=timezone.utc)
    values = {
        "user_id": user_id,
        "kind": kind.value,
        "period_start": window.start,
        "period_end": window.end,
        "content": content,
        "source_count": source_count,
        "created_at": now,
        "updated_at": now,
    }
    try:
        upsert(
            db, PeriodSummary, values,
            conflict_keys=_CONFLICT_KEYS,
            update_keys=_REGENERATE_KEYS if overwrite else None,
        )
        db.commit()
        stored = get_summary(db, user_id, kind, window)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Persisting %s summary for %s failed: %s", kind.value, window.describe(), exc)
        raise PersistenceFailedError(
            f"Summary was generated but could not be saved: {exc}",
            table=PeriodSummary.__tablename__,
        ) from exc

    if stored is None:
        raise PersistenceFailedError(
            "Summary row is missing after upsert.",
            table=PeriodSummary.__tablename__,
        )
    db.refresh(stored)
    return stored


# ---------------------------------------------------------------------------
# Public — generation
# ---------------------------------------------------------------------------

async def generate_summary(
    db: Session,
    user_id: str,
    kind: SummaryKind,
    window: PeriodWindow,
    records: list[SourceRecord],
    summarizer: Summarizer,
    today: date,
    confirm_regenerate: bool = False,
    tracker: GenerationTracker = generation_tracker,
) -> GenerationResult:
    if not is_past_window(window, today):
        raise WindowNotElapsedError(window.start, window.end, today)
    if not records:
        raise EmptyWindowError(window.start, window.end, kind.value)

    existing = await asyncio.to_thread(get_summary, db, user_id, kind, window)
    if existing is not None and not confirm_regenerate:
        return GenerationResult(summary=existing, status=GenerationStatus.EXISTING)

    with tracker.track(user_id, kind, window):
        try:
            content = await summarizer.summarize(kind, window.describe(), records)
        except LifelogException:
            raise
        except Exception as exc:
            logger.exception("Summarizer raised for %s %s", kind.value, window.describe())
            raise ExternalCallFailedError(str(exc) or type(exc).__name__, provider=PROVIDER_NAME) from exc

        stored = await asyncio.to_thread(
            _persist, db, user_id, kind, window, content,
            source_count=len(records),
            overwrite=existing is not None,
        )

    if existing is not None:
        status = GenerationStatus.REGENERATED
    elif stored.content == content:
        status = GenerationStatus.CREATED
    else:
        # Another writer inserted first; its row is the one kept.
        status = GenerationStatus.EXISTING
    logger.info("%s summary %s for user %s: %s", kind.value, window.describe(), user_id, status)
    return GenerationResult(summary=stored, status=status)


async def generate_for_window(
    db: Session,
    user_id: str,
    kind: SummaryKind,
    window: PeriodWindow,
    summarizer: Summarizer,
    today: date,
    confirm_regenerate: bool = False,
    tracker: GenerationTracker = generation_tracker,
) -> GenerationResult:
    """Load the window's source records, then generate_summary()."""
    records = await asyncio.to_thread(
        list_source_records, db, user_id, kind.source, window.start, window.end,
    )
    return await generate_summary(
        db, user_id, kind, window, records, summarizer, today,
        confirm_regenerate=confirm_regenerate,
        tracker=tracker,
    )
