"""
Reminder Gate — decides, per kind and per calendar day, whether a prompt is due.

evaluate() is read-only: it never writes the shown-record, so a check that is
discarded or fails leaves no trace. resolve() is the only writer.

Rules (all require "not shown today" and the kind enabled in preferences)
------------------------------------------------------------------------
  diary_missing        no diary for yesterday            → {date}
  weekly_summary_due   today is Monday                   → last elapsed week
  monthly_summary_due  today is the 1st                  → last elapsed month
  daily_question_due   a question exists for today and
                       the user has not answered it this
                       year                              → the question
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lifelog.core.errors import PersistenceFailedError
from lifelog.db.upsert import upsert
from lifelog.models.reminder_shown import ReminderKind, ReminderShown
from lifelog.services.boundaries import (
    PeriodWindow,
    day_of_year,
    is_trigger_day,
    last_elapsed_month,
    last_elapsed_week,
)
from lifelog.services.preferences import get_preferences
from lifelog.services.records import get_diary_by_date
from lifelog.services.reflections import get_answer, get_question_for_day

logger = logging.getLogger(__name__)

Payload = dict[str, Any]


@dataclass
class ReminderPrompt:
    kind: ReminderKind
    payload: Payload


def has_shown_today(db: Session, user_id: str, kind: ReminderKind, today: date) -> bool:
    return (
        db.query(ReminderShown.id)
        .filter(
            ReminderShown.user_id == user_id,
            ReminderShown.kind == kind.value,
            ReminderShown.reminder_date == today,
        )
        .first()
        is not None
    )


# ---------------------------------------------------------------------------
# Per-kind payload builders
# ---------------------------------------------------------------------------

def _window_payload(window: PeriodWindow) -> Payload:
    return {
        "start": window.start.isoformat(),
        "end": window.end.isoformat(),
        "year": window.year,
        "label": window.describe(),
    }


def _diary_missing(db: Session, user_id: str, today: date) -> Optional[Payload]:
    yesterday = today - timedelta(days=1)
    if get_diary_by_date(db, user_id, yesterday) is not None:
        return None
    return {"date": yesterday.isoformat()}


def _weekly_summary_due(db: Session, user_id: str, today: date) -> Optional[Payload]:
    return _window_payload(last_elapsed_week(today))


def _monthly_summary_due(db: Session, user_id: str, today: date) -> Optional[Payload]:
    return _window_payload(last_elapsed_month(today))


def _daily_question_due(db: Session, user_id: str, today: date) -> Optional[Payload]:
    question = get_question_for_day(db, today)
    if question is None:
        return None
    if get_answer(db, user_id, question.id, today.year) is not None:
        return None
    return {
        "question_id": question.id,
        "question_text": question.question_text,
        "day_of_year": day_of_year(today),
    }


_EVALUATORS: dict[ReminderKind, Callable[[Session, str, date], Optional[Payload]]] = {
    ReminderKind.diary_missing: _diary_missing,
    ReminderKind.weekly_summary_due: _weekly_summary_due,
    ReminderKind.monthly_summary_due: _monthly_summary_due,
    ReminderKind.daily_question_due: _daily_question_due,
}


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def evaluate(db: Session, user_id: str, kind: ReminderKind, today: date) -> Optional[ReminderPrompt]:
    if not is_trigger_day(kind, today):
        return None
    if not get_preferences(db, user_id).allows(kind):
        return None
    if has_shown_today(db, user_id, kind, today):
        return None
    payload = _EVALUATORS[kind](db, user_id, today)
    if payload is None:
        return None
    return ReminderPrompt(kind=kind, payload=payload)


def resolve(db: Session, user_id: str, kind: ReminderKind, today: date) -> None:
    """Record that `kind` was presented to `user_id` on `today`. Idempotent."""
    now = datetime.now(tz=timezone.utc)
    try:
        upsert(
            db, ReminderShown,
            {
                "user_id": user_id,
                "kind": kind.value,
                "reminder_date": today,
                "created_at": now,
                "updated_at": now,
            },
            conflict_keys=("user_id", "kind", "reminder_date"),
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceFailedError(
            f"Could not record {kind.value} reminder for {today}: {exc}",
            table=ReminderShown.__tablename__,
        ) from exc
    logger.debug("Reminder %s resolved for user %s on %s", kind.value, user_id, today)
