"""
Domain record readers / writers for diaries and tasks.

The reflection engine consumes these through SourceRecord, a flat view that
hides which table a record came from:

  source "diary" → one record per diary entry, dated by Diary.day
  source "work"  → one record per task marked done, dated by Task.completed_on

Public API
----------
get_diary_by_date(db, user_id, day)                     -> Diary | None
save_diary(db, user_id, day, content, title, mood)      -> Diary   (upsert)
create_task(db, user_id, title, day, category, ...)     -> Task
complete_task(db, user_id, task_id, on)                 -> Task
list_source_records(db, user_id, source, start, end)    -> list[SourceRecord]
list_record_days(db, user_id, source, start, end)       -> list[(id, day)]
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from lifelog.core.errors import TaskNotFoundError
from lifelog.models.diary import Diary
from lifelog.models.task import Task, TaskStatus

SOURCE_DIARY = "diary"
SOURCE_WORK = "work"
SOURCES = (SOURCE_DIARY, SOURCE_WORK)


@dataclass(frozen=True)
class SourceRecord:
    id: int
    day: date
    text: str
    category: Optional[str] = None


# ---------------------------------------------------------------------------
# Diaries
# ---------------------------------------------------------------------------

def get_diary_by_date(db: Session, user_id: str, day: date) -> Optional[Diary]:
    return (
        db.query(Diary)
        .filter(Diary.user_id == user_id, Diary.day == day)
        .first()
    )


def save_diary(
    db: Session,
    user_id: str,
    day: date,
    content: str,
    title: Optional[str] = None,
    mood: Optional[str] = None,
) -> Diary:
    """Create or replace the diary for (user_id, day)."""
    diary = get_diary_by_date(db, user_id, day)
    if diary is None:
        diary = Diary(user_id=user_id, day=day, content=content)
        db.add(diary)
    diary.content = content
    diary.title = title
    diary.mood = mood
    db.commit()
    db.refresh(diary)
    return diary


def get_diaries_between(db: Session, user_id: str, start: date, end: date) -> list[Diary]:
    return (
        db.query(Diary)
        .filter(Diary.user_id == user_id, Diary.day >= start, Diary.day <= end)
        .order_by(Diary.day)
        .all()
    )


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

def create_task(
    db: Session,
    user_id: str,
    title: str,
    day: date,
    category: Optional[str] = None,
    description: Optional[str] = None,
) -> Task:
    task = Task(
        user_id=user_id,
        title=title,
        day=day,
        category=category,
        description=description,
        status=TaskStatus.pending,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def complete_task(db: Session, user_id: str, task_id: int, on: date) -> Task:
    task = (
        db.query(Task)
        .filter(Task.id == task_id, Task.user_id == user_id)
        .first()
    )
    if task is None:
        raise TaskNotFoundError(task_id)
    task.status = TaskStatus.done
    task.completed_on = on
    db.commit()
    db.refresh(task)
    return task


def get_completed_tasks_between(db: Session, user_id: str, start: date, end: date) -> list[Task]:
    return (
        db.query(Task)
        .filter(
            Task.user_id == user_id,
            Task.status == TaskStatus.done,
            Task.completed_on >= start,
            Task.completed_on <= end,
        )
        .order_by(Task.completed_on, Task.id)
        .all()
    )


# ---------------------------------------------------------------------------
# Flat view for the reflection engine
# ---------------------------------------------------------------------------

def list_source_records(
    db: Session,
    user_id: str,
    source: str,
    start: date,
    end: date,
) -> list[SourceRecord]:
    if source == SOURCE_DIARY:
        return [
            SourceRecord(id=d.id, day=d.day, text=d.content, category=d.mood)
            for d in get_diaries_between(db, user_id, start, end)
        ]
    if source == SOURCE_WORK:
        return [
            SourceRecord(id=t.id, day=t.completed_on, text=t.title, category=t.category)
            for t in get_completed_tasks_between(db, user_id, start, end)
        ]
    raise ValueError(f"unknown source {source!r}")


# ---------------------------------------------------------------------------
# Day listings (used to build week / month selectors)
# ---------------------------------------------------------------------------

def list_diary_days(db: Session, user_id: str, start: date, end: date) -> list[tuple[int, date]]:
    rows = (
        db.query(Diary.id, Diary.day)
        .filter(Diary.user_id == user_id, Diary.day >= start, Diary.day <= end)
        .order_by(Diary.day)
        .all()
    )
    return [(r.id, r.day) for r in rows]


def list_completed_task_days(db: Session, user_id: str, start: date, end: date) -> list[tuple[int, date]]:
    rows = (
        db.query(Task.id, Task.completed_on)
        .filter(
            Task.user_id == user_id,
            Task.status == TaskStatus.done,
            Task.completed_on >= start,
            Task.completed_on <= end,
        )
        .order_by(Task.completed_on, Task.id)
        .all()
    )
    return [(r.id, r.completed_on) for r in rows]


def list_record_days(db: Session, user_id: str, source: str, start: date, end: date) -> list[tuple[int, date]]:
    """(record id, day) pairs without loading record bodies."""
    if source == SOURCE_DIARY:
        return list_diary_days(db, user_id, start, end)
    if source == SOURCE_WORK:
        return list_completed_task_days(db, user_id, start, end)
    raise ValueError(f"unknown source {source!r}")
