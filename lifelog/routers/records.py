"""
Record router — the minimum writers that feed the reflection engine.

PUT  /diaries/{day}              — create or replace the diary for a day
GET  /diaries/{day}              — read one diary
POST /tasks                      — create a task
POST /tasks/{id}/complete        — mark a task done (feeds work reports)
GET  /questions/{day}            — reflection question + answers of past years
PUT  /questions/{day}/answer     — answer the question for day.year
"""
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from lifelog.core.clock import Clock, get_clock
from lifelog.core.deps import get_current_user_id
from lifelog.core.errors import DiaryNotFoundError, QuestionNotFoundError
from lifelog.db.base import get_db
from lifelog.models.task import Task, TaskStatus
from lifelog.schemas.records import (
    DiaryResponse,
    DiaryUpsertRequest,
    ReflectionAnswerRequest,
    ReflectionAnswerResponse,
    ReflectionQuestionResponse,
    TaskCompleteRequest,
    TaskCreateRequest,
    TaskResponse,
)
from lifelog.services import records, reflections
from lifelog.services.boundaries import day_of_year

router = APIRouter(tags=["records"])


def _task_out(task: Task) -> TaskResponse:
    return TaskResponse(
        id=task.id,
        title=task.title,
        day=task.day,
        category=task.category,
        status=TaskStatus(task.status).value,
        completed_on=task.completed_on,
    )


# ---------------------------------------------------------------------------
# Diaries
# ---------------------------------------------------------------------------

@router.put("/diaries/{day}", response_model=DiaryResponse, summary="Create or replace a diary")
def put_diary(
    day: date,
    payload: DiaryUpsertRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    diary = records.save_diary(
        db, user_id, day, payload.content, title=payload.title, mood=payload.mood,
    )
    return DiaryResponse.model_validate(diary)


@router.get(
    "/diaries/{day}",
    response_model=DiaryResponse,
    summary="Read a diary",
    responses={404: {"description": "No diary for that day."}},
)
def get_diary(
    day: date,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    diary = records.get_diary_by_date(db, user_id, day)
    if diary is None:
        raise DiaryNotFoundError(day)
    return DiaryResponse.model_validate(diary)


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

@router.post(
    "/tasks",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task",
)
def post_task(
    payload: TaskCreateRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    task = records.create_task(
        db, user_id, payload.title,
        day=payload.day or clock.today(),
        category=payload.category,
        description=payload.description,
    )
    return _task_out(task)


@router.post(
    "/tasks/{task_id}/complete",
    response_model=TaskResponse,
    summary="Mark a task done",
    responses={404: {"description": "Task not found."}},
)
def post_task_complete(
    task_id: int,
    payload: TaskCompleteRequest | None = None,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    on = (payload.completed_on if payload else None) or clock.today()
    return _task_out(records.complete_task(db, user_id, task_id, on))


# ---------------------------------------------------------------------------
# Reflection questions
# ---------------------------------------------------------------------------

@router.get(
    "/questions/{day}",
    response_model=ReflectionQuestionResponse,
    summary="Reflection question for a day",
    responses={404: {"description": "No question for that day of year."}},
)
def get_question(
    day: date,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    question = reflections.get_question_for_day(db, day)
    if question is None:
        raise QuestionNotFoundError(day)
    history = reflections.get_answer_history(db, user_id, question.id, day.year)
    return ReflectionQuestionResponse(
        question_id=question.id,
        day_of_year=day_of_year(day),
        question_text=question.question_text,
        answers=[ReflectionAnswerResponse.model_validate(a) for a in history],
    )


@router.put(
    "/questions/{day}/answer",
    response_model=ReflectionAnswerResponse,
    summary="Answer the reflection question",
    responses={404: {"description": "No question for that day of year."}},
)
def put_answer(
    day: date,
    payload: ReflectionAnswerRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    answer = reflections.save_answer(db, user_id, day, payload.content)
    return ReflectionAnswerResponse.model_validate(answer)
