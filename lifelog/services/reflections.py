"""
Daily reflection questions: one question per day of year, one answer per
user per year.
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from lifelog.core.errors import QuestionNotFoundError
from lifelog.models.reflection import ReflectionAnswer, ReflectionQuestion
from lifelog.services.boundaries import day_of_year

# Answers shown next to a question: this year plus the four before it.
ANSWER_HISTORY_YEARS = 5


def get_question_for_day(db: Session, day: date) -> Optional[ReflectionQuestion]:
    return (
        db.query(ReflectionQuestion)
        .filter(ReflectionQuestion.day_of_year == day_of_year(day))
        .first()
    )


def get_answer(db: Session, user_id: str, question_id: int, year: int) -> Optional[ReflectionAnswer]:
    return (
        db.query(ReflectionAnswer)
        .filter(
            ReflectionAnswer.user_id == user_id,
            ReflectionAnswer.question_id == question_id,
            ReflectionAnswer.year == year,
        )
        .first()
    )


def get_answer_history(
    db: Session, user_id: str, question_id: int, current_year: int
) -> list[ReflectionAnswer]:
    """Answers from the last ANSWER_HISTORY_YEARS years, newest first."""
    return (
        db.query(ReflectionAnswer)
        .filter(
            ReflectionAnswer.user_id == user_id,
            ReflectionAnswer.question_id == question_id,
            ReflectionAnswer.year >= current_year - (ANSWER_HISTORY_YEARS - 1),
            ReflectionAnswer.year <= current_year,
        )
        .order_by(ReflectionAnswer.year.desc())
        .all()
    )


def save_answer(db: Session, user_id: str, day: date, content: str) -> ReflectionAnswer:
    """Create or update the user's answer to `day`'s question for day.year."""
    question = get_question_for_day(db, day)
    if question is None:
        raise QuestionNotFoundError(day)

    answer = get_answer(db, user_id, question.id, day.year)
    if answer is None:
        answer = ReflectionAnswer(
            user_id=user_id,
            question_id=question.id,
            year=day.year,
            content=content,
        )
        db.add(answer)
    else:
        answer.content = content
    db.commit()
    db.refresh(answer)
    return answer
