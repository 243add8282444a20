"""
Daily reflection questions ("five-year journal").

One question per day of the year; each user answers it at most once per
calendar year, so the same question collects one answer per year.
"""
from datetime import datetime
from sqlalchemy import Integer, String, Text, DateTime, ForeignKey, func, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from lifelog.db.base import Base


class ReflectionQuestion(Base):
    __tablename__ = "reflection_questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    day_of_year: Mapped[int] = mapped_column(
        Integer, nullable=False, unique=True, index=True,
        comment="1-366",
    )
    question_text: Mapped[str] = mapped_column(Text, nullable=False)


class ReflectionAnswer(Base):
    __tablename__ = "reflection_answers"
    __table_args__ = (
        UniqueConstraint("user_id", "question_id", "year", name="uq_reflection_answer_user_question_year"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    question_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("reflection_questions.id", ondelete="CASCADE"), nullable=False
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
