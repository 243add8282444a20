"""
ReminderShown — "this reminder kind was already presented to this user today".

One durable, user-scoped table for every reminder kind. The unique
constraint on (user_id, kind, reminder_date) is the at-most-once-per-day
guarantee; writes go through lifelog.db.upsert so two tabs resolving the
same prompt converge to one row.

kind values (see ReminderKind):
  "diary_missing"        — no diary for yesterday
  "weekly_summary_due"   — Monday: last week can be summarized
  "monthly_summary_due"  — 1st of month: last month can be summarized
  "daily_question_due"   — today's reflection question is unanswered
"""
from datetime import datetime, date
import enum

from sqlalchemy import Integer, String, DateTime, Date, func, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from lifelog.db.base import Base


class ReminderKind(str, enum.Enum):
    diary_missing = "diary_missing"
    weekly_summary_due = "weekly_summary_due"
    monthly_summary_due = "monthly_summary_due"
    daily_question_due = "daily_question_due"


class ReminderShown(Base):
    __tablename__ = "reminder_shown"
    __table_args__ = (
        UniqueConstraint("user_id", "kind", "reminder_date", name="uq_reminder_shown_user_kind_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    kind: Mapped[str] = mapped_column(String(32), nullable=False)
    reminder_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
