"""
PeriodSummary — AI-generated weekly / monthly summaries.

Unique per (user_id, kind, period_start, period_end). Created once by the
Idempotent Summary Generator; updated in place only when the user confirms
regeneration. Never duplicated, never silently overwritten.

kind values (see SummaryKind):
  "weekly_diary"   — diary entries of a Sunday-aligned week
  "weekly_work"    — tasks completed during a week
  "monthly_diary"  — diary entries of a calendar month
  "monthly_work"   — tasks completed during a calendar month
"""
from datetime import datetime, date
import enum

from sqlalchemy import Integer, String, Text, DateTime, Date, func, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from lifelog.db.base import Base


class SummaryKind(str, enum.Enum):
    weekly_diary = "weekly_diary"
    weekly_work = "weekly_work"
    monthly_diary = "monthly_diary"
    monthly_work = "monthly_work"

    @property
    def period(self) -> str:
        return self.value.split("_", 1)[0]

    @property
    def source(self) -> str:
        return self.value.split("_", 1)[1]


class PeriodSummary(Base):
    __tablename__ = "period_summaries"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "kind", "period_start", "period_end",
            name="uq_period_summary_user_kind_window",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    kind: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    source_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
        comment="Number of records the summary was generated from",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
