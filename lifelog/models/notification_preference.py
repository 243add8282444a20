from datetime import datetime
from sqlalchemy import Integer, String, Boolean, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from lifelog.db.base import Base


class NotificationPreference(Base):
    """Per-user on/off switch for each reminder kind. Missing row = all on."""

    __tablename__ = "notification_preferences"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    diary_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    weekly_summary_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    monthly_summary_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    daily_question_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
