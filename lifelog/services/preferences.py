"""
Notification preferences: which reminder kinds a user wants to see.

A user without a row gets every kind enabled.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass

from sqlalchemy.orm import Session

from lifelog.models.notification_preference import NotificationPreference
from lifelog.models.reminder_shown import ReminderKind


@dataclass
class Preferences:
    diary_enabled: bool = True
    weekly_summary_enabled: bool = True
    monthly_summary_enabled: bool = True
    daily_question_enabled: bool = True

    def allows(self, kind: ReminderKind) -> bool:
        return {
            ReminderKind.diary_missing: self.diary_enabled,
            ReminderKind.weekly_summary_due: self.weekly_summary_enabled,
            ReminderKind.monthly_summary_due: self.monthly_summary_enabled,
            ReminderKind.daily_question_due: self.daily_question_enabled,
        }[kind]


def get_preferences(db: Session, user_id: str) -> Preferences:
    row = (
        db.query(NotificationPreference)
        .filter(NotificationPreference.user_id == user_id)
        .first()
    )
    if row is None:
        return Preferences()
    return Preferences(
        diary_enabled=row.diary_enabled,
        weekly_summary_enabled=row.weekly_summary_enabled,
        monthly_summary_enabled=row.monthly_summary_enabled,
        daily_question_enabled=row.daily_question_enabled,
    )


def save_preferences(db: Session, user_id: str, prefs: Preferences) -> Preferences:
    row = (
        db.query(NotificationPreference)
        .filter(NotificationPreference.user_id == user_id)
        .first()
    )
    if row is None:
        row = NotificationPreference(user_id=user_id)
        db.add(row)
    for key, value in asdict(prefs).items():
        setattr(row, key, value)
    db.commit()
    return prefs
