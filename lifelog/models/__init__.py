from .diary import Diary
from .task import Task
from .reminder_shown import ReminderShown, ReminderKind
from .period_summary import PeriodSummary, SummaryKind
from .reflection import ReflectionQuestion, ReflectionAnswer
from .notification_preference import NotificationPreference

__all__ = [
    "Diary",
    "Task",
    "ReminderShown",
    "ReminderKind",
    "PeriodSummary",
    "SummaryKind",
    "ReflectionQuestion",
    "ReflectionAnswer",
    "NotificationPreference",
]
