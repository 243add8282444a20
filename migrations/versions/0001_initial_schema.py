"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # --- ENUM types ---
    task_status_enum = sa.Enum(
        "pending", "in_progress", "done", "cancelled", name="task_status_enum"
    )
    task_status_enum.create(op.get_bind(), checkfirst=True)

    # --- diaries ---
    op.create_table(
        "diaries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("title", sa.String(256), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("mood", sa.String(32), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "day", name="uq_diary_user_day"),
    )
    op.create_index("ix_diaries_id", "diaries", ["id"])
    op.create_index("ix_diaries_user_id", "diaries", ["user_id"])
    op.create_index("ix_diaries_day", "diaries", ["day"])

    # --- tasks ---
    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(64), nullable=True),
        sa.Column("status", sa.Enum(
            "pending", "in_progress", "done", "cancelled",
            name="task_status_enum", create_type=False,
        ), nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("completed_on", sa.Date(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tasks_id", "tasks", ["id"])
    op.create_index("ix_tasks_user_id", "tasks", ["user_id"])
    op.create_index("ix_tasks_day", "tasks", ["day"])
    op.create_index("ix_tasks_completed_on", "tasks", ["completed_on"])

    # --- reminder_shown ---
    op.create_table(
        "reminder_shown",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("kind", sa.String(32), nullable=False),
        sa.Column("reminder_date", sa.Date(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "kind", "reminder_date", name="uq_reminder_shown_user_kind_date"),
    )
    op.create_index("ix_reminder_shown_id", "reminder_shown", ["id"])
    op.create_index("ix_reminder_shown_user_id", "reminder_shown", ["user_id"])
    op.create_index("ix_reminder_shown_reminder_date", "reminder_shown", ["reminder_date"])

    # --- period_summaries ---
    op.create_table(
        "period_summaries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("kind", sa.String(32), nullable=False),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("source_count", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id", "kind", "period_start", "period_end",
            name="uq_period_summary_user_kind_window",
        ),
    )
    op.create_index("ix_period_summaries_id", "period_summaries", ["id"])
    op.create_index("ix_period_summaries_user_id", "period_summaries", ["user_id"])
    op.create_index("ix_period_summaries_kind", "period_summaries", ["kind"])

    # --- reflection_questions / reflection_answers ---
    op.create_table(
        "reflection_questions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("day_of_year", sa.Integer(), nullable=False),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("day_of_year"),
    )
    op.create_index("ix_reflection_questions_id", "reflection_questions", ["id"])

    op.create_table(
        "reflection_answers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("question_id", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["question_id"], ["reflection_questions.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "question_id", "year", name="uq_reflection_answer_user_question_year"),
    )
    op.create_index("ix_reflection_answers_id", "reflection_answers", ["id"])
    op.create_index("ix_reflection_answers_user_id", "reflection_answers", ["user_id"])

    # --- notification_preferences ---
    op.create_table(
        "notification_preferences",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("diary_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("weekly_summary_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("monthly_summary_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("daily_question_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notification_preferences_id", "notification_preferences", ["id"])
    op.create_index(
        "ix_notification_preferences_user_id", "notification_preferences", ["user_id"], unique=True
    )


def downgrade() -> None:
    op.drop_table("notification_preferences")
    op.drop_table("reflection_answers")
    op.drop_table("reflection_questions")
    op.drop_table("period_summaries")
    op.drop_table("reminder_shown")
    op.drop_table("tasks")
    op.drop_table("diaries")

    op.execute("DROP TYPE IF EXISTS task_status_enum")
