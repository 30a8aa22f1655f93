"""Create curriculum, generation log and integrity audit tables.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
  """Upgrade schema."""
  op.create_table(
    "tracks",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("slug", sa.String(), nullable=False),
    sa.Column("title", sa.String(), nullable=False),
    sa.Column("summary", sa.Text(), nullable=True),
    sa.Column("is_published", sa.Boolean(), server_default=sa.text("true"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_tracks_slug"), "tracks", ["slug"], unique=True)

  op.create_table(
    "lessons",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("track_id", sa.String(), nullable=False),
    sa.Column("title", sa.String(), nullable=False),
    sa.Column("order", sa.Integer(), nullable=False),
    sa.Column("content", sa.Text(), server_default="", nullable=False),
    sa.Column("objectives", sa.JSON(), nullable=False),
    sa.Column("estimated_minutes", sa.Integer(), server_default="60", nullable=False),
    sa.Column("podcast_url", sa.String(), nullable=True),
    sa.Column("pdf_url", sa.String(), nullable=True),
    sa.Column("podcast_duration", sa.Integer(), nullable=True),
    sa.ForeignKeyConstraint(["track_id"], ["tracks.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_lessons_track_id"), "lessons", ["track_id"], unique=False)

  op.create_table(
    "quizzes",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("lesson_id", sa.String(), nullable=False),
    sa.Column("title", sa.String(), nullable=False),
    sa.Column("passing_score", sa.Integer(), server_default="70", nullable=False),
    sa.Column("time_limit", sa.Integer(), server_default="10", nullable=False),
    sa.ForeignKeyConstraint(["lesson_id"], ["lessons.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("lesson_id", name="ux_quizzes_lesson"),
  )

  op.create_table(
    "questions",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("quiz_id", sa.String(), nullable=False),
    sa.Column("prompt", sa.Text(), nullable=False),
    sa.Column("options", sa.JSON(), nullable=False),
    sa.Column("correct_answer", sa.String(), nullable=False),
    sa.Column("order", sa.Integer(), nullable=False),
    sa.ForeignKeyConstraint(["quiz_id"], ["quizzes.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_questions_quiz_id"), "questions", ["quiz_id"], unique=False)

  # lesson_id carries no foreign key so history survives a lesson restore.
  op.create_table(
    "generation_logs",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("lesson_id", sa.String(), nullable=True),
    sa.Column("track_id", sa.String(), nullable=True),
    sa.Column("content_type", sa.String(), nullable=False),
    sa.Column("source_type", sa.String(), nullable=False),
    sa.Column("status", sa.String(), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("error_message", sa.Text(), nullable=True),
    sa.Column("metadata_json", sa.JSON(), nullable=True),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_generation_logs_lesson_id"), "generation_logs", ["lesson_id"], unique=False)
  op.create_index(op.f("ix_generation_logs_track_id"), "generation_logs", ["track_id"], unique=False)
  op.create_index(op.f("ix_generation_logs_status"), "generation_logs", ["status"], unique=False)

  op.create_table(
    "integrity_audit_runs",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("trigger", sa.String(), nullable=False),
    sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("finished_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("ok", sa.Boolean(), nullable=False),
    sa.Column("blocking_issues", sa.Integer(), nullable=False),
    sa.Column("warning_issues", sa.Integer(), nullable=False),
    sa.Column("issue_counts", sa.JSON(), nullable=False),
    sa.Column("stats", sa.JSON(), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )


def downgrade() -> None:
  """Downgrade schema."""
  op.drop_table("integrity_audit_runs")
  op.drop_index(op.f("ix_generation_logs_status"), table_name="generation_logs")
  op.drop_index(op.f("ix_generation_logs_track_id"), table_name="generation_logs")
  op.drop_index(op.f("ix_generation_logs_lesson_id"), table_name="generation_logs")
  op.drop_table("generation_logs")
  op.drop_index(op.f("ix_questions_quiz_id"), table_name="questions")
  op.drop_table("questions")
  op.drop_table("quizzes")
  op.drop_index(op.f("ix_lessons_track_id"), table_name="lessons")
  op.drop_table("lessons")
  op.drop_index(op.f("ix_tracks_slug"), table_name="tracks")
  op.drop_table("tracks")
