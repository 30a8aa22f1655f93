from __future__ import annotations

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from divewell.core.database import Base


class Track(Base):
  __tablename__ = "tracks"

  id: Mapped[str] = mapped_column(String, primary_key=True)
  slug: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
  title: Mapped[str] = mapped_column(String, nullable=False)
  summary: Mapped[str | None] = mapped_column(Text, nullable=True)
  is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Lesson(Base):
  __tablename__ = "lessons"

  id: Mapped[str] = mapped_column(String, primary_key=True)
  track_id: Mapped[str] = mapped_column(ForeignKey("tracks.id", ondelete="CASCADE"), nullable=False, index=True)
  title: Mapped[str] = mapped_column(String, nullable=False)
  order: Mapped[int] = mapped_column("order", Integer, nullable=False)
  content: Mapped[str] = mapped_column(Text, nullable=False, default="")
  objectives: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
  estimated_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=60)
  podcast_url: Mapped[str | None] = mapped_column(String, nullable=True)
  pdf_url: Mapped[str | None] = mapped_column(String, nullable=True)
  podcast_duration: Mapped[int | None] = mapped_column(Integer, nullable=True)


class Quiz(Base):
  __tablename__ = "quizzes"
  __table_args__ = (UniqueConstraint("lesson_id", name="ux_quizzes_lesson"),)

  id: Mapped[str] = mapped_column(String, primary_key=True)
  lesson_id: Mapped[str] = mapped_column(ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False)
  title: Mapped[str] = mapped_column(String, nullable=False)
  passing_score: Mapped[int] = mapped_column(Integer, nullable=False, default=70)
  time_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=10)


class Question(Base):
  __tablename__ = "questions"

  id: Mapped[str] = mapped_column(String, primary_key=True)
  quiz_id: Mapped[str] = mapped_column(ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
  prompt: Mapped[str] = mapped_column(Text, nullable=False)
  options: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
  correct_answer: Mapped[str] = mapped_column(String, nullable=False)
  order: Mapped[int] = mapped_column("order", Integer, nullable=False)
