"""Storage interfaces for the track/lesson/quiz corpus."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class TrackRecord:
  id: str
  slug: str
  title: str
  summary: str | None = None
  is_published: bool = True


@dataclass(frozen=True)
class LessonRecord:
  id: str
  track_id: str
  title: str
  order: int
  content: str
  objectives: tuple[str, ...] = ()
  estimated_minutes: int = 60
  podcast_url: str | None = None
  pdf_url: str | None = None
  podcast_duration: int | None = None


@dataclass(frozen=True)
class QuestionRecord:
  id: str
  quiz_id: str
  prompt: str
  options: tuple[str, ...]
  correct_answer: str
  order: int


@dataclass(frozen=True)
class QuizRecord:
  id: str
  lesson_id: str
  title: str
  passing_score: int = 70
  time_limit: int = 10
  questions: tuple[QuestionRecord, ...] = ()


@dataclass(frozen=True)
class NewLesson:
  """Lesson values written by a wholesale restore."""

  title: str
  order: int
  content: str
  objectives: tuple[str, ...] = ()
  estimated_minutes: int = 60
  podcast_url: str | None = None
  pdf_url: str | None = None


@dataclass(frozen=True)
class NewQuestion:
  prompt: str
  options: tuple[str, ...]
  correct_answer: str
  order: int


@dataclass(frozen=True)
class NewQuiz:
  """Quiz plus questions written together as one unit."""

  title: str
  passing_score: int = 70
  time_limit: int = 10
  questions: tuple[NewQuestion, ...] = field(default_factory=tuple)


class CurriculumRepository(Protocol):
  """Repository contract for the curriculum corpus."""

  async def get_track_by_slug(self, slug: str) -> TrackRecord | None:
    """Fetch a track by its unique slug."""

  async def get_track(self, track_id: str) -> TrackRecord | None:
    """Fetch a track by id."""

  async def create_track(self, *, slug: str, title: str, summary: str | None = None, is_published: bool = True) -> TrackRecord:
    """Insert a new track."""

  async def list_lessons(self, track_id: str) -> list[LessonRecord]:
    """Return a track's lessons ordered by `order`."""

  async def get_lesson(self, lesson_id: str) -> LessonRecord | None:
    """Fetch one lesson."""

  async def get_quiz_for_lesson(self, lesson_id: str) -> QuizRecord | None:
    """Fetch a lesson's quiz with its questions in order."""

  async def replace_track_lessons(self, track_id: str, lessons: Sequence[NewLesson]) -> list[LessonRecord]:
    """Delete every lesson of a track (with quizzes and questions) and insert the given ones in one transaction."""

  async def replace_quiz(self, lesson_id: str, quiz: NewQuiz) -> QuizRecord:
    """Delete a lesson's quiz and questions and insert the replacement in one transaction."""

  async def update_lesson_artifacts(self, lesson_id: str, *, pdf_url: str | None = None, podcast_url: str | None = None, podcast_duration: int | None = None) -> None:
    """Set the artifact columns that are not None; no other lesson column is touched."""
