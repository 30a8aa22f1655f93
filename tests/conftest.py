"""Shared fixtures: in-memory repositories, a temp artifact tree and a sqlite-backed session factory."""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

import divewell.schema.db_models  # noqa: F401
from divewell.core.database import Base, build_session_factory
from divewell.integrity.quiz_builder import build_quiz
from divewell.media.persister import ArtifactPersister
from divewell.storage.curriculum_repo import LessonRecord, NewLesson, NewQuiz, QuestionRecord, QuizRecord, TrackRecord
from divewell.storage.generation_logs_repo import TERMINAL_STATUSES, GenerationLogRecord
from divewell.storage.integrity_runs_repo import IntegrityRunRecord

LESSON_BODY = "Gas management keeps the dive team safe. Plan reserves before every descent. Check cylinder pressure at each stage."


@pytest.fixture
def anyio_backend() -> str:
  return "asyncio"


class InMemoryCurriculum:
  """Dict-backed CurriculumRepository with the same replace semantics as the SQL one."""

  def __init__(self) -> None:
    self.tracks: dict[str, TrackRecord] = {}
    self.lessons: dict[str, LessonRecord] = {}
    self.quizzes: dict[str, QuizRecord] = {}
    self._ids = 0

  def _next_id(self, prefix: str) -> str:
    self._ids += 1
    return f"{prefix}-{self._ids}"

  async def get_track_by_slug(self, slug: str) -> TrackRecord | None:
    return next((track for track in self.tracks.values() if track.slug == slug), None)

  async def get_track(self, track_id: str) -> TrackRecord | None:
    return self.tracks.get(track_id)

  async def create_track(self, *, slug: str, title: str, summary: str | None = None, is_published: bool = True) -> TrackRecord:
    track = TrackRecord(id=self._next_id("track"), slug=slug, title=title, summary=summary, is_published=is_published)
    self.tracks[track.id] = track
    return track

  async def list_lessons(self, track_id: str) -> list[LessonRecord]:
    return sorted((lesson for lesson in self.lessons.values() if lesson.track_id == track_id), key=lambda lesson: (lesson.order, lesson.id))

  async def get_lesson(self, lesson_id: str) -> LessonRecord | None:
    return self.lessons.get(lesson_id)

  async def get_quiz_for_lesson(self, lesson_id: str) -> QuizRecord | None:
    return self.quizzes.get(lesson_id)

  async def replace_track_lessons(self, track_id: str, lessons: Sequence[NewLesson]) -> list[LessonRecord]:
    for lesson_id in [lesson.id for lesson in self.lessons.values() if lesson.track_id == track_id]:
      del self.lessons[lesson_id]
      self.quizzes.pop(lesson_id, None)
    created = [self._insert_lesson(track_id, lesson) for lesson in lessons]
    return sorted(created, key=lambda lesson: lesson.order)

  async def replace_quiz(self, lesson_id: str, quiz: NewQuiz) -> QuizRecord:
    quiz_id = self._next_id("quiz")
    questions = tuple(
      QuestionRecord(id=self._next_id("question"), quiz_id=quiz_id, prompt=item.prompt, options=item.options, correct_answer=item.correct_answer, order=item.order)
      for item in quiz.questions
    )
    record = QuizRecord(id=quiz_id, lesson_id=lesson_id, title=quiz.title, passing_score=quiz.passing_score, time_limit=quiz.time_limit, questions=questions)
    self.quizzes[lesson_id] = record
    return record

  async def update_lesson_artifacts(self, lesson_id: str, *, pdf_url: str | None = None, podcast_url: str | None = None, podcast_duration: int | None = None) -> None:
    lesson = self.lessons[lesson_id]
    changes: dict[str, Any] = {}
    if pdf_url is not None:
      changes["pdf_url"] = pdf_url
    if podcast_url is not None:
      changes["podcast_url"] = podcast_url
    if podcast_duration is not None:
      changes["podcast_duration"] = podcast_duration
    self.lessons[lesson_id] = dataclasses.replace(lesson, **changes)

  def _insert_lesson(self, track_id: str, lesson: NewLesson) -> LessonRecord:
    record = LessonRecord(
      id=self._next_id("lesson"),
      track_id=track_id,
      title=lesson.title,
      order=lesson.order,
      content=lesson.content,
      objectives=lesson.objectives,
      estimated_minutes=lesson.estimated_minutes,
      podcast_url=lesson.podcast_url,
      pdf_url=lesson.pdf_url,
    )
    self.lessons[record.id] = record
    return record

  def add_lesson(self, track: TrackRecord, lesson: NewLesson) -> LessonRecord:
    return self._insert_lesson(track.id, lesson)


class InMemoryGenerationLogs:
  """GenerationLogRepository that keeps every status transition for assertions."""

  def __init__(self) -> None:
    self.rows: dict[str, GenerationLogRecord] = {}
    self.transitions: dict[str, list[str]] = {}

  async def create_log(self, record: GenerationLogRecord) -> None:
    self.rows[record.id] = record
    self.transitions[record.id] = [record.status]

  async def mark_processing(self, log_id: str, *, started_at: datetime) -> None:
    row = self.rows[log_id]
    if row.status == "pending":
      self.rows[log_id] = dataclasses.replace(row, status="processing", started_at=started_at)
      self.transitions[log_id].append("processing")

  async def finish_log(self, log_id: str, *, status, completed_at: datetime, source_type: str | None = None, error_message: str | None = None, metadata: dict[str, Any] | None = None) -> None:
    row = self.rows[log_id]
    if row.status in TERMINAL_STATUSES:
      return
    self.rows[log_id] = dataclasses.replace(row, status=status, completed_at=completed_at, source_type=source_type or row.source_type, error_message=error_message, metadata=metadata)
    self.transitions[log_id].append(status)

  async def get_log(self, log_id: str) -> GenerationLogRecord | None:
    return self.rows.get(log_id)


class InMemoryIntegrityRuns:
  def __init__(self) -> None:
    self.runs: list[IntegrityRunRecord] = []

  async def insert_run(self, record: IntegrityRunRecord) -> int:
    self.runs.append(record)
    return len(self.runs)


@pytest.fixture
def curriculum() -> InMemoryCurriculum:
  return InMemoryCurriculum()


@pytest.fixture
def generation_logs() -> InMemoryGenerationLogs:
  return InMemoryGenerationLogs()


@pytest.fixture
def integrity_runs() -> InMemoryIntegrityRuns:
  return InMemoryIntegrityRuns()


@pytest.fixture
def storage_root(tmp_path: Path) -> Path:
  root = tmp_path / "uploads"
  root.mkdir()
  return root


@pytest.fixture
def persister(storage_root: Path) -> ArtifactPersister:
  return ArtifactPersister(storage_root, public_prefix="/uploads")


@pytest.fixture
def fixed_clock():
  moment = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
  return lambda: moment


@pytest.fixture
def seed_track(curriculum: InMemoryCurriculum, persister: ArtifactPersister, storage_root: Path):
  """Return a helper that creates a healthy track: lessons, full quizzes and artifact files on disk."""

  def _seed(slug: str, lesson_count: int, *, with_files: bool = True) -> tuple[TrackRecord, list[LessonRecord]]:
    track = TrackRecord(id=f"track-{slug}", slug=slug, title=slug.replace("-", " ").title())
    curriculum.tracks[track.id] = track
    lessons: list[LessonRecord] = []
    for order in range(1, lesson_count + 1):
      title = f"{track.title} Lesson {order}"
      podcast_rel = persister.podcast_path(slug, title)
      pdf_rel = persister.document_path(title)
      lesson = curriculum.add_lesson(
        track,
        NewLesson(title=title, order=order, content=LESSON_BODY, objectives=("Plan gas reserves", "Check pressure", "Brief the team"), podcast_url=persister.public_url(podcast_rel), pdf_url=persister.public_url(pdf_rel)),
      )
      curriculum.quizzes[lesson.id] = _quiz_record(lesson)
      if with_files:
        for relative in (podcast_rel, pdf_rel):
          target = storage_root / relative
          target.parent.mkdir(parents=True, exist_ok=True)
          target.write_bytes(b"artifact-bytes")
      lessons.append(lesson)
    return track, lessons

  return _seed


def _quiz_record(lesson: LessonRecord) -> QuizRecord:
  quiz = build_quiz(lesson.title, list(lesson.objectives))
  questions = tuple(QuestionRecord(id=f"{lesson.id}-q{item.order}", quiz_id=f"quiz-{lesson.id}", prompt=item.prompt, options=item.options, correct_answer=item.correct_answer, order=item.order) for item in quiz.questions)
  return QuizRecord(id=f"quiz-{lesson.id}", lesson_id=lesson.id, title=quiz.title, questions=questions)


@pytest.fixture
async def session_factory(tmp_path: Path):
  engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'divewell.db'}")
  async with engine.begin() as connection:
    await connection.run_sync(Base.metadata.create_all)
  yield build_session_factory(engine)
  await engine.dispose()
