"""SQLAlchemy-backed repository for tracks, lessons, quizzes and questions."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from divewell.schema.curriculum import Lesson, Question, Quiz, Track
from divewell.storage.curriculum_repo import LessonRecord, NewLesson, NewQuiz, QuestionRecord, QuizRecord, TrackRecord
from divewell.storage.db_errors import translate_db_errors
from divewell.utils.ids import generate_id

logger = logging.getLogger(__name__)


def _track_record(row: Track) -> TrackRecord:
  return TrackRecord(id=row.id, slug=row.slug, title=row.title, summary=row.summary, is_published=bool(row.is_published))


def _lesson_record(row: Lesson) -> LessonRecord:
  return LessonRecord(
    id=row.id,
    track_id=row.track_id,
    title=row.title,
    order=row.order,
    content=row.content or "",
    objectives=tuple(row.objectives or ()),
    estimated_minutes=row.estimated_minutes,
    podcast_url=row.podcast_url,
    pdf_url=row.pdf_url,
    podcast_duration=row.podcast_duration,
  )


def _question_record(row: Question) -> QuestionRecord:
  return QuestionRecord(id=row.id, quiz_id=row.quiz_id, prompt=row.prompt, options=tuple(row.options or ()), correct_answer=row.correct_answer, order=row.order)


class SqlCurriculumRepository:
  """Persist the curriculum corpus through an injected async session factory."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
    self._session_factory = session_factory

  async def get_track_by_slug(self, slug: str) -> TrackRecord | None:
    with translate_db_errors("get_track_by_slug"):
      async with self._session_factory() as session:
        row = await session.scalar(select(Track).where(Track.slug == slug))
        return _track_record(row) if row else None

  async def get_track(self, track_id: str) -> TrackRecord | None:
    with translate_db_errors("get_track"):
      async with self._session_factory() as session:
        row = await session.get(Track, track_id)
        return _track_record(row) if row else None

  async def create_track(self, *, slug: str, title: str, summary: str | None = None, is_published: bool = True) -> TrackRecord:
    with translate_db_errors("create_track"):
      async with self._session_factory() as session:
        row = Track(id=generate_id(), slug=slug, title=title, summary=summary, is_published=is_published)
        session.add(row)
        await session.commit()
        logger.info("Created track slug=%s id=%s", slug, row.id)
        return _track_record(row)

  async def list_lessons(self, track_id: str) -> list[LessonRecord]:
    with translate_db_errors("list_lessons"):
      async with self._session_factory() as session:
        result = await session.scalars(select(Lesson).where(Lesson.track_id == track_id).order_by(Lesson.order, Lesson.id))
        return [_lesson_record(row) for row in result.all()]

  async def get_lesson(self, lesson_id: str) -> LessonRecord | None:
    with translate_db_errors("get_lesson"):
      async with self._session_factory() as session:
        row = await session.get(Lesson, lesson_id)
        return _lesson_record(row) if row else None

  async def get_quiz_for_lesson(self, lesson_id: str) -> QuizRecord | None:
    with translate_db_errors("get_quiz_for_lesson"):
      async with self._session_factory() as session:
        quiz = await session.scalar(select(Quiz).where(Quiz.lesson_id == lesson_id))
        if quiz is None:
          return None
        questions = await session.scalars(select(Question).where(Question.quiz_id == quiz.id).order_by(Question.order))
        return QuizRecord(
          id=quiz.id,
          lesson_id=quiz.lesson_id,
          title=quiz.title,
          passing_score=quiz.passing_score,
          time_limit=quiz.time_limit,
          questions=tuple(_question_record(row) for row in questions.all()),
        )

  async def replace_track_lessons(self, track_id: str, lessons: Sequence[NewLesson]) -> list[LessonRecord]:
    """Wholesale-replace a track's lessons; quizzes and questions of the old lessons go with them."""
    with translate_db_errors("replace_track_lessons"):
      async with self._session_factory() as session, session.begin():
        lesson_ids = select(Lesson.id).where(Lesson.track_id == track_id)
        quiz_ids = select(Quiz.id).where(Quiz.lesson_id.in_(lesson_ids))
        await session.execute(delete(Question).where(Question.quiz_id.in_(quiz_ids)))
        await session.execute(delete(Quiz).where(Quiz.lesson_id.in_(lesson_ids)))
        await session.execute(delete(Lesson).where(Lesson.track_id == track_id))

        rows = [
          Lesson(
            id=generate_id(),
            track_id=track_id,
            title=lesson.title,
            order=lesson.order,
            content=lesson.content,
            objectives=list(lesson.objectives),
            estimated_minutes=lesson.estimated_minutes,
            podcast_url=lesson.podcast_url,
            pdf_url=lesson.pdf_url,
          )
          for lesson in lessons
        ]
        session.add_all(rows)

      logger.info("Replaced lessons track_id=%s count=%d", track_id, len(rows))
      return [_lesson_record(row) for row in sorted(rows, key=lambda row: row.order)]

  async def replace_quiz(self, lesson_id: str, quiz: NewQuiz) -> QuizRecord:
    """Delete and recreate a lesson's quiz and questions as one unit."""
    with translate_db_errors("replace_quiz"):
      async with self._session_factory() as session, session.begin():
        old_quiz_ids = select(Quiz.id).where(Quiz.lesson_id == lesson_id)
        await session.execute(delete(Question).where(Question.quiz_id.in_(old_quiz_ids)))
        await session.execute(delete(Quiz).where(Quiz.lesson_id == lesson_id))
        # The unique lesson_id constraint needs the old quiz gone before the insert.
        await session.flush()

        quiz_row = Quiz(id=generate_id(), lesson_id=lesson_id, title=quiz.title, passing_score=quiz.passing_score, time_limit=quiz.time_limit)
        session.add(quiz_row)
        question_rows = [Question(id=generate_id(), quiz_id=quiz_row.id, prompt=item.prompt, options=list(item.options), correct_answer=item.correct_answer, order=item.order) for item in quiz.questions]
        session.add_all(question_rows)

      return QuizRecord(
        id=quiz_row.id,
        lesson_id=lesson_id,
        title=quiz_row.title,
        passing_score=quiz_row.passing_score,
        time_limit=quiz_row.time_limit,
        questions=tuple(_question_record(row) for row in question_rows),
      )

  async def update_lesson_artifacts(self, lesson_id: str, *, pdf_url: str | None = None, podcast_url: str | None = None, podcast_duration: int | None = None) -> None:
    values: dict[str, object] = {}
    if pdf_url is not None:
      values["pdf_url"] = pdf_url
    if podcast_url is not None:
      values["podcast_url"] = podcast_url
    if podcast_duration is not None:
      values["podcast_duration"] = podcast_duration
    if not values:
      return

    with translate_db_errors("update_lesson_artifacts"):
      async with self._session_factory() as session:
        await session.execute(update(Lesson).where(Lesson.id == lesson_id).values(**values))
        await session.commit()
