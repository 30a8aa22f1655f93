"""Registry-driven restore of track lessons and quiz rebuilds."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from divewell.integrity.locks import TrackLockRegistry
from divewell.integrity.quiz_builder import QUESTIONS_PER_QUIZ, build_quiz, extract_objectives
from divewell.integrity.registry import TrackExpectation, TrackRegistry
from divewell.media.persister import ArtifactPersister
from divewell.storage.backup_source import BackupTrack, JsonBackupSource
from divewell.storage.curriculum_repo import CurriculumRepository, NewLesson

logger = logging.getLogger(__name__)


@dataclass
class RestoreReport:
  created_tracks: list[str] = field(default_factory=list)
  restored_tracks: list[str] = field(default_factory=list)
  rebuilt_quizzes: int = 0


class CurriculumRestorer:
  """Bring tracks back to their registry shape from the JSON backup."""

  def __init__(self, *, curriculum: CurriculumRepository, backup: JsonBackupSource, registry: TrackRegistry, locks: TrackLockRegistry, persister: ArtifactPersister) -> None:
    self._curriculum = curriculum
    self._backup = backup
    self._registry = registry
    self._locks = locks
    self._persister = persister

  async def enforce_counts(self) -> RestoreReport:
    """Restore every drifted track and rebuild unhealthy quizzes.

    Lessons are only ever replaced wholesale from the backup. An unreadable backup raises
    InfrastructureError before any track is touched.
    """
    backup_tracks = await self._backup.load()
    report = RestoreReport()
    for expectation in self._registry:
      async with self._locks.hold(expectation.slug):
        await self._enforce_track(expectation, backup_tracks.get(expectation.slug), report)

    if report.restored_tracks or report.created_tracks or report.rebuilt_quizzes:
      logger.info("Curriculum repair created=%s restored=%s rebuilt_quizzes=%d", report.created_tracks, report.restored_tracks, report.rebuilt_quizzes)
    return report

  async def _enforce_track(self, expectation: TrackExpectation, backup_track: BackupTrack | None, report: RestoreReport) -> None:
    slug = expectation.slug
    track = await self._curriculum.get_track_by_slug(slug)
    if track is None:
      if backup_track is None:
        logger.warning("Track %s is missing and absent from the backup; cannot restore", slug)
        return
      track = await self._curriculum.create_track(slug=slug, title=backup_track.title, summary=backup_track.summary, is_published=backup_track.is_published)
      report.created_tracks.append(slug)

    lessons = await self._curriculum.list_lessons(track.id)
    has_empty_content = any(not lesson.content.strip() for lesson in lessons)
    if len(lessons) != expectation.expected_lessons or has_empty_content:
      if backup_track is None:
        logger.warning("Track %s has %d lessons (expected %d) but the backup has no copy", slug, len(lessons), expectation.expected_lessons)
      else:
        lessons = await self._curriculum.replace_track_lessons(track.id, self._lessons_from_backup(slug, backup_track))
        report.restored_tracks.append(slug)
        logger.info("Restored track %s with %d lessons from backup", slug, len(lessons))

    for lesson in lessons:
      quiz = await self._curriculum.get_quiz_for_lesson(lesson.id)
      if quiz is not None and len(quiz.questions) >= QUESTIONS_PER_QUIZ:
        continue
      objectives = list(lesson.objectives) or extract_objectives(lesson.content)
      await self._curriculum.replace_quiz(lesson.id, build_quiz(lesson.title, objectives))
      report.rebuilt_quizzes += 1

  def _lessons_from_backup(self, slug: str, backup_track: BackupTrack) -> list[NewLesson]:
    """Map backup lessons to new rows, filling canonical artifact URLs the backup lacks."""
    lessons: list[NewLesson] = []
    for item in backup_track.lessons:
      lessons.append(
        NewLesson(
          title=item.title,
          order=item.order,
          content=item.content,
          objectives=item.objectives or tuple(extract_objectives(item.content)),
          estimated_minutes=item.estimated_minutes,
          podcast_url=item.podcast_url or self._persister.public_url(self._persister.podcast_path(slug, item.title)),
          pdf_url=item.pdf_url or self._persister.public_url(self._persister.document_path(item.title)),
        )
      )
    return lessons
