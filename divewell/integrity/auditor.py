"""Content integrity audit: reconcile the corpus against the track registry.

How/Why:
  - Data-quality findings become IntegrityIssue entries and never raise.
  - Storage and database failures raise InfrastructureError and abort the run, so callers never
    see a misleadingly partial summary.
  - Tracks are checked concurrently; results are concatenated in registry order so two runs
    over the same state produce identical summaries.
  - Alerts and the audit trace are best-effort side calls.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Literal

import httpx

from divewell.integrity.alerts import IntegrityAlertSender
from divewell.integrity.models import AuditOptions, IntegrityIssue, IntegrityStats, IntegritySummary, IssueType
from divewell.integrity.quiz_builder import QUESTIONS_PER_QUIZ
from divewell.integrity.registry import TrackExpectation, TrackRegistry
from divewell.integrity.restore import CurriculumRestorer
from divewell.media.persister import ArtifactPersister
from divewell.services.lesson_media import LessonMediaService
from divewell.storage.curriculum_repo import CurriculumRepository, LessonRecord, TrackRecord
from divewell.storage.integrity_runs_repo import IntegrityRunRepository
from divewell.telemetry.integrity_trace import record_integrity_trace

logger = logging.getLogger(__name__)

ArtifactKind = Literal["podcast", "pdf"]
HEAD_TIMEOUT_SECONDS = 5.0


class IntegrityAuditor:
  """Run the reconciliation pass and assemble an IntegritySummary."""

  def __init__(
    self,
    *,
    curriculum: CurriculumRepository,
    registry: TrackRegistry,
    restorer: CurriculumRestorer,
    persister: ArtifactPersister,
    http: httpx.AsyncClient,
    media: LessonMediaService | None = None,
    alerts: IntegrityAlertSender | None = None,
    trace_repo: IntegrityRunRepository | None = None,
    head_timeout_seconds: float = HEAD_TIMEOUT_SECONDS,
    clock: Callable[[], datetime] | None = None,
  ) -> None:
    self._curriculum = curriculum
    self._registry = registry
    self._restorer = restorer
    self._persister = persister
    self._http = http
    self._media = media
    self._alerts = alerts
    self._trace_repo = trace_repo
    self._head_timeout_seconds = head_timeout_seconds
    self._clock = clock or (lambda: datetime.now(UTC))

  async def run(self, options: AuditOptions | None = None) -> IntegritySummary:
    """Audit every registry track and return the aggregated summary."""
    options = options or AuditOptions()
    started_at = self._clock()
    logger.info("Content integrity audit started trigger=%s auto_repair=%s regenerate_media=%s", options.trigger, options.auto_repair, options.regenerate_media)

    # Fail closed when the artifact tree is unusable.
    await self._persister.ensure_root()

    stats = IntegrityStats()
    if options.auto_repair:
      report = await self._restorer.enforce_counts()
      stats.restored_tracks = len(report.restored_tracks)
      stats.rebuilt_quizzes = report.rebuilt_quizzes

    results = await asyncio.gather(*(self._check_track(expectation, options) for expectation in self._registry))

    issues: list[IntegrityIssue] = []
    for track_issues, track_stats in results:
      issues.extend(track_issues)
      stats.merge(track_stats)

    summary = IntegritySummary.from_issues(issues, stats)

    if options.send_alerts and summary.issues and self._alerts is not None:
      await self._alerts.send(summary, trigger=options.trigger)

    await record_integrity_trace(self._trace_repo, summary, trigger=options.trigger, started_at=started_at, finished_at=self._clock())
    return summary

  async def _check_track(self, expectation: TrackExpectation, options: AuditOptions) -> tuple[list[IntegrityIssue], IntegrityStats]:
    issues: list[IntegrityIssue] = []
    stats = IntegrityStats()
    slug = expectation.slug

    track = await self._curriculum.get_track_by_slug(slug)
    if track is None:
      issues.append(IntegrityIssue("critical", IssueType.MISSING_TRACK, f"Track missing: {slug}", track_slug=slug))
      return issues, stats

    stats.tracks_checked = 1
    lessons = await self._curriculum.list_lessons(track.id)
    stats.lessons_checked = len(lessons)

    if len(lessons) != expectation.expected_lessons:
      stats.missing_lessons = abs(len(lessons) - expectation.expected_lessons)
      issues.append(
        IntegrityIssue(
          "critical",
          IssueType.LESSON_COUNT_MISMATCH,
          f"Track {slug} has {len(lessons)} lessons (expected {expectation.expected_lessons}).",
          track_slug=slug,
          details={"expected": expectation.expected_lessons, "actual": len(lessons)},
        )
      )

    for lesson in lessons:
      issues.extend(await self._check_lesson(track, lesson, options, stats))

    return issues, stats

  async def _check_lesson(self, track: TrackRecord, lesson: LessonRecord, options: AuditOptions, stats: IntegrityStats) -> list[IntegrityIssue]:
    issues: list[IntegrityIssue] = []
    slug = track.slug

    def issue(severity: Literal["critical", "warning"], issue_type: IssueType, message: str) -> None:
      issues.append(IntegrityIssue(severity, issue_type, message, track_slug=slug, lesson_id=lesson.id))

    if not lesson.content.strip():
      issue("critical", IssueType.MISSING_LESSON_CONTENT, f"Lesson {lesson.title} has no content.")

    quiz = await self._curriculum.get_quiz_for_lesson(lesson.id)
    if quiz is None:
      stats.missing_quizzes += 1
      issue("critical", IssueType.MISSING_QUIZ, f"Lesson {lesson.title} has no quiz.")
    else:
      stats.quizzes_checked += 1
      stats.questions_checked += len(quiz.questions)
      if len(quiz.questions) < QUESTIONS_PER_QUIZ:
        issue("warning", IssueType.QUIZ_QUESTION_SHORTAGE, f"Lesson {lesson.title} quiz has {len(quiz.questions)} questions (expected {QUESTIONS_PER_QUIZ}).")

    if not lesson.podcast_url:
      stats.missing_podcast_urls += 1
      issue("warning", IssueType.MISSING_PODCAST_URL, f"Lesson {lesson.title} missing podcast URL.")
    if not lesson.pdf_url:
      stats.missing_pdf_urls += 1
      issue("warning", IssueType.MISSING_PDF_URL, f"Lesson {lesson.title} missing PDF URL.")

    for kind, url in (("podcast", lesson.podcast_url), ("pdf", lesson.pdf_url)):
      if not url or await self._artifact_reachable(url):
        continue

      if kind == "podcast":
        stats.missing_podcast_files += 1
      else:
        stats.missing_pdf_files += 1

      if options.regenerate_media and await self._regenerate(kind, lesson):
        stats.regenerated_media += 1
        continue

      if kind == "podcast":
        issue("warning", IssueType.MISSING_PODCAST_FILE, f"Podcast file missing for lesson {lesson.title}.")
      else:
        issue("warning", IssueType.MISSING_PDF_FILE, f"PDF file missing for lesson {lesson.title}.")

    return issues

  async def _artifact_reachable(self, url: str) -> bool:
    """Check local artifacts on disk and remote ones with a bounded HEAD request."""
    if self._persister.resolve_local_path(url) is not None:
      return await self._persister.exists(url)

    if url.startswith(("http://", "https://")):
      try:
        response = await self._http.head(url, timeout=self._head_timeout_seconds, follow_redirects=True)
      except httpx.HTTPError as exc:
        logger.debug("Remote artifact check failed url=%s error=%s", url, exc)
        return False
      return response.is_success

    # Paths outside the public prefix cannot be checked from here.
    return True

  async def _regenerate(self, kind: ArtifactKind, lesson: LessonRecord) -> bool:
    """Attempt one regeneration; failures are logged and reported as False."""
    if self._media is None:
      return False
    try:
      if kind == "podcast":
        await self._media.generate_podcast(lesson.id)
      else:
        await self._media.generate_pdf(lesson.id)
    except Exception:  # noqa: BLE001 - regeneration inside an audit is best-effort
      logger.warning("Media regeneration failed kind=%s lesson_id=%s", kind, lesson.id, exc_info=True)
      return False
    return True
