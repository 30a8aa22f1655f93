"""Lesson artifact generation: PDF decks and narrated podcasts.

How/Why:
  - Every job writes exactly one generation log row: inserted as pending, moved to processing,
    then given one terminal update. Failures are recorded before they propagate.
  - Only the lesson's artifact columns are written; lesson text is never edited here.
  - Podcast bytes are persisted only after every speech chunk succeeded, inside an overall
    timeout. A write still running when the timeout fires is awaited and its file removed.
  - Document jobs share one semaphore per service, so no combination of callers runs more
    than batch_concurrency provider jobs at once.
  - Batch runs cap in-flight jobs with a semaphore and record each item's outcome separately.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from divewell.media.chunker import chunk_text
from divewell.media.persister import ArtifactPersister
from divewell.media.script_synthesizer import ScriptSynthesizer
from divewell.providers.documents import DocumentGenerationClient
from divewell.providers.errors import ArtifactFetchError, InfrastructureError, PipelineError, ProviderTimeout
from divewell.providers.speech import SpeechClient
from divewell.storage.curriculum_repo import CurriculumRepository, LessonRecord, TrackRecord
from divewell.storage.generation_logs_repo import ContentType, GenerationLogRecord, GenerationLogRepository
from divewell.utils.ids import generate_id

logger = logging.getLogger(__name__)


class LessonNotFoundError(PipelineError):
  """Raised when a generation request names a lesson that does not exist."""


@dataclass(frozen=True)
class MediaResult:
  """Outcome of one successful generation job."""

  lesson_id: str
  content_type: ContentType
  url: str
  generation_log_id: str
  source_type: str
  metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BatchItemResult:
  lesson_id: str
  success: bool
  url: str | None = None
  error: str | None = None


@dataclass(frozen=True)
class BatchResult:
  completed: int
  failed: int
  results: list[BatchItemResult]


def _utcnow() -> datetime:
  return datetime.now(UTC)


def fit_chunks(chunks: Sequence[str], limit: int) -> list[str]:
  """Split any over-length chunk on word boundaries so every piece fits the speech limit."""
  fitted: list[str] = []
  for chunk in chunks:
    if len(chunk) <= limit:
      fitted.append(chunk)
      continue

    buffer = ""
    for word in chunk.split():
      # A single word longer than the limit is cut hard.
      while len(word) > limit:
        if buffer:
          fitted.append(buffer)
          buffer = ""
        fitted.append(word[:limit])
        word = word[limit:]
      if not word:
        continue
      if buffer and len(buffer) + 1 + len(word) > limit:
        fitted.append(buffer)
        buffer = word
      else:
        buffer = f"{buffer} {word}" if buffer else word
    if buffer:
      fitted.append(buffer)
  return fitted


class LessonMediaService:
  """Generate, persist and record lesson artifacts."""

  def __init__(
    self,
    *,
    curriculum: CurriculumRepository,
    generation_logs: GenerationLogRepository,
    persister: ArtifactPersister,
    synthesizer: ScriptSynthesizer,
    documents: DocumentGenerationClient | None,
    speech: SpeechClient | None,
    template_id: str,
    export_format: str = "pdf",
    keep_remote_on_fetch_failure: bool = True,
    podcast_timeout_seconds: float = 900,
    batch_concurrency: int = 3,
    default_use_generative: bool = True,
    clock: Callable[[], datetime] = _utcnow,
  ) -> None:
    if batch_concurrency <= 0:
      raise ValueError("batch_concurrency must be positive.")
    self._curriculum = curriculum
    self._logs = generation_logs
    self._persister = persister
    self._synthesizer = synthesizer
    self._documents = documents
    self._speech = speech
    self._template_id = template_id
    self._export_format = export_format
    self._keep_remote_on_fetch_failure = keep_remote_on_fetch_failure
    self._podcast_timeout_seconds = podcast_timeout_seconds
    self._batch_concurrency = batch_concurrency
    self._document_slots = asyncio.Semaphore(batch_concurrency)
    self._default_use_generative = default_use_generative
    self._clock = clock

  async def generate_pdf(self, lesson_id: str) -> MediaResult:
    """Generate a PDF deck for a lesson and store its URL on the lesson."""
    if self._documents is None:
      raise InfrastructureError("Document backend is not configured (DIVEWELL_DOCUMENT_API_KEY is missing).")
    documents = self._documents
    lesson, track = await self._load(lesson_id)

    async def _work() -> tuple[str, str, dict[str, Any]]:
      prompt = f"{track.title} - {lesson.title}\n\n{lesson.content}"
      artifact_ref = await documents.generate(prompt, template_id=self._template_id, export_format=self._export_format)
      storage = "local"
      try:
        url = await self._persister.download_document(artifact_ref, lesson.title)
      except ArtifactFetchError:
        if not self._keep_remote_on_fetch_failure:
          raise
        logger.warning("PDF download failed for lesson_id=%s; keeping remote URL", lesson.id)
        url = artifact_ref
        storage = "remote"

      await self._curriculum.update_lesson_artifacts(lesson.id, pdf_url=url)
      return url, "template", {"artifactUrl": url, "storage": storage}

    async with self._document_slots:
      return await self._run_job(lesson, track, "pdf", "template", _work)

  async def generate_podcast(self, lesson_id: str, *, use_generative: bool | None = None, voice: str | None = None) -> MediaResult:
    """Write a narration script, synthesize it chunk by chunk and store the audio."""
    if self._speech is None:
      raise InfrastructureError("Speech backend is not configured (OPENAI_API_KEY is missing).")
    speech = self._speech
    lesson, track = await self._load(lesson_id)
    want_generative = self._default_use_generative if use_generative is None else use_generative
    relative_path = self._persister.podcast_path(track.slug, lesson.title)
    writes: list[asyncio.Future[str]] = []
    written: list[str] = []

    async def _work() -> tuple[str, str, dict[str, Any]]:
      script = await self._synthesizer.synthesize(lesson.content, lesson.title, track.title, use_generative=want_generative)
      chunks = fit_chunks(chunk_text(script.text, speech.max_input_chars), speech.max_input_chars)
      audio = await speech.synthesize_chunks(chunks, voice=voice)
      # Shielded: a thread write cannot be interrupted, so the timeout path waits on it instead.
      writes.append(asyncio.ensure_future(self._persister.write_bytes(relative_path, audio)))
      url = await asyncio.shield(writes[0])
      written.append(url)
      duration = script.estimated_duration_seconds
      await self._curriculum.update_lesson_artifacts(lesson.id, podcast_url=url, podcast_duration=duration)
      metadata = {"artifactUrl": url, "durationSeconds": duration, "sizeBytes": len(audio), "wordCount": script.word_count, "chunkCount": len(chunks)}
      return url, script.source_type, metadata

    async def _discard_late_write() -> None:
      # Only a write the timeout interrupted is discarded; a finished one may already be referenced.
      if not writes or written:
        return
      try:
        await writes[0]
      except Exception:  # noqa: BLE001 - the job already failed on its timeout
        logger.warning("Podcast write after timeout failed lesson_id=%s", lesson.id, exc_info=True)
        return
      await self._persister.discard(relative_path)

    initial_source = "gpt" if want_generative else "expanded"
    return await self._run_job(lesson, track, "podcast", initial_source, _work, timeout=self._podcast_timeout_seconds, on_timeout=_discard_late_write)

  async def generate_pdf_batch(self, lesson_ids: Sequence[str]) -> BatchResult:
    return await self._run_batch(lesson_ids, self.generate_pdf)

  async def generate_podcast_batch(self, lesson_ids: Sequence[str], *, use_generative: bool | None = None, voice: str | None = None) -> BatchResult:
    async def _one(lesson_id: str) -> MediaResult:
      return await self.generate_podcast(lesson_id, use_generative=use_generative, voice=voice)

    return await self._run_batch(lesson_ids, _one)

  async def _load(self, lesson_id: str) -> tuple[LessonRecord, TrackRecord]:
    lesson = await self._curriculum.get_lesson(lesson_id)
    if lesson is None:
      raise LessonNotFoundError(f"Lesson {lesson_id} not found.")
    track = await self._curriculum.get_track(lesson.track_id)
    if track is None:
      raise LessonNotFoundError(f"Track {lesson.track_id} for lesson {lesson_id} not found.")
    return lesson, track

  async def _run_job(
    self,
    lesson: LessonRecord,
    track: TrackRecord,
    content_type: ContentType,
    source_type: str,
    work: Callable[[], Awaitable[tuple[str, str, dict[str, Any]]]],
    *,
    timeout: float | None = None,
    on_timeout: Callable[[], Awaitable[None]] | None = None,
  ) -> MediaResult:
    """Run one generation job and keep its log row in step."""
    log_id = generate_id()
    await self._logs.create_log(GenerationLogRecord(id=log_id, lesson_id=lesson.id, track_id=track.id, content_type=content_type, source_type=source_type, status="pending", created_at=self._clock()))
    await self._logs.mark_processing(log_id, started_at=self._clock())
    logger.info("Generation started content_type=%s lesson_id=%s log_id=%s", content_type, lesson.id, log_id)

    try:
      if timeout is None:
        url, final_source, metadata = await work()
      else:
        url, final_source, metadata = await asyncio.wait_for(work(), timeout=timeout)
    except asyncio.TimeoutError as exc:
      message = f"{content_type} generation exceeded {timeout:g}s"
      if on_timeout is not None:
        await on_timeout()
      await self._logs.finish_log(log_id, status="failed", completed_at=self._clock(), error_message=message)
      raise ProviderTimeout(message) from exc
    except Exception as exc:
      await self._logs.finish_log(log_id, status="failed", completed_at=self._clock(), error_message=str(exc) or type(exc).__name__)
      logger.error("Generation failed content_type=%s lesson_id=%s log_id=%s error_type=%s", content_type, lesson.id, log_id, type(exc).__name__)
      raise

    await self._logs.finish_log(log_id, status="completed", completed_at=self._clock(), source_type=final_source, metadata=metadata)
    logger.info("Generation completed content_type=%s lesson_id=%s url=%s", content_type, lesson.id, url)
    return MediaResult(lesson_id=lesson.id, content_type=content_type, url=url, generation_log_id=log_id, source_type=final_source, metadata=metadata)

  async def _run_batch(self, lesson_ids: Sequence[str], job: Callable[[str], Awaitable[MediaResult]]) -> BatchResult:
    """Run jobs with bounded concurrency; one failure never aborts its siblings."""
    semaphore = asyncio.Semaphore(self._batch_concurrency)

    async def _guarded(lesson_id: str) -> BatchItemResult:
      async with semaphore:
        try:
          result = await job(lesson_id)
        except Exception as exc:  # noqa: BLE001 - per-item failures are reported, not raised
          logger.warning("Batch item failed lesson_id=%s error=%s", lesson_id, exc)
          return BatchItemResult(lesson_id=lesson_id, success=False, error=str(exc) or type(exc).__name__)
        return BatchItemResult(lesson_id=lesson_id, success=True, url=result.url)

    results = list(await asyncio.gather(*(_guarded(lesson_id) for lesson_id in lesson_ids)))
    completed = sum(1 for item in results if item.success)
    return BatchResult(completed=completed, failed=len(results) - completed, results=results)
