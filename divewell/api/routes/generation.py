from __future__ import annotations

from fastapi import APIRouter, Depends

from divewell.api.deps import get_media_service
from divewell.api.models import BatchItemResponse, BatchRequest, BatchResponse, LessonValidationRequest, LessonValidationResponse, MediaResponse, PodcastBatchRequest, PodcastRequest, ValidationIssueResponse
from divewell.integrity.validator import GeneratedLesson, validate_lesson
from divewell.services.lesson_media import BatchResult, LessonMediaService, MediaResult

router = APIRouter()


def _media_response(result: MediaResult) -> MediaResponse:
  return MediaResponse(lesson_id=result.lesson_id, content_type=result.content_type, url=result.url, generation_log_id=result.generation_log_id, source_type=result.source_type, metadata=result.metadata)


def _batch_response(result: BatchResult) -> BatchResponse:
  items = [BatchItemResponse(lesson_id=item.lesson_id, success=item.success, url=item.url, error=item.error) for item in result.results]
  return BatchResponse(completed=result.completed, failed=result.failed, results=items)


@router.post("/validate", response_model=LessonValidationResponse)
async def validate_generated_lesson(payload: LessonValidationRequest) -> LessonValidationResponse:
  """Run the structural compliance checks on a generated lesson."""
  questions = tuple(payload.quiz.questions) if payload.quiz else ()
  report = validate_lesson(GeneratedLesson(content=payload.content, objectives=tuple(payload.objectives), quiz_questions=questions))
  issues = [ValidationIssueResponse(field=issue.field, message=issue.message, severity=issue.severity) for issue in report.issues]
  return LessonValidationResponse(passed=report.passed, issues=issues, compliance_score=report.compliance_score)


@router.post("/pdf/batch", response_model=BatchResponse)
async def generate_pdf_batch(payload: BatchRequest, media: LessonMediaService = Depends(get_media_service)) -> BatchResponse:  # noqa: B008
  """Generate PDFs for several lessons, at most three at a time."""
  return _batch_response(await media.generate_pdf_batch(payload.lesson_ids))


@router.post("/podcast/batch", response_model=BatchResponse)
async def generate_podcast_batch(payload: PodcastBatchRequest, media: LessonMediaService = Depends(get_media_service)) -> BatchResponse:  # noqa: B008
  """Generate podcasts for several lessons."""
  result = await media.generate_podcast_batch(payload.lesson_ids, use_generative=payload.use_generative_script, voice=payload.voice)
  return _batch_response(result)


@router.post("/{lesson_id}/pdf", response_model=MediaResponse)
async def generate_lesson_pdf(lesson_id: str, media: LessonMediaService = Depends(get_media_service)) -> MediaResponse:  # noqa: B008
  """Generate a PDF deck for one lesson."""
  return _media_response(await media.generate_pdf(lesson_id))


@router.post("/{lesson_id}/podcast", response_model=MediaResponse)
async def generate_lesson_podcast(lesson_id: str, payload: PodcastRequest | None = None, media: LessonMediaService = Depends(get_media_service)) -> MediaResponse:  # noqa: B008
  """Generate a narrated podcast for one lesson."""
  options = payload or PodcastRequest()
  return _media_response(await media.generate_podcast(lesson_id, use_generative=options.use_generative_script, voice=options.voice))
