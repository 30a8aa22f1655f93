from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MAX_BATCH_SIZE = 100


class CamelModel(BaseModel):
  """Accept and emit camelCase keys on the wire."""

  model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class PodcastRequest(CamelModel):
  use_generative_script: bool | None = None
  voice: str | None = Field(default=None, min_length=1, max_length=32)


class BatchRequest(CamelModel):
  lesson_ids: list[str] = Field(min_length=1, max_length=MAX_BATCH_SIZE)


class PodcastBatchRequest(BatchRequest, PodcastRequest):
  pass


class MediaResponse(CamelModel):
  lesson_id: str
  content_type: Literal["pdf", "podcast"]
  url: str
  generation_log_id: str
  source_type: str
  metadata: dict[str, Any]


class BatchItemResponse(CamelModel):
  lesson_id: str
  success: bool
  url: str | None = None
  error: str | None = None


class BatchResponse(CamelModel):
  completed: int
  failed: int
  results: list[BatchItemResponse]


class QuizPayload(BaseModel):
  model_config = ConfigDict(extra="allow")

  questions: list[Any] = Field(default_factory=list)


class LessonValidationRequest(BaseModel):
  """A generated lesson to check; extra keys are ignored."""

  model_config = ConfigDict(extra="ignore")

  content: str = ""
  objectives: list[str] = Field(default_factory=list)
  quiz: QuizPayload | None = None


class ValidationIssueResponse(BaseModel):
  field: str
  message: str
  severity: str


class LessonValidationResponse(CamelModel):
  passed: bool
  issues: list[ValidationIssueResponse]
  compliance_score: int


class AuditRequest(CamelModel):
  auto_repair: bool = False
  regenerate_media: bool = False
  send_alerts: bool = False
