"""Shared FastAPI dependencies."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from divewell.integrity.scheduler import IntegrityAuditRunner
from divewell.services.lesson_media import LessonMediaService
from divewell.services.runtime import Runtime


def get_runtime(request: Request) -> Runtime:
  """Return the runtime built at startup."""
  runtime: Runtime | None = getattr(request.app.state, "runtime", None)
  if runtime is None:
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service is still starting up.")
  return runtime


def get_media_service(request: Request) -> LessonMediaService:
  return get_runtime(request).media


def get_audit_runner(request: Request) -> IntegrityAuditRunner:
  return get_runtime(request).runner
