"""Map pipeline errors onto HTTP responses without leaking provider payloads."""

import logging
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from divewell.providers.errors import InfrastructureError, ProviderFailure, ProviderTimeout
from divewell.services.lesson_media import LessonNotFoundError

logger = logging.getLogger("uvicorn.error")


def _error_payload(detail: Any, *, request_id: str | None = None) -> dict[str, Any]:
  payload: dict[str, Any] = {"detail": detail}
  # Attach a request id so support can correlate client reports to server logs.
  if request_id:
    payload["requestId"] = request_id
  return payload


def _request_id(request: Request) -> str | None:
  return getattr(request.state, "request_id", None)


def _sanitize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
  """Return validation errors without raw input payloads."""
  sanitized: list[dict[str, Any]] = []
  for error in errors:
    scrubbed = {key: value for key, value in error.items() if key not in {"input", "ctx"}}
    scrubbed["loc"] = [str(part) for part in scrubbed.get("loc", ())]
    sanitized.append(scrubbed)
  return sanitized


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
  request_id = _request_id(request)
  logger.error("Global exception request_id=%s path=%s error_type=%s", request_id, request.url.path, type(exc).__name__, exc_info=True)
  return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_payload("Internal Server Error", request_id=request_id))


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
  request_id = _request_id(request)
  if exc.status_code >= 500:
    logger.error("HTTPException request_id=%s path=%s status_code=%s detail=%s", request_id, request.url.path, exc.status_code, exc.detail)
  return JSONResponse(status_code=exc.status_code, content=_error_payload(exc.detail, request_id=request_id))


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
  request_id = _request_id(request)
  sanitized_errors = _sanitize_validation_errors(list(exc.errors()))
  logger.warning("Request validation failed request_id=%s path=%s errors=%s", request_id, request.url.path, sanitized_errors)
  return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=_error_payload(sanitized_errors, request_id=request_id))


async def lesson_not_found_handler(request: Request, exc: LessonNotFoundError) -> JSONResponse:
  return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=_error_payload(str(exc), request_id=_request_id(request)))


async def provider_timeout_handler(request: Request, exc: ProviderTimeout) -> JSONResponse:
  request_id = _request_id(request)
  logger.warning("Provider timeout request_id=%s path=%s attempts=%s last_status=%s", request_id, request.url.path, exc.attempts, exc.last_status)
  return JSONResponse(status_code=status.HTTP_504_GATEWAY_TIMEOUT, content=_error_payload("Generation timed out; retry later.", request_id=request_id))


async def provider_failure_handler(request: Request, exc: ProviderFailure) -> JSONResponse:
  request_id = _request_id(request)
  # The provider message stays in the logs; callers get a generic description.
  logger.error("Provider failure request_id=%s path=%s error_type=%s status_code=%s provider_message=%s", request_id, request.url.path, type(exc).__name__, exc.status_code, exc.provider_message)
  return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=_error_payload(f"Generation backend failed ({type(exc).__name__}).", request_id=request_id))


async def infrastructure_error_handler(request: Request, exc: InfrastructureError) -> JSONResponse:
  request_id = _request_id(request)
  logger.error("Infrastructure error request_id=%s path=%s", request_id, request.url.path, exc_info=True)
  return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=_error_payload("Storage or database unavailable.", request_id=request_id))
