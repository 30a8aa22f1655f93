from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from divewell import __version__
from divewell.api.routes import generation, integrity
from divewell.core.exceptions import (
  global_exception_handler,
  http_exception_handler,
  infrastructure_error_handler,
  lesson_not_found_handler,
  provider_failure_handler,
  provider_timeout_handler,
  request_validation_exception_handler,
)
from divewell.core.lifespan import lifespan
from divewell.core.middleware import RequestLoggingMiddleware
from divewell.providers.errors import InfrastructureError, ProviderFailure, ProviderTimeout
from divewell.services.lesson_media import LessonNotFoundError


def create_app() -> FastAPI:
  app = FastAPI(title="divewell-engine", version=__version__, lifespan=lifespan)

  app.add_exception_handler(Exception, global_exception_handler)
  app.add_exception_handler(HTTPException, http_exception_handler)
  app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
  app.add_exception_handler(LessonNotFoundError, lesson_not_found_handler)
  app.add_exception_handler(ProviderTimeout, provider_timeout_handler)
  app.add_exception_handler(ProviderFailure, provider_failure_handler)
  app.add_exception_handler(InfrastructureError, infrastructure_error_handler)

  app.add_middleware(RequestLoggingMiddleware)

  @app.get("/health", include_in_schema=False)
  async def health_check() -> dict[str, str]:
    """Return a simple health status."""
    return {"status": "ok", "version": __version__}

  app.include_router(generation.router, prefix="/v1/lessons", tags=["generation"])
  app.include_router(integrity.router, prefix="/admin", tags=["integrity"])
  return app


app = create_app()
