import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from divewell.config import get_settings
from divewell.core.logging import initialize_logging
from divewell.services.runtime import build_runtime


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Build the runtime, start the integrity scheduler and tear both down on shutdown."""
  settings = get_settings()
  logger = logging.getLogger("divewell.core.lifespan")

  try:
    initialize_logging(settings)
  except RuntimeError:
    # Keep serving with default handlers when the log directory is unusable.
    logger.warning("Logging setup failed; continuing with default handlers.", exc_info=True)

  # Tests and embedding callers may inject a prebuilt runtime.
  runtime = getattr(app.state, "runtime", None)
  owns_runtime = runtime is None
  if owns_runtime:
    runtime = build_runtime(settings)
    app.state.runtime = runtime

  if runtime.scheduler is not None:
    runtime.scheduler.start()
  else:
    logger.info("Content integrity scheduler disabled for environment=%s", settings.environment)

  logger.info("Startup complete environment=%s", settings.environment)
  try:
    yield
  finally:
    if owns_runtime:
      await runtime.aclose()
      app.state.runtime = None
    elif runtime.scheduler is not None:
      await runtime.scheduler.stop()
