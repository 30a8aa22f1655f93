"""Translate SQLAlchemy failures into the pipeline's infrastructure error."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from divewell.providers.errors import InfrastructureError

logger = logging.getLogger(__name__)


@contextmanager
def translate_db_errors(operation: str) -> Iterator[None]:
  """Re-raise database errors raised inside the block as InfrastructureError."""
  try:
    yield
  except SQLAlchemyError as exc:
    logger.error("Database operation failed operation=%s error_type=%s", operation, type(exc).__name__)
    raise InfrastructureError(f"Database operation '{operation}' failed: {exc}") from exc
