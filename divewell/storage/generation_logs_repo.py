"""Storage interfaces and SQLAlchemy implementation for generation job logs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal, Protocol

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from divewell.schema.generation_logs import GenerationLog
from divewell.storage.db_errors import translate_db_errors

logger = logging.getLogger(__name__)

ContentType = Literal["pdf", "podcast"]
GenerationStatus = Literal["pending", "processing", "completed", "failed"]
TERMINAL_STATUSES: frozenset[str] = frozenset({"completed", "failed"})


@dataclass(frozen=True)
class GenerationLogRecord:
  """One generation job's history row."""

  id: str
  lesson_id: str | None
  track_id: str | None
  content_type: ContentType
  source_type: str
  status: GenerationStatus
  created_at: datetime
  started_at: datetime | None = None
  completed_at: datetime | None = None
  error_message: str | None = None
  metadata: dict[str, Any] | None = None


class GenerationLogRepository(Protocol):
  """Repository contract for append-only generation logs."""

  async def create_log(self, record: GenerationLogRecord) -> None:
    """Insert the pending row for a new job."""

  async def mark_processing(self, log_id: str, *, started_at: datetime) -> None:
    """Move a pending row to processing."""

  async def finish_log(self, log_id: str, *, status: GenerationStatus, completed_at: datetime, source_type: str | None = None, error_message: str | None = None, metadata: dict[str, Any] | None = None) -> None:
    """Apply the single terminal update."""

  async def get_log(self, log_id: str) -> GenerationLogRecord | None:
    """Fetch a log row."""


class SqlGenerationLogRepository:
  """Persist generation logs through an injected async session factory."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
    self._session_factory = session_factory

  async def create_log(self, record: GenerationLogRecord) -> None:
    with translate_db_errors("create_generation_log"):
      async with self._session_factory() as session:
        session.add(
          GenerationLog(
            id=record.id,
            lesson_id=record.lesson_id,
            track_id=record.track_id,
            content_type=record.content_type,
            source_type=record.source_type,
            status=record.status,
            created_at=record.created_at,
            metadata_json=record.metadata,
          )
        )
        await session.commit()

  async def mark_processing(self, log_id: str, *, started_at: datetime) -> None:
    with translate_db_errors("mark_generation_processing"):
      async with self._session_factory() as session:
        # Only pending rows may move to processing.
        await session.execute(update(GenerationLog).where(GenerationLog.id == log_id, GenerationLog.status == "pending").values(status="processing", started_at=started_at))
        await session.commit()

  async def finish_log(self, log_id: str, *, status: GenerationStatus, completed_at: datetime, source_type: str | None = None, error_message: str | None = None, metadata: dict[str, Any] | None = None) -> None:
    if status not in TERMINAL_STATUSES:
      raise ValueError(f"finish_log requires a terminal status, got {status!r}.")

    values: dict[str, Any] = {"status": status, "completed_at": completed_at, "error_message": error_message, "metadata_json": metadata}
    if source_type is not None:
      values["source_type"] = source_type

    with translate_db_errors("finish_generation_log"):
      async with self._session_factory() as session:
        result = await session.execute(update(GenerationLog).where(GenerationLog.id == log_id, GenerationLog.status.not_in(TERMINAL_STATUSES)).values(**values))
        await session.commit()
        if result.rowcount == 0:
          logger.warning("Generation log %s was already terminal or missing; terminal update skipped", log_id)

  async def get_log(self, log_id: str) -> GenerationLogRecord | None:
    with translate_db_errors("get_generation_log"):
      async with self._session_factory() as session:
        row = await session.get(GenerationLog, log_id)
        if row is None:
          return None
        return GenerationLogRecord(
          id=row.id,
          lesson_id=row.lesson_id,
          track_id=row.track_id,
          content_type=row.content_type,  # type: ignore[arg-type]
          source_type=row.source_type,
          status=row.status,  # type: ignore[arg-type]
          created_at=row.created_at,
          started_at=row.started_at,
          completed_at=row.completed_at,
          error_message=row.error_message,
          metadata=row.metadata_json,
        )
