"""Storage for integrity audit run traces."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from divewell.schema.integrity_runs import IntegrityAuditRun
from divewell.storage.db_errors import translate_db_errors


@dataclass(frozen=True)
class IntegrityRunRecord:
  trigger: str
  started_at: datetime
  finished_at: datetime
  ok: bool
  blocking_issues: int
  warning_issues: int
  issue_counts: dict[str, int]
  stats: dict[str, Any]


class IntegrityRunRepository(Protocol):
  async def insert_run(self, record: IntegrityRunRecord) -> int:
    """Persist one audit run and return its id."""


class SqlIntegrityRunRepository:
  def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
    self._session_factory = session_factory

  async def insert_run(self, record: IntegrityRunRecord) -> int:
    with translate_db_errors("insert_integrity_run"):
      async with self._session_factory() as session:
        row = IntegrityAuditRun(
          trigger=record.trigger,
          started_at=record.started_at,
          finished_at=record.finished_at,
          ok=record.ok,
          blocking_issues=record.blocking_issues,
          warning_issues=record.warning_issues,
          issue_counts=dict(record.issue_counts),
          stats=dict(record.stats),
        )
        session.add(row)
        await session.flush()
        await session.commit()
        return row.id
