"""Audit trail for integrity runs, persisted to Postgres."""

from __future__ import annotations

import logging
from datetime import datetime

from divewell.integrity.models import IntegritySummary
from divewell.storage.integrity_runs_repo import IntegrityRunRecord, IntegrityRunRepository

logger = logging.getLogger(__name__)


async def record_integrity_trace(repo: IntegrityRunRepository | None, summary: IntegritySummary, *, trigger: str, started_at: datetime, finished_at: datetime) -> int | None:
  """Log the run and persist it when a repository is configured. Never raises."""
  issue_counts = summary.issue_counts()
  logger.info(
    "content_integrity_audit trigger=%s tracks=%d lessons=%d ok=%s blocking=%d warnings=%d issue_counts=%s",
    trigger,
    summary.stats.tracks_checked,
    summary.stats.lessons_checked,
    summary.ok,
    summary.blocking_issues,
    summary.warning_issues,
    issue_counts,
  )

  # Skip persistence when no database is configured.
  if repo is None:
    return None

  record = IntegrityRunRecord(
    trigger=trigger,
    started_at=started_at,
    finished_at=finished_at,
    ok=summary.ok,
    blocking_issues=summary.blocking_issues,
    warning_issues=summary.warning_issues,
    issue_counts=issue_counts,
    stats=summary.stats.to_wire(),
  )
  try:
    return await repo.insert_run(record)
  except Exception:  # noqa: BLE001 - the trace must never fail the audit
    logger.warning("Failed to persist integrity audit trace trigger=%s", trigger, exc_info=True)
    return None
