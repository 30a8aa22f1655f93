"""Background scheduling for integrity audits."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from divewell.integrity.auditor import IntegrityAuditor
from divewell.integrity.models import AuditOptions, AuditTrigger, IntegritySummary

logger = logging.getLogger(__name__)


class IntegrityAuditRunner:
  """Serialize audits so two runs never touch the corpus at once."""

  def __init__(self, auditor: IntegrityAuditor) -> None:
    self._auditor = auditor
    self._lock = asyncio.Lock()

  @property
  def busy(self) -> bool:
    return self._lock.locked()

  async def run(self, options: AuditOptions) -> IntegritySummary:
    """Run an audit, waiting for any audit already in flight."""
    async with self._lock:
      return await self._auditor.run(options)

  async def run_if_idle(self, options: AuditOptions) -> IntegritySummary | None:
    """Run an audit unless one is already in flight; return None when skipped."""
    if self._lock.locked():
      logger.info("Integrity audit skipped trigger=%s; previous audit still running", options.trigger)
      return None
    return await self.run(options)


class IntegrityScheduler:
  """Run one audit at startup and then repeat on a fixed interval."""

  def __init__(self, runner: IntegrityAuditRunner, *, interval_hours: float = 24.0) -> None:
    self._runner = runner
    self._interval_seconds = max(1.0, interval_hours) * 3600
    self._task: asyncio.Task[None] | None = None

  @property
  def running(self) -> bool:
    return self._task is not None and not self._task.done()

  def start(self) -> None:
    if self.running:
      return
    self._task = asyncio.create_task(self._loop(), name="integrity-scheduler")
    logger.info("Content integrity scheduler started (%.1fh interval)", self._interval_seconds / 3600)

  async def stop(self) -> None:
    if self._task is None:
      return
    self._task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
      await self._task
    self._task = None
    logger.info("Content integrity scheduler stopped")

  async def tick(self, trigger: AuditTrigger) -> IntegritySummary | None:
    """Run one scheduled audit with every repair option on. Never raises."""
    options = AuditOptions(auto_repair=True, regenerate_media=True, send_alerts=True, trigger=trigger)
    try:
      return await self._runner.run_if_idle(options)
    except Exception:  # noqa: BLE001 - a failed tick must not stop the loop
      logger.error("Content integrity %s audit failed", trigger, exc_info=True)
      return None

  async def _loop(self) -> None:
    await self.tick("startup")
    while True:
      await asyncio.sleep(self._interval_seconds)
      await self.tick("scheduled")
