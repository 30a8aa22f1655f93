from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from divewell.api.deps import get_audit_runner
from divewell.api.models import AuditRequest
from divewell.integrity.models import AuditOptions
from divewell.integrity.scheduler import IntegrityAuditRunner

router = APIRouter()


@router.post("/integrity/audit")
async def run_integrity_audit(payload: AuditRequest | None = None, runner: IntegrityAuditRunner = Depends(get_audit_runner)) -> dict[str, Any]:  # noqa: B008
  """Run a manual audit, waiting for any audit already in flight, and return the full summary."""
  request = payload or AuditRequest()
  options = AuditOptions(auto_repair=request.auto_repair, regenerate_media=request.regenerate_media, send_alerts=request.send_alerts, trigger="manual")
  summary = await runner.run(options)
  return summary.to_wire()
