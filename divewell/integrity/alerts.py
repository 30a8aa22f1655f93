"""Best-effort webhook alerts for integrity audits."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import httpx

from divewell.integrity.models import IntegritySummary

logger = logging.getLogger(__name__)

ALERT_ISSUE_LIMIT = 20


def build_alert_payload(summary: IntegritySummary, *, trigger: str | None, timestamp: datetime) -> dict[str, Any]:
  """Build the webhook body with the issue list truncated to the first 20 entries."""
  payload = summary.to_wire(issue_limit=ALERT_ISSUE_LIMIT)
  return {
    "timestamp": timestamp.isoformat(),
    "trigger": trigger,
    "ok": payload["ok"],
    "blockingIssues": payload["blockingIssues"],
    "warningIssues": payload["warningIssues"],
    "stats": payload["stats"],
    "issues": payload["issues"],
  }


class IntegrityAlertSender:
  """POST audit summaries to an operator webhook; failures are logged, never raised."""

  def __init__(self, http: httpx.AsyncClient, webhook_url: str | None, *, timeout_seconds: float = 10.0, clock: Callable[[], datetime] | None = None) -> None:
    self._http = http
    self._webhook_url = webhook_url
    self._timeout_seconds = timeout_seconds
    self._clock = clock or (lambda: datetime.now(UTC))

  @property
  def enabled(self) -> bool:
    return bool(self._webhook_url)

  async def send(self, summary: IntegritySummary, *, trigger: str | None) -> bool:
    """Deliver one alert; return True when the webhook accepted it."""
    if not self._webhook_url:
      return False

    payload = build_alert_payload(summary, trigger=trigger, timestamp=self._clock())
    try:
      response = await self._http.post(self._webhook_url, json=payload, timeout=self._timeout_seconds)
      response.raise_for_status()
    except Exception:  # noqa: BLE001 - alerts are best-effort
      logger.warning("Content integrity alert failed trigger=%s", trigger, exc_info=True)
      return False

    logger.info("Content integrity alert sent trigger=%s blocking=%d warnings=%d", trigger, summary.blocking_issues, summary.warning_issues)
    return True
