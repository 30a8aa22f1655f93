from __future__ import annotations

import json
from datetime import UTC, datetime

import httpx
import pytest

from divewell.integrity.alerts import ALERT_ISSUE_LIMIT, IntegrityAlertSender, build_alert_payload
from divewell.integrity.models import IntegrityIssue, IntegrityStats, IntegritySummary, IssueType

NOW = datetime(2026, 3, 1, 6, 0, tzinfo=UTC)


def _summary(issue_count: int) -> IntegritySummary:
  issues = [IntegrityIssue("warning", IssueType.MISSING_PDF_URL, f"Lesson {index} missing PDF URL.", track_slug="alst", lesson_id=f"l{index}") for index in range(issue_count)]
  issues.append(IntegrityIssue("critical", IssueType.MISSING_TRACK, "Track missing: lst", track_slug="lst"))
  return IntegritySummary.from_issues(issues, IntegrityStats(tracks_checked=9))


def test_payload_truncates_issues_but_keeps_full_counts() -> None:
  payload = build_alert_payload(_summary(30), trigger="scheduled", timestamp=NOW)

  assert len(payload["issues"]) == ALERT_ISSUE_LIMIT
  assert payload["warningIssues"] == 30
  assert payload["blockingIssues"] == 1
  assert payload["ok"] is False
  assert payload["trigger"] == "scheduled"
  assert payload["timestamp"] == NOW.isoformat()
  assert payload["stats"]["tracksChecked"] == 9
  assert payload["issues"][0] == {"severity": "warning", "type": "missing_pdf_url", "message": "Lesson 0 missing PDF URL.", "trackSlug": "alst", "lessonId": "l0"}


@pytest.mark.anyio
async def test_send_posts_payload_to_webhook() -> None:
  received: list[dict] = []

  def handler(request: httpx.Request) -> httpx.Response:
    received.append(json.loads(request.content))
    return httpx.Response(204)

  sender = IntegrityAlertSender(httpx.AsyncClient(transport=httpx.MockTransport(handler)), "https://hooks.test/alert", clock=lambda: NOW)

  assert await sender.send(_summary(2), trigger="manual") is True
  assert received[0]["blockingIssues"] == 1


@pytest.mark.anyio
async def test_send_failure_is_logged_not_raised() -> None:
  def handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(500)

  sender = IntegrityAlertSender(httpx.AsyncClient(transport=httpx.MockTransport(handler)), "https://hooks.test/alert")

  assert await sender.send(_summary(1), trigger="scheduled") is False


@pytest.mark.anyio
async def test_send_without_webhook_is_a_no_op() -> None:
  def handler(request: httpx.Request) -> httpx.Response:
    raise AssertionError("no request expected")

  sender = IntegrityAlertSender(httpx.AsyncClient(transport=httpx.MockTransport(handler)), None)

  assert sender.enabled is False
  assert await sender.send(_summary(1), trigger="manual") is False
