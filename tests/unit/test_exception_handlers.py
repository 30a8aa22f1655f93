"""Unit tests for API exception sanitization behavior."""

from __future__ import annotations

from divewell.core.exceptions import _error_payload, _sanitize_validation_errors


def test_sanitize_validation_errors_removes_input_and_ctx() -> None:
  """Validation errors must stay JSON-serializable and never echo request payloads."""
  errors = [{"type": "value_error", "loc": ("body", "lessonIds"), "msg": "List should have at most 100 items", "input": ["l1"] * 101, "ctx": {"error": ValueError("too long")}}]
  sanitized = _sanitize_validation_errors(errors)
  assert "input" not in sanitized[0]
  assert "ctx" not in sanitized[0]
  assert sanitized[0]["loc"] == ["body", "lessonIds"]


def test_error_payload_includes_request_id_only_when_known() -> None:
  assert _error_payload("nope", request_id="req-1") == {"detail": "nope", "requestId": "req-1"}
  assert _error_payload("nope") == {"detail": "nope"}
