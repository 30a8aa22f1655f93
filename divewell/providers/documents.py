"""Document-generation backend client: submit a deck, poll it, and resolve the exported artifact.

How/Why:
  - The provider runs generation asynchronously, so a submission only returns a generation id.
  - Poll responses are inconsistent about where the exported file lives; `normalize_artifact_ref`
    walks a priority-ordered alias list so the rest of the system only sees `artifact_ref`.
  - Unknown statuses are treated as still pending to avoid false negatives.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Final, Literal

import httpx

from divewell.config import DEFAULT_FAILURE_STATUSES, DEFAULT_SUCCESS_STATUSES, Settings
from divewell.providers.errors import ArtifactNotFound, ProviderFailure, ProviderTimeout

logger = logging.getLogger(__name__)

PollState = Literal["pending", "completed", "failed"]

ARTIFACT_REF_ALIASES: Final[tuple[str, ...]] = (
  "pdfUrl",
  "fileUrl",
  "pdf",
  "url",
  "downloadUrl",
  "gammaUrl",
  "exportUrl",
  "pdfDownloadUrl",
  "export.pdf",
  "exports.pdf",
  "result.pdfUrl",
  "result.url",
)

GENERATION_ID_ALIASES: Final[tuple[str, ...]] = ("generationId", "id")


@dataclass(frozen=True)
class PollResult:
  """Normalized view of a single poll response."""

  state: PollState
  raw_status: str | None
  artifact_ref: str | None = None
  message: str | None = None


def _lookup(payload: Mapping[str, Any], dotted_key: str) -> Any:
  """Resolve a dotted key against nested mappings, returning None when any hop is missing."""
  current: Any = payload
  for part in dotted_key.split("."):
    if not isinstance(current, Mapping):
      return None
    current = current.get(part)
  return current


def normalize_artifact_ref(payload: Mapping[str, Any], aliases: Iterable[str] = ARTIFACT_REF_ALIASES) -> str | None:
  """Return the first non-empty string found under the known artifact field aliases."""
  for alias in aliases:
    value = _lookup(payload, alias)
    if isinstance(value, str) and value.strip():
      return value.strip()
  return None


def classify_status(raw_status: str | None, *, success_statuses: Iterable[str], failure_statuses: Iterable[str]) -> PollState:
  """Map a provider status string onto the internal poll state."""
  normalized = (raw_status or "").strip().lower()
  if normalized in set(success_statuses):
    return "completed"
  if normalized in set(failure_statuses):
    return "failed"
  return "pending"


class DocumentGenerationClient:
  """Submit/poll/fetch contract over the template-based document backend."""

  def __init__(
    self,
    http: httpx.AsyncClient,
    *,
    api_key: str,
    base_url: str,
    poll_interval_seconds: float = 5.0,
    max_poll_attempts: int = 120,
    success_statuses: Iterable[str] = DEFAULT_SUCCESS_STATUSES,
    failure_statuses: Iterable[str] = DEFAULT_FAILURE_STATUSES,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
  ) -> None:
    if not api_key:
      raise ValueError("Document backend API key is required.")
    if max_poll_attempts <= 0:
      raise ValueError("max_poll_attempts must be positive.")
    self._http = http
    self._api_key = api_key
    self._base_url = base_url.rstrip("/")
    self._poll_interval_seconds = poll_interval_seconds
    self._max_poll_attempts = max_poll_attempts
    self._success_statuses = tuple(status.lower() for status in success_statuses)
    self._failure_statuses = tuple(status.lower() for status in failure_statuses)
    self._sleep = sleep

  @classmethod
  def from_settings(cls, http: httpx.AsyncClient, settings: Settings) -> DocumentGenerationClient:
    """Build a client from runtime settings."""
    if not settings.document_api_key:
      raise ValueError("DIVEWELL_DOCUMENT_API_KEY must be set to generate documents.")
    return cls(
      http,
      api_key=settings.document_api_key,
      base_url=settings.document_api_base_url,
      poll_interval_seconds=settings.document_poll_interval_seconds,
      max_poll_attempts=settings.document_max_poll_attempts,
      success_statuses=settings.document_success_statuses,
      failure_statuses=settings.document_failure_statuses,
    )

  async def submit(self, prompt: str, *, template_id: str, export_format: str = "pdf") -> str:
    """Submit a generation request and return the provider's generation id."""
    body = {"gammaId": template_id, "prompt": prompt, "exportAs": export_format}
    payload = await self._request("POST", "/generations/from-template", json=body)

    for alias in GENERATION_ID_ALIASES:
      value = payload.get(alias)
      if isinstance(value, str) and value.strip():
        logger.info("Document generation submitted generation_id=%s", value)
        return value.strip()

    raise ProviderFailure("Document backend did not return a generation id.")

  async def poll(self, generation_id: str) -> PollResult:
    """Fetch the current generation state once."""
    payload = await self._request("GET", f"/generations/{generation_id}", headers={"accept": "application/json"})
    raw_status = payload.get("status")
    raw_status = str(raw_status) if raw_status is not None else None
    state = classify_status(raw_status, success_statuses=self._success_statuses, failure_statuses=self._failure_statuses)
    message = payload.get("error") or payload.get("message")
    if isinstance(message, Mapping):
      message = message.get("message")
    return PollResult(state=state, raw_status=raw_status, artifact_ref=normalize_artifact_ref(payload), message=str(message) if message else None)

  async def wait_for_artifact(self, generation_id: str) -> str:
    """Poll until the generation finishes and return the normalized artifact reference."""
    last_status: str | None = None

    for attempt in range(self._max_poll_attempts):
      # The first poll happens immediately; later ones wait for the fixed interval.
      if attempt > 0:
        await self._sleep(self._poll_interval_seconds)

      result = await self.poll(generation_id)
      last_status = result.raw_status

      if result.state == "completed":
        if result.artifact_ref:
          return result.artifact_ref
        raise ArtifactNotFound(f"Generation {generation_id} completed without an artifact reference.", provider_message=result.message)

      if result.state == "failed":
        raise ProviderFailure(f"Document generation failed: {result.message or 'Unknown error'}", provider_message=result.message)

      if attempt > 0 and attempt % 10 == 0:
        logger.info("Still polling generation_id=%s attempt=%d/%d status=%s", generation_id, attempt, self._max_poll_attempts, last_status)

    raise ProviderTimeout(f"Generation timed out after {self._max_poll_attempts} attempts. Last status: {last_status or 'unknown'}", attempts=self._max_poll_attempts, last_status=last_status)

  async def generate(self, prompt: str, *, template_id: str, export_format: str = "pdf") -> str:
    """Submit a request and wait for its artifact reference."""
    generation_id = await self.submit(prompt, template_id=template_id, export_format=export_format)
    return await self.wait_for_artifact(generation_id)

  async def _request(self, method: str, path: str, *, json: dict[str, Any] | None = None, headers: dict[str, str] | None = None) -> dict[str, Any]:
    """Send an authenticated request and decode the JSON body."""
    request_headers = {"X-API-KEY": self._api_key, "Content-Type": "application/json"}
    if headers:
      request_headers.update(headers)

    try:
      response = await self._http.request(method, f"{self._base_url}{path}", json=json, headers=request_headers)
    except httpx.RequestError as exc:
      raise ProviderFailure(f"Document backend request failed: {exc}") from exc

    if response.is_error:
      logger.error("Document backend returned status=%s path=%s body=%s", response.status_code, path, response.text[:500])
      raise ProviderFailure(f"Document backend error: {response.status_code}", provider_message=response.text, status_code=response.status_code)

    try:
      payload = response.json()
    except ValueError as exc:
      raise ProviderFailure("Document backend returned invalid JSON.") from exc

    if not isinstance(payload, dict):
      raise ProviderFailure("Document backend returned an unexpected payload shape.")
    return payload
