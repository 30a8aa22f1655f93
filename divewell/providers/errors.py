"""Error taxonomy shared by the generation and integrity pipelines."""

from __future__ import annotations


class PipelineError(Exception):
  """Base class for all content pipeline failures."""


class ProviderError(PipelineError):
  """Base class for failures reported by a third-party generation backend."""


class ProviderTimeout(ProviderError):
  """Raised when a generation job runs out of time without a terminal status; retryable later."""

  def __init__(self, message: str, *, attempts: int | None = None, last_status: str | None = None) -> None:
    super().__init__(message)
    self.attempts = attempts
    self.last_status = last_status


class ProviderFailure(ProviderError):
  """Raised when a backend explicitly fails, cancels, or rejects a request."""

  def __init__(self, message: str, *, provider_message: str | None = None, status_code: int | None = None) -> None:
    super().__init__(message)
    self.provider_message = provider_message
    self.status_code = status_code


class ArtifactNotFound(ProviderFailure):
  """Raised when a backend reports success but no artifact can be located."""


class ArtifactFetchError(ProviderFailure):
  """Raised when every download strategy for a remote artifact fails."""


class InfrastructureError(PipelineError):
  """Raised when storage or the database is unreachable; aborts the current operation."""
