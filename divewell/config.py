"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from divewell.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

DEFAULT_SUCCESS_STATUSES = ("completed", "done", "success", "finished")
DEFAULT_FAILURE_STATUSES = ("failed", "error", "cancelled", "canceled")


@dataclass(frozen=True)
class Settings:
  """Typed settings for the content pipeline service."""

  environment: str
  debug: bool
  log_max_bytes: int
  log_backup_count: int
  pg_dsn: str | None
  pg_connect_timeout: int
  storage_root: str
  public_prefix: str
  document_category: str
  document_api_base_url: str
  document_api_key: str | None
  document_template_id: str
  document_export_format: str
  document_poll_interval_seconds: float
  document_max_poll_attempts: int
  document_success_statuses: tuple[str, ...]
  document_failure_statuses: tuple[str, ...]
  document_keep_remote_on_fetch_failure: bool
  openai_api_key: str | None
  openai_base_url: str | None
  speech_model: str
  speech_voice: str
  speech_format: str
  speech_max_chars: int
  speech_concurrency: int
  script_model: str
  script_use_generative: bool
  podcast_timeout_seconds: int
  batch_concurrency: int
  alert_webhook_url: str | None
  alert_timeout_seconds: int
  integrity_scheduler_enabled: bool
  integrity_interval_hours: float
  backup_path: str


@dataclass(frozen=True)
class DatabaseSettings:
  """Typed settings for database connectivity."""

  debug: bool
  pg_dsn: str | None
  pg_connect_timeout: int


def _parse_bool(raw: str | None, *, default: bool = False) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None or not raw.strip():
    return default

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  """Return a stripped string or None when the value is blank."""
  if raw is None:
    return None
  value = raw.strip()
  return value or None


def _parse_positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


def _parse_statuses(raw: str | None, default: tuple[str, ...]) -> tuple[str, ...]:
  """Parse a comma-separated status alias list into lowercase tokens."""
  if not raw:
    return default
  statuses = tuple(item.strip().lower() for item in raw.split(",") if item.strip())
  return statuses or default


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("DIVEWELL_ENV", "development").lower()

  # Toggle verbose error output and SQL echo in non-production environments.
  debug = _parse_bool(os.getenv("DIVEWELL_DEBUG"))

  log_max_bytes = _parse_positive_int("DIVEWELL_LOG_MAX_BYTES", "5242880")  # 5MB default
  log_backup_count = int(os.getenv("DIVEWELL_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("DIVEWELL_LOG_BACKUP_COUNT must be zero or a positive integer.")

  poll_interval = float(os.getenv("DIVEWELL_DOCUMENT_POLL_INTERVAL_SECONDS", "5"))
  if poll_interval < 0:
    raise ValueError("DIVEWELL_DOCUMENT_POLL_INTERVAL_SECONDS must not be negative.")

  # The speech backend rejects inputs over 4096 characters.
  speech_max_chars = _parse_positive_int("DIVEWELL_SPEECH_MAX_CHARS", "4096")
  if speech_max_chars > 4096:
    raise ValueError("DIVEWELL_SPEECH_MAX_CHARS must not exceed 4096.")

  # Clamp the audit interval to at least one hour so a typo cannot hammer the corpus.
  interval_hours = max(1.0, float(os.getenv("DIVEWELL_INTEGRITY_INTERVAL_HOURS", "24")))

  return Settings(
    environment=environment,
    debug=debug,
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    pg_dsn=_optional_str(os.getenv("DIVEWELL_PG_DSN")) or _optional_str(os.getenv("DATABASE_URL")),
    pg_connect_timeout=_parse_positive_int("DIVEWELL_PG_CONNECT_TIMEOUT", "5"),
    storage_root=(os.getenv("DIVEWELL_STORAGE_ROOT") or "./uploads").strip(),
    public_prefix="/" + (os.getenv("DIVEWELL_PUBLIC_PREFIX") or "/uploads").strip().strip("/"),
    document_category=(os.getenv("DIVEWELL_DOCUMENT_CATEGORY") or "diver-well-training").strip(),
    document_api_base_url=(os.getenv("DIVEWELL_DOCUMENT_API_BASE_URL") or "https://public-api.gamma.app/v1.0").strip().rstrip("/"),
    document_api_key=_optional_str(os.getenv("DIVEWELL_DOCUMENT_API_KEY")) or _optional_str(os.getenv("GAMMA_API_KEY")),
    document_template_id=(os.getenv("DIVEWELL_DOCUMENT_TEMPLATE_ID") or "g_y8099ohiceag889").strip(),
    document_export_format=(os.getenv("DIVEWELL_DOCUMENT_EXPORT_FORMAT") or "pdf").strip().lower(),
    document_poll_interval_seconds=poll_interval,
    document_max_poll_attempts=_parse_positive_int("DIVEWELL_DOCUMENT_MAX_POLL_ATTEMPTS", "120"),
    document_success_statuses=_parse_statuses(os.getenv("DIVEWELL_DOCUMENT_SUCCESS_STATUSES"), DEFAULT_SUCCESS_STATUSES),
    document_failure_statuses=_parse_statuses(os.getenv("DIVEWELL_DOCUMENT_FAILURE_STATUSES"), DEFAULT_FAILURE_STATUSES),
    document_keep_remote_on_fetch_failure=_parse_bool(os.getenv("DIVEWELL_DOCUMENT_KEEP_REMOTE_ON_FETCH_FAILURE"), default=True),
    openai_api_key=_optional_str(os.getenv("OPENAI_API_KEY")),
    openai_base_url=_optional_str(os.getenv("OPENAI_BASE_URL")),
    speech_model=(os.getenv("DIVEWELL_SPEECH_MODEL") or "tts-1").strip(),
    speech_voice=(os.getenv("DIVEWELL_SPEECH_VOICE") or "alloy").strip(),
    speech_format=(os.getenv("DIVEWELL_SPEECH_FORMAT") or "mp3").strip(),
    speech_max_chars=speech_max_chars,
    speech_concurrency=_parse_positive_int("DIVEWELL_SPEECH_CONCURRENCY", "2"),
    script_model=(os.getenv("DIVEWELL_SCRIPT_MODEL") or "gpt-4o-mini").strip(),
    script_use_generative=_parse_bool(os.getenv("DIVEWELL_SCRIPT_USE_GENERATIVE"), default=True),
    podcast_timeout_seconds=_parse_positive_int("DIVEWELL_PODCAST_TIMEOUT_SECONDS", "900"),
    batch_concurrency=_parse_positive_int("DIVEWELL_BATCH_CONCURRENCY", "3"),
    alert_webhook_url=_optional_str(os.getenv("DIVEWELL_ALERT_WEBHOOK_URL")) or _optional_str(os.getenv("CONTENT_ALERT_WEBHOOK_URL")),
    alert_timeout_seconds=_parse_positive_int("DIVEWELL_ALERT_TIMEOUT_SECONDS", "10"),
    integrity_scheduler_enabled=_parse_bool(os.getenv("DIVEWELL_INTEGRITY_SCHEDULER_ENABLED"), default=True) and environment != "test",
    integrity_interval_hours=interval_hours,
    backup_path=(os.getenv("DIVEWELL_BACKUP_PATH") or "./backups/tracks-lessons-backup.json").strip(),
  )


@lru_cache(maxsize=1)
def get_database_settings() -> DatabaseSettings:
  """Load database settings without requiring the rest of the runtime configuration."""
  debug = _parse_bool(os.getenv("DIVEWELL_DEBUG"))
  pg_connect_timeout = _parse_positive_int("DIVEWELL_PG_CONNECT_TIMEOUT", "5")
  pg_dsn = _optional_str(os.getenv("DIVEWELL_PG_DSN")) or _optional_str(os.getenv("DATABASE_URL"))
  return DatabaseSettings(debug=debug, pg_dsn=pg_dsn, pg_connect_timeout=pg_connect_timeout)
