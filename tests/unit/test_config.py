from __future__ import annotations

import pytest

from divewell.config import DEFAULT_SUCCESS_STATUSES, get_database_settings, get_settings
from divewell.core.database import database_url


@pytest.fixture(autouse=True)
def _fresh_settings():
  get_settings.cache_clear()
  get_database_settings.cache_clear()
  yield
  get_settings.cache_clear()
  get_database_settings.cache_clear()


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
  for name in ("DIVEWELL_DOCUMENT_SUCCESS_STATUSES", "DIVEWELL_BATCH_CONCURRENCY", "DIVEWELL_PUBLIC_PREFIX", "DIVEWELL_ENV"):
    monkeypatch.delenv(name, raising=False)

  settings = get_settings()

  assert settings.document_success_statuses == DEFAULT_SUCCESS_STATUSES
  assert settings.batch_concurrency == 3
  assert settings.public_prefix == "/uploads"
  assert settings.speech_max_chars <= 4096


def test_status_aliases_are_configurable(monkeypatch: pytest.MonkeyPatch) -> None:
  monkeypatch.setenv("DIVEWELL_DOCUMENT_SUCCESS_STATUSES", "Ready, EXPORTED ,")
  assert get_settings().document_success_statuses == ("ready", "exported")


def test_speech_limit_cannot_exceed_backend_cap(monkeypatch: pytest.MonkeyPatch) -> None:
  monkeypatch.setenv("DIVEWELL_SPEECH_MAX_CHARS", "5000")
  with pytest.raises(ValueError):
    get_settings()


def test_scheduler_disabled_in_test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
  monkeypatch.setenv("DIVEWELL_ENV", "test")
  monkeypatch.setenv("DIVEWELL_INTEGRITY_SCHEDULER_ENABLED", "true")
  assert get_settings().integrity_scheduler_enabled is False


def test_database_url_rewrites_plain_postgres_dsn(monkeypatch: pytest.MonkeyPatch) -> None:
  monkeypatch.setenv("DIVEWELL_PG_DSN", "postgresql://user:pw@db:5432/divewell")
  assert database_url(get_database_settings().pg_dsn) == "postgresql+asyncpg://user:pw@db:5432/divewell"
  assert database_url("sqlite+aiosqlite:///x.db") == "sqlite+aiosqlite:///x.db"
