"""Process-wide wiring: build every client and service once and close them at shutdown."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from openai import AsyncOpenAI
from sqlalchemy.ext.asyncio import AsyncEngine

from divewell.config import DatabaseSettings, Settings
from divewell.core.database import build_engine, build_session_factory
from divewell.integrity.alerts import IntegrityAlertSender
from divewell.integrity.auditor import IntegrityAuditor
from divewell.integrity.locks import TrackLockRegistry
from divewell.integrity.registry import TrackRegistry
from divewell.integrity.restore import CurriculumRestorer
from divewell.integrity.scheduler import IntegrityAuditRunner, IntegrityScheduler
from divewell.media.persister import ArtifactPersister
from divewell.media.script_synthesizer import ScriptSynthesizer
from divewell.providers.documents import DocumentGenerationClient
from divewell.providers.openai_chat import OpenAIChatModel
from divewell.providers.speech import SpeechClient
from divewell.services.lesson_media import LessonMediaService
from divewell.storage.backup_source import JsonBackupSource
from divewell.storage.generation_logs_repo import SqlGenerationLogRepository
from divewell.storage.integrity_runs_repo import SqlIntegrityRunRepository
from divewell.storage.sql_curriculum_repo import SqlCurriculumRepository

logger = logging.getLogger(__name__)

HTTP_TIMEOUT = httpx.Timeout(60.0, connect=10.0)


@dataclass
class Runtime:
  """Long-lived collaborators shared by the API and the scheduler."""

  media: LessonMediaService
  runner: IntegrityAuditRunner
  scheduler: IntegrityScheduler | None
  http: httpx.AsyncClient
  openai_client: AsyncOpenAI | None = None
  engine: AsyncEngine | None = None

  async def aclose(self) -> None:
    if self.scheduler is not None:
      await self.scheduler.stop()
    await self.http.aclose()
    if self.openai_client is not None:
      await self.openai_client.close()
    if self.engine is not None:
      await self.engine.dispose()


def build_runtime(settings: Settings) -> Runtime:
  """Construct clients, repositories and services from settings."""
  engine = build_engine(DatabaseSettings(debug=settings.debug, pg_dsn=settings.pg_dsn, pg_connect_timeout=settings.pg_connect_timeout))
  if engine is None:
    raise RuntimeError("Database connection is not configured (DIVEWELL_PG_DSN is missing).")
  session_factory = build_session_factory(engine)

  http = httpx.AsyncClient(timeout=HTTP_TIMEOUT)
  openai_client = AsyncOpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url) if settings.openai_api_key else None

  curriculum = SqlCurriculumRepository(session_factory)
  persister = ArtifactPersister.from_settings(settings, http=http)

  documents = DocumentGenerationClient.from_settings(http, settings) if settings.document_api_key else None
  speech = SpeechClient.from_settings(openai_client, settings) if openai_client else None
  script_model = OpenAIChatModel(openai_client, settings.script_model) if openai_client else None
  if documents is None:
    logger.warning("Document backend key missing; PDF generation is disabled.")
  if openai_client is None:
    logger.warning("OPENAI_API_KEY missing; podcast generation is disabled.")

  media = LessonMediaService(
    curriculum=curriculum,
    generation_logs=SqlGenerationLogRepository(session_factory),
    persister=persister,
    synthesizer=ScriptSynthesizer(script_model, use_generative=settings.script_use_generative),
    documents=documents,
    speech=speech,
    template_id=settings.document_template_id,
    export_format=settings.document_export_format,
    keep_remote_on_fetch_failure=settings.document_keep_remote_on_fetch_failure,
    podcast_timeout_seconds=settings.podcast_timeout_seconds,
    batch_concurrency=settings.batch_concurrency,
    default_use_generative=settings.script_use_generative,
  )

  registry = TrackRegistry()
  restorer = CurriculumRestorer(curriculum=curriculum, backup=JsonBackupSource(settings.backup_path), registry=registry, locks=TrackLockRegistry(), persister=persister)
  auditor = IntegrityAuditor(
    curriculum=curriculum,
    registry=registry,
    restorer=restorer,
    persister=persister,
    http=http,
    media=media,
    alerts=IntegrityAlertSender(http, settings.alert_webhook_url, timeout_seconds=settings.alert_timeout_seconds),
    trace_repo=SqlIntegrityRunRepository(session_factory),
  )
  runner = IntegrityAuditRunner(auditor)
  scheduler = IntegrityScheduler(runner, interval_hours=settings.integrity_interval_hours) if settings.integrity_scheduler_enabled else None

  return Runtime(media=media, runner=runner, scheduler=scheduler, http=http, openai_client=openai_client, engine=engine)
