from __future__ import annotations

import datetime

from sqlalchemy import JSON, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from divewell.core.database import Base


class GenerationLog(Base):
  """One row per generation job; updated to processing, then once to a terminal status."""

  __tablename__ = "generation_logs"

  id: Mapped[str] = mapped_column(String, primary_key=True)
  lesson_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
  track_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
  content_type: Mapped[str] = mapped_column(String, nullable=False)
  source_type: Mapped[str] = mapped_column(String, nullable=False)
  status: Mapped[str] = mapped_column(String, nullable=False, index=True)
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
  started_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  completed_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
  metadata_json: Mapped[dict | None] = mapped_column(JSON, nullable=True)
