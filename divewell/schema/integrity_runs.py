from __future__ import annotations

import datetime

from sqlalchemy import JSON, Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from divewell.core.database import Base


class IntegrityAuditRun(Base):
  __tablename__ = "integrity_audit_runs"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  trigger: Mapped[str] = mapped_column(String, nullable=False)
  started_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
  finished_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
  ok: Mapped[bool] = mapped_column(Boolean, nullable=False)
  blocking_issues: Mapped[int] = mapped_column(Integer, nullable=False)
  warning_issues: Mapped[int] = mapped_column(Integer, nullable=False)
  issue_counts: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
  stats: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
