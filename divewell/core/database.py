from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from divewell.config import DatabaseSettings


class Base(DeclarativeBase):
  pass


def database_url(dsn: str | None) -> str | None:
  """Rewrite plain Postgres DSNs to the asyncpg driver."""
  if dsn and dsn.startswith("postgresql://"):
    return dsn.replace("postgresql://", "postgresql+asyncpg://", 1)
  return dsn


def build_engine(settings: DatabaseSettings) -> AsyncEngine | None:
  """Create the async engine, or None when no DSN is configured."""
  url = database_url(settings.pg_dsn)
  if not url:
    return None

  connect_args: dict[str, object] = {}
  if url.startswith("postgresql+asyncpg://"):
    connect_args["timeout"] = settings.pg_connect_timeout
  return create_async_engine(url, echo=settings.debug, future=True, connect_args=connect_args)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
  return async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
