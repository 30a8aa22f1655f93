"""Import all SQLAlchemy ORM models so Alembic sees a complete metadata graph."""

from __future__ import annotations

# Import ORM modules for side effects so models register with Base.metadata.
import divewell.schema.curriculum  # noqa: F401
import divewell.schema.generation_logs  # noqa: F401
import divewell.schema.integrity_runs  # noqa: F401
