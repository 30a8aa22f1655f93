"""Process entrypoint: exec uvicorn on the divewell app."""

from __future__ import annotations

import logging
import os

logger = logging.getLogger("entrypoint")

DEFAULT_PORT = "8002"


def uvicorn_args() -> list[str]:
  """Build the uvicorn command line from DIVEWELL_HOST and DIVEWELL_PORT."""
  host = os.getenv("DIVEWELL_HOST") or "0.0.0.0"
  port = os.getenv("DIVEWELL_PORT") or DEFAULT_PORT
  return ["uvicorn", "divewell.main:app", "--host", host, "--port", port, "--no-server-header"]


def main() -> None:
  """Launch the service; migrations run in a separate deploy step (alembic upgrade head)."""
  logging.basicConfig(level=logging.INFO)
  args = uvicorn_args()
  logger.info("Starting divewell on %s:%s", args[3], args[5])
  # Replace this process so uvicorn receives SIGTERM directly.
  os.execvp(args[0], args)


if __name__ == "__main__":
  main()
