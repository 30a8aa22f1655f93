"""Read-only JSON backup of the curriculum used by registry-driven restores.

The file holds `{"tracks": [{"slug", "title", "summary?", "isPublished?", "lessons": [...]}]}` where
each lesson carries `title`, `content` and optionally `order`, `objectives`, `estimatedMinutes`,
`podcastUrl` and `pdfUrl`.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from starlette.concurrency import run_in_threadpool

from divewell.providers.errors import InfrastructureError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BackupLesson:
  title: str
  order: int
  content: str
  objectives: tuple[str, ...] = ()
  estimated_minutes: int = 60
  podcast_url: str | None = None
  pdf_url: str | None = None


@dataclass(frozen=True)
class BackupTrack:
  slug: str
  title: str
  summary: str | None
  is_published: bool
  lessons: tuple[BackupLesson, ...]


def _parse_lesson(raw: Mapping[str, Any], position: int) -> BackupLesson:
  objectives = raw.get("objectives") or ()
  if isinstance(objectives, str):
    objectives = json.loads(objectives)
  return BackupLesson(
    title=str(raw["title"]),
    order=int(raw.get("order") or position),
    content=str(raw.get("content") or ""),
    objectives=tuple(str(item) for item in objectives),
    estimated_minutes=int(raw.get("estimatedMinutes") or 60),
    podcast_url=raw.get("podcastUrl") or None,
    pdf_url=raw.get("pdfUrl") or None,
  )


def parse_backup(payload: Mapping[str, Any]) -> dict[str, BackupTrack]:
  """Parse a backup payload into tracks keyed by slug."""
  tracks: dict[str, BackupTrack] = {}
  for raw_track in payload.get("tracks") or []:
    lessons = tuple(_parse_lesson(raw, index) for index, raw in enumerate(raw_track.get("lessons") or [], start=1))
    published = raw_track.get("isPublished")
    track = BackupTrack(
      slug=str(raw_track["slug"]),
      title=str(raw_track["title"]),
      summary=raw_track.get("summary"),
      is_published=published not in (False, 0),
      lessons=tuple(sorted(lessons, key=lambda lesson: lesson.order)),
    )
    tracks[track.slug] = track
  return tracks


def _read_json(path: Path) -> Any:
  with path.open(encoding="utf-8") as handle:
    return json.load(handle)


class JsonBackupSource:
  """Load the curriculum backup from a JSON file on every call."""

  def __init__(self, path: str | Path) -> None:
    self.path = Path(path)

  async def load(self) -> dict[str, BackupTrack]:
    """Return backup tracks keyed by slug; an unreadable backup raises InfrastructureError."""
    try:
      payload = await run_in_threadpool(_read_json, self.path)
      if not isinstance(payload, Mapping):
        raise ValueError("backup root must be a JSON object")
      tracks = parse_backup(payload)
    except (OSError, ValueError, KeyError, TypeError) as exc:
      raise InfrastructureError(f"Cannot read curriculum backup at {self.path}: {exc}") from exc

    logger.debug("Loaded curriculum backup path=%s tracks=%d", self.path, len(tracks))
    return tracks
