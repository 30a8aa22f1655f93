"""Expected-state registry for the core curriculum."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True)
class TrackExpectation:
  slug: str
  expected_lessons: int


CORE_TRACKS: tuple[TrackExpectation, ...] = (
  TrackExpectation("ndt-inspection", 12),
  TrackExpectation("diver-medic", 12),
  TrackExpectation("commercial-supervisor", 12),
  TrackExpectation("saturation-diving", 12),
  TrackExpectation("underwater-welding", 12),
  TrackExpectation("hyperbaric-operations", 12),
  TrackExpectation("alst", 12),
  TrackExpectation("lst", 12),
  TrackExpectation("air-diver-certification", 12),
  TrackExpectation("client-representative", 6),
)


class TrackRegistry:
  """Ordered, read-only mapping of track slug to expected lesson count."""

  def __init__(self, tracks: tuple[TrackExpectation, ...] = CORE_TRACKS) -> None:
    slugs = [track.slug for track in tracks]
    if len(set(slugs)) != len(slugs):
      raise ValueError("Track registry slugs must be unique.")
    self._tracks = tracks
    self._by_slug: Mapping[str, TrackExpectation] = MappingProxyType({track.slug: track for track in tracks})

  def __iter__(self):
    return iter(self._tracks)

  def __len__(self) -> int:
    return len(self._tracks)

  @property
  def slugs(self) -> tuple[str, ...]:
    return tuple(track.slug for track in self._tracks)

  def expected_lessons(self, slug: str) -> int:
    expectation = self._by_slug.get(slug)
    return expectation.expected_lessons if expectation else 0
