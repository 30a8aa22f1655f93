"""Deterministic slug helpers used for artifact file names."""

from __future__ import annotations

import re

MAX_SLUG_LENGTH = 100
FALLBACK_SLUG = "lesson"

_SEPARATORS = re.compile(r"[\s_]+")
_DISALLOWED = re.compile(r"[^a-z0-9-]")
_HYPHEN_RUNS = re.compile(r"-+")


def slugify(value: str | None) -> str:
  """Return a lowercase, hyphenated slug capped at 100 characters."""
  if not value or not isinstance(value, str) or not value.strip():
    return FALLBACK_SLUG

  slug = value.lower().strip()
  slug = _SEPARATORS.sub("-", slug)
  slug = _DISALLOWED.sub("", slug)
  slug = _HYPHEN_RUNS.sub("-", slug).strip("-")

  # Cutting at the cap can expose a trailing hyphen again.
  if len(slug) > MAX_SLUG_LENGTH:
    slug = slug[:MAX_SLUG_LENGTH].rstrip("-")

  return slug or FALLBACK_SLUG
