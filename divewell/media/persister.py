"""Artifact persistence under the public storage tree.

How/Why:
  - File names are derived from slugs so regenerating an artifact overwrites the same path.
  - Writes land in a sibling temp file and are renamed into place, so readers never see a
    truncated artifact and failures never leave zero-byte files behind.
  - The document backend does not reliably return a directly downloadable file, so remote PDFs
    go through an ordered fallback chain.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path, PurePosixPath
from urllib.parse import urlparse

import httpx
from starlette.concurrency import run_in_threadpool

from divewell.config import Settings
from divewell.providers.errors import ArtifactFetchError, ArtifactNotFound, InfrastructureError
from divewell.utils.slugs import slugify

logger = logging.getLogger(__name__)

PODCAST_DIR = "podcasts"
PROVIDER_EXPORT_URL = "https://gamma.app/api/export/{doc_id}/pdf"
_DOC_ID = re.compile(r"/docs/([a-z0-9]+)", re.IGNORECASE)


def _write_atomic(target: Path, data: bytes) -> None:
  """Write bytes through a temp file in the target directory and rename into place."""
  target.parent.mkdir(parents=True, exist_ok=True)
  fd, temp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".part")
  try:
    with os.fdopen(fd, "wb") as handle:
      handle.write(data)
    os.replace(temp_name, target)
  except BaseException:
    Path(temp_name).unlink(missing_ok=True)
    raise


def build_export_candidates(url: str) -> list[str]:
  """Return the ordered download attempts for a remote document reference."""
  separator = "&" if "?" in url else "?"
  candidates = [url, f"{url}{separator}export=pdf"]
  match = _DOC_ID.search(url)
  if match:
    candidates.append(PROVIDER_EXPORT_URL.format(doc_id=match.group(1)))
  return candidates


class ArtifactPersister:
  """Write generated bytes to canonical paths and map them to public URLs."""

  def __init__(self, root: str | Path, *, public_prefix: str = "/uploads", document_category: str = "diver-well-training", http: httpx.AsyncClient | None = None) -> None:
    self.root = Path(root)
    self.public_prefix = "/" + public_prefix.strip("/")
    self.document_category = document_category
    self._http = http

  @classmethod
  def from_settings(cls, settings: Settings, *, http: httpx.AsyncClient | None = None) -> ArtifactPersister:
    """Build a persister from runtime settings."""
    return cls(settings.storage_root, public_prefix=settings.public_prefix, document_category=settings.document_category, http=http)

  def podcast_path(self, track_slug: str, title: str) -> str:
    """Return the storage-relative path for a lesson podcast."""
    return f"{PODCAST_DIR}/{slugify(f'{track_slug}-{title}')}.mp3"

  def document_path(self, title: str) -> str:
    """Return the storage-relative path for a lesson PDF."""
    return f"{self.document_category}/{slugify(title)}.pdf"

  def public_url(self, relative_path: str) -> str:
    return f"{self.public_prefix}/{relative_path.lstrip('/')}"

  def absolute_path(self, relative_path: str) -> Path:
    """Resolve a storage-relative path, refusing anything that escapes the root."""
    root = self.root.resolve()
    candidate = (root / relative_path).resolve()
    if candidate != root and root not in candidate.parents:
      raise ValueError(f"Artifact path escapes storage root: {relative_path}")
    return candidate

  async def write_bytes(self, relative_path: str, data: bytes) -> str:
    """Persist bytes atomically and return the artifact's public URL."""
    if not data:
      raise ArtifactNotFound(f"Refusing to persist an empty artifact at {relative_path}.")

    target = self.absolute_path(relative_path)
    try:
      await run_in_threadpool(_write_atomic, target, data)
    except OSError as exc:
      raise InfrastructureError(f"Failed to write artifact {relative_path}: {exc}") from exc

    logger.info("Persisted artifact path=%s bytes=%d", target, len(data))
    return self.public_url(relative_path)

  async def discard(self, relative_path: str) -> None:
    """Remove an artifact file if present."""
    target = self.absolute_path(relative_path)
    try:
      await run_in_threadpool(target.unlink, missing_ok=True)
    except OSError as exc:
      raise InfrastructureError(f"Failed to remove artifact {relative_path}: {exc}") from exc
    logger.info("Discarded artifact path=%s", target)

  async def download_document(self, url: str, title: str) -> str:
    """Download a remote PDF through the export fallback chain and persist it locally."""
    http = self._http
    if http is None:
      raise RuntimeError("ArtifactPersister needs an HTTP client to download documents.")

    candidates = build_export_candidates(url)
    for step, candidate in enumerate(candidates, start=1):
      data = await self._try_fetch(http, candidate, require_pdf_content_type=step < 3)
      if data:
        logger.info("Downloaded document title=%s via step=%d", title, step)
        return await self.write_bytes(self.document_path(title), data)

    raise ArtifactFetchError(f"Could not download a PDF for '{title}' after {len(candidates)} attempts.", provider_message=url)

  async def _try_fetch(self, http: httpx.AsyncClient, url: str, *, require_pdf_content_type: bool) -> bytes | None:
    """Fetch one candidate URL; return the body on success and None otherwise."""
    try:
      response = await http.get(url, follow_redirects=True)
    except httpx.HTTPError as exc:
      logger.debug("Document fetch failed url=%s error=%s", url, exc)
      return None

    if not response.is_success:
      logger.debug("Document fetch rejected url=%s status=%s", url, response.status_code)
      return None

    content_type = response.headers.get("content-type", "").lower()
    if require_pdf_content_type and "pdf" not in content_type:
      logger.debug("Document fetch returned non-pdf url=%s content_type=%s", url, content_type)
      return None

    return response.content or None

  def resolve_local_path(self, url: str | None) -> Path | None:
    """Map a public artifact URL to its file under the storage root, or None when it is not local."""
    if not url:
      return None

    path = urlparse(url).path if url.startswith(("http://", "https://")) else url
    prefix = self.public_prefix.rstrip("/") + "/"
    if not path.startswith(prefix):
      return None

    relative = PurePosixPath(path[len(prefix) :]).as_posix()
    try:
      return self.absolute_path(relative)
    except ValueError:
      return None

  async def exists(self, url: str | None) -> bool:
    """Return True when a local artifact URL points at a non-empty file."""
    local = self.resolve_local_path(url)
    if local is None:
      return False
    return await run_in_threadpool(_is_nonempty_file, local)

  async def ensure_root(self) -> None:
    """Create the storage root, raising InfrastructureError when the tree is unusable."""
    try:
      await run_in_threadpool(self.root.mkdir, parents=True, exist_ok=True)
    except OSError as exc:
      raise InfrastructureError(f"Artifact storage root {self.root} is not available: {exc}") from exc


def _is_nonempty_file(path: Path) -> bool:
  try:
    return path.is_file() and path.stat().st_size > 0
  except OSError:
    return False
