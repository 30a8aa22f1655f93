"""Artifact paths, atomic writes and the PDF download fallback chain."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from divewell.media.persister import ArtifactPersister, build_export_candidates
from divewell.providers.errors import ArtifactFetchError, ArtifactNotFound, InfrastructureError

PDF_BYTES = b"%PDF-1.7 fake"


def _persister_with(storage_root: Path, handler) -> tuple[ArtifactPersister, list[str]]:
  seen: list[str] = []

  def _record(request: httpx.Request) -> httpx.Response:
    seen.append(str(request.url))
    return handler(request)

  http = httpx.AsyncClient(transport=httpx.MockTransport(_record))
  return ArtifactPersister(storage_root, public_prefix="/uploads", http=http), seen


def test_paths_are_slug_derived(persister: ArtifactPersister) -> None:
  assert persister.podcast_path("saturation-diving", "Bell Runs & Lockouts") == "podcasts/saturation-diving-bell-runs-lockouts.mp3"
  assert persister.document_path("Bell Runs & Lockouts") == "diver-well-training/bell-runs-lockouts.pdf"
  assert persister.public_url("podcasts/a.mp3") == "/uploads/podcasts/a.mp3"


def test_absolute_path_refuses_escape(persister: ArtifactPersister) -> None:
  with pytest.raises(ValueError):
    persister.absolute_path("../outside.txt")


def test_export_candidates_follow_fallback_order() -> None:
  assert build_export_candidates("https://gamma.app/docs/abc123") == [
    "https://gamma.app/docs/abc123",
    "https://gamma.app/docs/abc123?export=pdf",
    "https://gamma.app/api/export/abc123/pdf",
  ]
  assert build_export_candidates("https://cdn.test/file?x=1")[1] == "https://cdn.test/file?x=1&export=pdf"


@pytest.mark.anyio
async def test_write_bytes_is_atomic_and_returns_public_url(persister: ArtifactPersister, storage_root: Path) -> None:
  url = await persister.write_bytes("podcasts/lesson.mp3", b"ID3audio")

  assert url == "/uploads/podcasts/lesson.mp3"
  assert (storage_root / "podcasts" / "lesson.mp3").read_bytes() == b"ID3audio"
  assert [path.name for path in (storage_root / "podcasts").iterdir()] == ["lesson.mp3"]


@pytest.mark.anyio
async def test_write_bytes_rejects_empty_payload(persister: ArtifactPersister, storage_root: Path) -> None:
  with pytest.raises(ArtifactNotFound):
    await persister.write_bytes("podcasts/empty.mp3", b"")
  assert not (storage_root / "podcasts" / "empty.mp3").exists()


@pytest.mark.anyio
async def test_write_failure_maps_to_infrastructure_error(tmp_path: Path) -> None:
  blocker = tmp_path / "not-a-dir"
  blocker.write_text("file")
  persister = ArtifactPersister(blocker)

  with pytest.raises(InfrastructureError):
    await persister.write_bytes("podcasts/x.mp3", b"data")


@pytest.mark.anyio
async def test_discard_removes_file_and_tolerates_absence(persister: ArtifactPersister, storage_root: Path) -> None:
  await persister.write_bytes("podcasts/gone.mp3", b"ID3audio")

  await persister.discard("podcasts/gone.mp3")
  await persister.discard("podcasts/gone.mp3")

  assert not (storage_root / "podcasts" / "gone.mp3").exists()


@pytest.mark.anyio
async def test_download_without_http_client_is_rejected(storage_root: Path) -> None:
  with pytest.raises(RuntimeError, match="HTTP client"):
    await ArtifactPersister(storage_root).download_document("https://cdn.test/deck.pdf", "Deck")


@pytest.mark.anyio
async def test_download_uses_first_candidate_with_pdf_content_type(storage_root: Path) -> None:
  def handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, content=PDF_BYTES, headers={"content-type": "application/pdf"})

  persister, seen = _persister_with(storage_root, handler)
  url = await persister.download_document("https://gamma.app/docs/abc123", "Dive Tables")

  assert url == "/uploads/diver-well-training/dive-tables.pdf"
  assert seen == ["https://gamma.app/docs/abc123"]
  assert (storage_root / "diver-well-training" / "dive-tables.pdf").read_bytes() == PDF_BYTES


@pytest.mark.anyio
async def test_download_skips_html_and_falls_through_to_provider_export(storage_root: Path) -> None:
  def handler(request: httpx.Request) -> httpx.Response:
    if "/api/export/" in str(request.url):
      # The final step accepts any non-empty body.
      return httpx.Response(200, content=PDF_BYTES, headers={"content-type": "application/octet-stream"})
    return httpx.Response(200, content=b"<html></html>", headers={"content-type": "text/html"})

  persister, seen = _persister_with(storage_root, handler)
  await persister.download_document("https://gamma.app/docs/abc123", "Dive Tables")

  assert len(seen) == 3
  assert seen[-1] == "https://gamma.app/api/export/abc123/pdf"


@pytest.mark.anyio
async def test_download_exhaustion_raises_fetch_error_and_writes_nothing(storage_root: Path) -> None:
  def handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(404)

  persister, _ = _persister_with(storage_root, handler)
  with pytest.raises(ArtifactFetchError):
    await persister.download_document("https://gamma.app/docs/abc123", "Dive Tables")

  assert list(storage_root.iterdir()) == []


def test_resolve_local_path_handles_relative_and_absolute_urls(persister: ArtifactPersister, storage_root: Path) -> None:
  expected = (storage_root / "podcasts" / "a.mp3").resolve()
  assert persister.resolve_local_path("/uploads/podcasts/a.mp3") == expected
  assert persister.resolve_local_path("https://cdn.test/uploads/podcasts/a.mp3") == expected
  assert persister.resolve_local_path("https://cdn.test/other/a.mp3") is None
  assert persister.resolve_local_path("/uploads/../../etc/passwd") is None
  assert persister.resolve_local_path(None) is None


@pytest.mark.anyio
async def test_exists_requires_non_empty_file(persister: ArtifactPersister, storage_root: Path) -> None:
  (storage_root / "podcasts").mkdir()
  (storage_root / "podcasts" / "empty.mp3").write_bytes(b"")
  (storage_root / "podcasts" / "full.mp3").write_bytes(b"x")

  assert await persister.exists("/uploads/podcasts/full.mp3") is True
  assert await persister.exists("/uploads/podcasts/empty.mp3") is False
  assert await persister.exists("/uploads/podcasts/missing.mp3") is False
