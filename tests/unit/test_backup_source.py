from __future__ import annotations

import json

import pytest

from divewell.providers.errors import InfrastructureError
from divewell.storage.backup_source import JsonBackupSource, parse_backup


def test_parse_backup_orders_lessons_and_reads_optional_fields() -> None:
  payload = {
    "tracks": [
      {
        "slug": "lst",
        "title": "LST",
        "isPublished": False,
        "lessons": [
          {"title": "Second", "order": 2, "content": "B", "objectives": '["Assess casualty"]'},
          {"title": "First", "order": 1, "content": "A", "estimatedMinutes": 45, "pdfUrl": "/uploads/first.pdf"},
        ],
      }
    ]
  }

  track = parse_backup(payload)["lst"]

  assert track.is_published is False
  assert [lesson.title for lesson in track.lessons] == ["First", "Second"]
  assert track.lessons[0].estimated_minutes == 45
  assert track.lessons[0].pdf_url == "/uploads/first.pdf"
  assert track.lessons[1].objectives == ("Assess casualty",)


@pytest.mark.anyio
async def test_load_reads_file(tmp_path) -> None:
  path = tmp_path / "backup.json"
  path.write_text(json.dumps({"tracks": [{"slug": "alst", "title": "ALST", "lessons": [{"title": "One", "content": "Body"}]}]}), encoding="utf-8")

  tracks = await JsonBackupSource(path).load()

  assert tracks["alst"].lessons[0].order == 1


@pytest.mark.anyio
@pytest.mark.parametrize("contents", [None, "[]", '{"tracks": [{"title": "no slug"}]}'])
async def test_unreadable_backup_is_infrastructure_error(tmp_path, contents) -> None:
  path = tmp_path / "backup.json"
  if contents is not None:
    path.write_text(contents, encoding="utf-8")

  with pytest.raises(InfrastructureError):
    await JsonBackupSource(path).load()
