from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import openai
import pytest

from divewell.providers.errors import ArtifactNotFound, ProviderFailure
from divewell.providers.speech import SpeechClient


def _openai_client(create: AsyncMock) -> MagicMock:
  client = MagicMock()
  client.audio.speech.create = create
  return client


@pytest.mark.anyio
async def test_synthesize_chunks_concatenates_in_order() -> None:
  async def _create(*, model, voice, input, response_format):
    # Later chunks finish first; output order must still follow input order.
    await asyncio.sleep(0.01 if input == "first" else 0)
    return SimpleNamespace(content=input.encode())

  create = AsyncMock(side_effect=_create)
  client = SpeechClient(_openai_client(create), voice="alloy", concurrency=2)

  audio = await client.synthesize_chunks(["first", "second", "third"], voice="nova")

  assert audio == b"firstsecondthird"
  assert create.await_count == 3
  assert {call.kwargs["voice"] for call in create.await_args_list} == {"nova"}


@pytest.mark.anyio
async def test_synthesize_rejects_over_length_chunk() -> None:
  client = SpeechClient(_openai_client(AsyncMock()), max_input_chars=10)
  with pytest.raises(ValueError):
    await client.synthesize("x" * 11)


@pytest.mark.anyio
async def test_backend_error_maps_to_provider_failure() -> None:
  create = AsyncMock(side_effect=openai.OpenAIError("quota exceeded"))
  client = SpeechClient(_openai_client(create))

  with pytest.raises(ProviderFailure) as excinfo:
    await client.synthesize_chunks(["one", "two"])

  assert "quota exceeded" in (excinfo.value.provider_message or "")


@pytest.mark.anyio
async def test_empty_audio_is_artifact_not_found() -> None:
  create = AsyncMock(return_value=SimpleNamespace(content=b""))
  client = SpeechClient(_openai_client(create))

  with pytest.raises(ArtifactNotFound):
    await client.synthesize("Hello divers.")


def test_max_input_chars_cannot_exceed_backend_limit() -> None:
  with pytest.raises(ValueError):
    SpeechClient(MagicMock(), max_input_chars=5000)
