"""Speech-synthesis backend client."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

import openai
from openai import AsyncOpenAI

from divewell.config import Settings
from divewell.providers.errors import ArtifactNotFound, ProviderFailure

logger = logging.getLogger(__name__)

MAX_INPUT_CHARS = 4096


class SpeechClient:
  """Per-chunk speech synthesis over an injected AsyncOpenAI client."""

  def __init__(self, client: AsyncOpenAI, *, model: str = "tts-1", voice: str = "alloy", audio_format: str = "mp3", max_input_chars: int = MAX_INPUT_CHARS, concurrency: int = 2) -> None:
    if max_input_chars <= 0 or max_input_chars > MAX_INPUT_CHARS:
      raise ValueError(f"max_input_chars must be between 1 and {MAX_INPUT_CHARS}.")
    if concurrency <= 0:
      raise ValueError("concurrency must be positive.")
    self._client = client
    self.model = model
    self.voice = voice
    self.audio_format = audio_format
    self.max_input_chars = max_input_chars
    self._concurrency = concurrency

  @classmethod
  def from_settings(cls, client: AsyncOpenAI, settings: Settings) -> SpeechClient:
    """Build a speech client from runtime settings."""
    return cls(client, model=settings.speech_model, voice=settings.speech_voice, audio_format=settings.speech_format, max_input_chars=settings.speech_max_chars, concurrency=settings.speech_concurrency)

  async def synthesize(self, chunk_text: str, *, voice: str | None = None) -> bytes:
    """Convert one pre-chunked text segment into audio bytes."""
    if len(chunk_text) > self.max_input_chars:
      raise ValueError(f"Speech input is {len(chunk_text)} chars; chunk it to at most {self.max_input_chars}.")

    try:
      response = await self._client.audio.speech.create(model=self.model, voice=voice or self.voice, input=chunk_text, response_format=self.audio_format)
    except openai.OpenAIError as exc:
      raise ProviderFailure(f"Speech synthesis failed: {exc}", provider_message=str(exc)) from exc

    audio = response.content
    if not audio:
      raise ArtifactNotFound("Speech backend returned no audio data.")
    return audio

  async def synthesize_chunks(self, chunks: Sequence[str], *, voice: str | None = None) -> bytes:
    """Synthesize every chunk and return the ordered concatenation of the audio buffers.

    MP3 frames can be concatenated segment by segment, so the joined buffer plays as one file.
    A failure in any chunk propagates and cancels the siblings so no partial audio is returned.
    """
    semaphore = asyncio.Semaphore(self._concurrency)

    async def _one(index: int, text: str) -> bytes:
      async with semaphore:
        logger.debug("Synthesizing chunk %d/%d chars=%d", index + 1, len(chunks), len(text))
        return await self.synthesize(text, voice=voice)

    tasks = [asyncio.create_task(_one(index, text)) for index, text in enumerate(chunks)]
    try:
      buffers = await asyncio.gather(*tasks)
    except BaseException:
      for task in tasks:
        task.cancel()
      await asyncio.gather(*tasks, return_exceptions=True)
      raise

    return b"".join(buffers)
