"""OpenAI chat-completions model used to write narration scripts."""

from __future__ import annotations

import logging

from openai import AsyncOpenAI

from divewell.providers.base import AIModel, ModelResponse, SimpleModelResponse

logger = logging.getLogger(__name__)


class OpenAIChatModel(AIModel):
  """Chat model client bound to an injected AsyncOpenAI instance."""

  def __init__(self, client: AsyncOpenAI, name: str, *, temperature: float = 0.7, max_tokens: int = 8000) -> None:
    self.name: str = name
    self._client = client
    self._temperature = temperature
    self._max_tokens = max_tokens

  async def generate(self, prompt: str, *, system: str | None = None) -> ModelResponse:
    """Generate a plain-text completion."""
    messages = []
    if system:
      messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})

    response = await self._client.chat.completions.create(model=self.name, messages=messages, temperature=self._temperature, max_tokens=self._max_tokens)

    content = ""
    if response.choices:
      content = response.choices[0].message.content or ""
    logger.debug("OpenAI chat response model=%s chars=%d", self.name, len(content))
    usage = None

    if response.usage:
      usage = {"prompt_tokens": response.usage.prompt_tokens, "completion_tokens": response.usage.completion_tokens, "total_tokens": response.usage.total_tokens}

    return SimpleModelResponse(content=content, usage=usage)
