from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from divewell.media.script_synthesizer import (
  CONCLUSION_TEMPLATE,
  INTRO_TEMPLATE,
  KEY_TAKEAWAYS,
  MAX_PROMPT_CONTENT_CHARS,
  SYSTEM_PROMPT,
  NarrationScript,
  ScriptSynthesizer,
  build_script_prompt,
  count_words,
  expand_content_for_podcast,
  strip_markup,
)
from divewell.providers.base import AIModel, SimpleModelResponse

LESSON = """## Gas Planning

Plan your **reserve** before descent.

- Check cylinder pressure
- Brief the [standby diver](https://example.test/standby)

Monitor consumption throughout the dive."""


GAS_PLANNING_SCRIPT = "\n\n".join(
  (
    "Welcome to this comprehensive lesson on Gas Planning. In this podcast, we'll explore the key concepts, practical applications, and industry standards that are essential for professional diving operations. This training will help you understand not just what to do, but why it matters in real-world scenarios. Let's begin our deep dive into this important topic.",
    "Gas Planning",
    "Now, let's take a closer look at the next part of this lesson. This is a crucial aspect of professional diving that requires careful understanding.",
    "Plan your reserve before descent.",
    "Before we move on, take a moment to connect what we just covered to your own experience on the dive site. Understanding this properly can make the difference between a routine job and an incident.",
    "One important point to remember is that Check cylinder pressure. This means that in practice, you need to pay close attention to how this applies in real diving scenarios. "
    "One important point to remember is that Brief the standby diver. This means that in practice, you need to pay close attention to how this applies in real diving scenarios.",
    "Building on that foundation, the next topic applies directly to real-world diving operations, so keep the previous points in mind as we continue.",
    "Monitor consumption throughout the dive.",
    "Let me emphasize a few key takeaways from this lesson. First, understanding these concepts thoroughly is essential for your safety and the safety of your team. Second, practice and real-world application will help solidify your understanding. Third, always refer back to industry standards and regulations when applying these principles. Finally, continuous learning and staying current with industry developments is crucial for professional growth in the diving industry.",
    "That concludes our comprehensive lesson on Gas Planning. We've covered the essential concepts, practical applications, industry standards, and real-world considerations. Remember to review this material regularly, practice these skills in controlled environments before applying them in the field, and always prioritize safety above all else. Thank you for your attention, and remember: knowledge combined with experience creates true competence in professional diving. Stay safe, stay current, and keep learning.",
  )
)


class _StubModel(AIModel):
  name = "stub"

  def __init__(self, reply: str | Exception) -> None:
    self.reply = reply
    self.generate_mock = AsyncMock()

  async def generate(self, prompt: str, *, system: str | None = None) -> SimpleModelResponse:
    await self.generate_mock(prompt, system=system)
    if isinstance(self.reply, Exception):
      raise self.reply
    return SimpleModelResponse(content=self.reply)


def test_strip_markup_removes_headings_emphasis_and_links() -> None:
  assert strip_markup("## Title\n\n**Bold** and `code` [link](http://x.test)") == "Title\n\nBold and code link"


def test_expansion_is_deterministic_and_never_shrinks_source() -> None:
  first = expand_content_for_podcast(LESSON, "Gas Planning")
  second = expand_content_for_podcast(LESSON, "Gas Planning")

  assert first == second
  assert count_words(first) >= count_words(strip_markup(LESSON))
  assert first.startswith(INTRO_TEMPLATE.format(title="Gas Planning"))
  assert first.endswith(CONCLUSION_TEMPLATE.format(title="Gas Planning"))


def test_expansion_matches_checked_in_script() -> None:
  """Any change to templates, transition order or markup stripping must show up here."""
  assert expand_content_for_podcast(LESSON, "Gas Planning") == GAS_PLANNING_SCRIPT


def test_expansion_turns_list_items_into_sentences() -> None:
  script = expand_content_for_podcast(LESSON, "Gas Planning")
  assert "One important point to remember is that Check cylinder pressure." in script
  assert "standby diver" in script
  assert "https://example.test" not in script
  assert "**" not in script


def test_short_source_gets_key_takeaways_padding() -> None:
  assert KEY_TAKEAWAYS in expand_content_for_podcast("Short lesson.", "Short")


def test_long_source_skips_padding() -> None:
  long_content = "\n\n".join(" ".join(["word"] * 400) for _ in range(10))
  script = expand_content_for_podcast(long_content, "Long")
  assert KEY_TAKEAWAYS not in script


def test_build_script_prompt_clips_content() -> None:
  prompt = build_script_prompt("x" * (MAX_PROMPT_CONTENT_CHARS + 50), "Title", "Track")
  assert "x" * MAX_PROMPT_CONTENT_CHARS + "..." in prompt
  assert "Track: Track" in prompt


def test_estimated_duration_uses_150_words_per_minute() -> None:
  assert NarrationScript(text="", word_count=3000, source_type="expanded").estimated_duration_seconds == 1200


@pytest.mark.anyio
async def test_generative_reply_is_used_when_long_enough() -> None:
  model = _StubModel(" ".join(["narration"] * 600))
  script = await ScriptSynthesizer(model).synthesize(LESSON, "Gas Planning", "Air Diver")

  assert script.source_type == "gpt"
  assert script.word_count == 600
  assert model.generate_mock.await_args.kwargs["system"] == SYSTEM_PROMPT


@pytest.mark.anyio
async def test_short_generative_reply_falls_back_to_expansion() -> None:
  model = _StubModel("Too short.")
  script = await ScriptSynthesizer(model).synthesize(LESSON, "Gas Planning")

  assert script.source_type == "expanded"
  assert script.text == expand_content_for_podcast(LESSON, "Gas Planning")


@pytest.mark.anyio
async def test_model_error_falls_back_without_raising() -> None:
  script = await ScriptSynthesizer(_StubModel(RuntimeError("rate limited"))).synthesize(LESSON, "Gas Planning")
  assert script.source_type == "expanded"


@pytest.mark.anyio
async def test_cost_saving_mode_skips_model() -> None:
  model = _StubModel(" ".join(["narration"] * 600))
  script = await ScriptSynthesizer(model).synthesize(LESSON, "Gas Planning", use_generative=False)

  assert script.source_type == "expanded"
  model.generate_mock.assert_not_awaited()


@pytest.mark.anyio
async def test_without_model_generative_request_uses_expansion() -> None:
  script = await ScriptSynthesizer(None).synthesize(LESSON, "Gas Planning", use_generative=True)

  assert script.source_type == "expanded"
  assert script.text == GAS_PLANNING_SCRIPT
