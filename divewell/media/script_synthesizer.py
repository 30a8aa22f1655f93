"""Narration script synthesis for lesson podcasts.

How/Why:
  - Scripts target 3,000-4,500 words (about 20-30 minutes at 150 words per minute).
  - Generative mode asks the LLM for a brand-neutral, markup-free script. Empty or short replies
    (under 500 words) are unusable, so the deterministic expander takes over.
  - The deterministic expander is also an explicit cost-saving mode. It never uses randomness so
    identical input always yields byte-identical output.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Final, Literal

from divewell.providers.base import AIModel

logger = logging.getLogger(__name__)

ScriptSource = Literal["gpt", "expanded"]

WORDS_PER_MINUTE: Final[int] = 150
MIN_GENERATIVE_WORDS: Final[int] = 500
TARGET_WORD_FLOOR: Final[int] = 3000
TARGET_WORD_CEILING: Final[int] = 4500
MAX_PROMPT_CONTENT_CHARS: Final[int] = 6000

SYSTEM_PROMPT: Final[str] = f"""You are a professional diving education podcast host. Write a narration script for a single-voice training podcast.

Rules:
- The script MUST be between {TARGET_WORD_FLOOR:,} and {TARGET_WORD_CEILING:,} words.
- Cover every concept in the source lesson; do not skip sections.
- Never mention brand, product, or company names; keep the language brand-neutral.
- Write plain conversational prose for text-to-speech: no markdown, headings, bullet lists, music cues, or sound effects.
- Keep a professional yet approachable tone suitable for commercial diving training."""

INTRO_TEMPLATE: Final[str] = (
  "Welcome to this comprehensive lesson on {title}. In this podcast, we'll explore the key concepts, practical applications, "
  "and industry standards that are essential for professional diving operations. This training will help you understand not "
  "just what to do, but why it matters in real-world scenarios. Let's begin our deep dive into this important topic."
)

CONCLUSION_TEMPLATE: Final[str] = (
  "That concludes our comprehensive lesson on {title}. We've covered the essential concepts, practical applications, industry "
  "standards, and real-world considerations. Remember to review this material regularly, practice these skills in controlled "
  "environments before applying them in the field, and always prioritize safety above all else. Thank you for your attention, "
  "and remember: knowledge combined with experience creates true competence in professional diving. Stay safe, stay current, "
  "and keep learning."
)

LIST_ITEM_TEMPLATE: Final[str] = "One important point to remember is that {item}. This means that in practice, you need to pay close attention to how this applies in real diving scenarios."

TRANSITIONS: Final[tuple[str, ...]] = (
  "Now, let's take a closer look at the next part of this lesson. This is a crucial aspect of professional diving that requires careful understanding.",
  "Before we move on, take a moment to connect what we just covered to your own experience on the dive site. Understanding this properly can make the difference between a routine job and an incident.",
  "Building on that foundation, the next topic applies directly to real-world diving operations, so keep the previous points in mind as we continue.",
  "Let's shift our focus now. In professional diving, this next piece of knowledge is essential for the safety of you and your team.",
  "With that in place, we can look at how the following material fits into day-to-day operations and the procedures you'll use regularly in your diving career.",
)

KEY_TAKEAWAYS: Final[str] = (
  "Let me emphasize a few key takeaways from this lesson. First, understanding these concepts thoroughly is essential for your "
  "safety and the safety of your team. Second, practice and real-world application will help solidify your understanding. Third, "
  "always refer back to industry standards and regulations when applying these principles. Finally, continuous learning and "
  "staying current with industry developments is crucial for professional growth in the diving industry."
)

_HEADING_MARKERS = re.compile(r"#{1,6}\s+")
_EMPHASIS_MARKERS = re.compile(r"\*\*|__")
_LINKS = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_LIST_ITEM = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+(.+)$")
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


@dataclass(frozen=True)
class NarrationScript:
  """A finished narration script and its provenance."""

  text: str
  word_count: int
  source_type: ScriptSource

  @property
  def estimated_duration_seconds(self) -> int:
    """Estimate the spoken duration at the standard narration pace."""
    return round(self.word_count / WORDS_PER_MINUTE * 60)


def count_words(text: str) -> int:
  """Count whitespace-separated words."""
  return len(text.split())


def strip_markup(text: str) -> str:
  """Remove markdown headings, emphasis, inline code and link syntax."""
  cleaned = _HEADING_MARKERS.sub("", text)
  cleaned = _EMPHASIS_MARKERS.sub("", cleaned)
  cleaned = cleaned.replace("`", "")
  cleaned = _LINKS.sub(r"\1", cleaned)
  cleaned = _EXCESS_NEWLINES.sub("\n\n", cleaned)
  return cleaned.strip()


def _expand_paragraph(paragraph: str) -> str:
  """Turn list items into full templated sentences and keep prose lines intact."""
  lines: list[str] = []
  for raw_line in paragraph.splitlines():
    line = raw_line.strip()
    if not line:
      continue
    match = _LIST_ITEM.match(line)
    if match:
      item = match.group(1).strip().rstrip(".")
      lines.append(LIST_ITEM_TEMPLATE.format(item=item))
    else:
      lines.append(line)
  return " ".join(lines)


def expand_content_for_podcast(content: str, title: str, *, word_floor: int = TARGET_WORD_FLOOR) -> str:
  """Deterministically expand lesson text into a narration script."""
  paragraphs = [_expand_paragraph(block) for block in _PARAGRAPH_BREAK.split(strip_markup(content or ""))]
  paragraphs = [paragraph for paragraph in paragraphs if paragraph]

  intro = INTRO_TEMPLATE.format(title=title)
  conclusion = CONCLUSION_TEMPLATE.format(title=title)
  parts: list[str] = [intro]
  word_count = count_words(intro) + count_words(conclusion)

  for index, paragraph in enumerate(paragraphs):
    # Transitions pad the script only while it is below the floor.
    if index > 0 and word_count < word_floor:
      transition = TRANSITIONS[(index - 1) % len(TRANSITIONS)]
      parts.append(transition)
      word_count += count_words(transition)
    parts.append(paragraph)
    word_count += count_words(paragraph)

  if word_count < word_floor:
    parts.append(KEY_TAKEAWAYS)

  parts.append(conclusion)
  return "\n\n".join(parts)


def build_script_prompt(content: str, title: str, track_title: str | None) -> str:
  """Build the user prompt for generative script writing."""
  clipped = content[:MAX_PROMPT_CONTENT_CHARS]
  if len(content) > MAX_PROMPT_CONTENT_CHARS:
    clipped += "..."
  track_line = f"Track: {track_title}\n" if track_title else ""
  return f"Create the podcast narration script for this lesson.\n\nLesson Title: {title}\n{track_line}\nLesson Content:\n{clipped}\n\nGenerate the script now:"


class ScriptSynthesizer:
  """Produce narration scripts, generative-first with a deterministic fallback."""

  def __init__(self, model: AIModel | None = None, *, use_generative: bool = True) -> None:
    self._model = model
    self._use_generative = use_generative

  async def synthesize(self, content: str, title: str, track_title: str | None = None, *, use_generative: bool | None = None) -> NarrationScript:
    """Return a narration script. Never raises."""
    want_generative = self._use_generative if use_generative is None else use_generative
    script: NarrationScript | None = None

    if want_generative and self._model is not None:
      script = await self._try_generative(self._model, content, title, track_title)

    if script is None:
      text = expand_content_for_podcast(content, title)
      script = NarrationScript(text=text, word_count=count_words(text), source_type="expanded")

    logger.info("Narration script ready title=%s source=%s words=%d (target %d-%d)", title, script.source_type, script.word_count, TARGET_WORD_FLOOR, TARGET_WORD_CEILING)
    return script

  async def _try_generative(self, model: AIModel, content: str, title: str, track_title: str | None) -> NarrationScript | None:
    """Ask the LLM for a script; return None when the reply is unusable."""
    try:
      response = await model.generate(build_script_prompt(content, title, track_title), system=SYSTEM_PROMPT)
    except Exception as exc:  # noqa: BLE001 - any model failure falls back to the deterministic script
      logger.warning("Generative script failed for title=%s; using deterministic expansion: %s", title, exc)
      return None

    text = strip_markup(response.content or "")
    word_count = count_words(text)
    if word_count < MIN_GENERATIVE_WORDS:
      logger.warning("Generative script too short for title=%s words=%d; using deterministic expansion", title, word_count)
      return None

    return NarrationScript(text=text, word_count=word_count, source_type="gpt")
