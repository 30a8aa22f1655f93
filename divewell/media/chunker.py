"""Sentence-aware text chunking for size-limited downstream APIs."""

from __future__ import annotations

import re

_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


def split_sentences(text: str) -> list[str]:
  """Split text after `.`, `!` or `?` followed by whitespace, dropping empty fragments."""
  return [sentence.strip() for sentence in _SENTENCE_BOUNDARY.split(text) if sentence.strip()]


def chunk_text(text: str, max_length: int) -> list[str]:
  """Pack whole sentences into chunks no longer than `max_length` characters.

  A single sentence longer than `max_length` is emitted whole as its own chunk rather than
  truncated. Joining the chunks with single spaces reproduces the source up to whitespace.
  """
  if max_length <= 0:
    raise ValueError("max_length must be a positive integer.")

  chunks: list[str] = []
  buffer = ""

  for sentence in split_sentences(text):
    if not buffer:
      buffer = sentence
      continue

    # Flush before the buffer would exceed the limit.
    if len(buffer) + 1 + len(sentence) > max_length:
      chunks.append(buffer)
      buffer = sentence
    else:
      buffer = f"{buffer} {sentence}"

  if buffer:
    chunks.append(buffer)

  return chunks
