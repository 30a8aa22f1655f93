from __future__ import annotations

import pytest

from divewell.media.chunker import chunk_text, split_sentences
from divewell.services.lesson_media import fit_chunks


def test_split_sentences_drops_empty_fragments() -> None:
  assert split_sentences("Check the gauge.  Ascend slowly!   Why?  ") == ["Check the gauge.", "Ascend slowly!", "Why?"]


def test_chunk_text_packs_sentences_up_to_limit() -> None:
  text = "One two three. Four five six. Seven eight nine."
  chunks = chunk_text(text, 30)
  assert chunks == ["One two three. Four five six.", "Seven eight nine."]
  assert all(len(chunk) <= 30 for chunk in chunks)


def test_chunk_text_keeps_oversized_sentence_whole() -> None:
  long_sentence = "x" * 50 + "."
  chunks = chunk_text(f"Short one. {long_sentence} Tail.", 20)
  assert long_sentence in chunks
  assert chunks[0] == "Short one."


def test_chunk_text_joined_reproduces_source_modulo_whitespace() -> None:
  text = "Decompression stops matter.\n\nPlan them!  Log them?  Always."
  assert " ".join(chunk_text(text, 25)).split() == text.split()


def test_chunk_text_empty_input_yields_no_chunks() -> None:
  assert chunk_text("   ", 100) == []


def test_chunk_text_rejects_non_positive_limit() -> None:
  with pytest.raises(ValueError):
    chunk_text("Anything.", 0)


def test_fit_chunks_splits_over_length_chunks_on_words() -> None:
  fitted = fit_chunks(["short", "alpha beta gamma delta"], 11)
  assert fitted == ["short", "alpha beta", "gamma delta"]
  assert all(len(chunk) <= 11 for chunk in fitted)


def test_fit_chunks_hard_cuts_single_giant_word() -> None:
  fitted = fit_chunks(["a" * 25], 10)
  assert fitted == ["a" * 10, "a" * 10, "a" * 5]
