"""Rebuild lesson quizzes from learning objectives."""

from __future__ import annotations

import re
from collections.abc import Sequence

from divewell.storage.curriculum_repo import NewQuestion, NewQuiz

QUESTIONS_PER_QUIZ = 5
OPTIONS_PER_QUESTION = 4
DEFAULT_PASSING_SCORE = 70
DEFAULT_TIME_LIMIT_MINUTES = 10

DEFAULT_DISTRACTORS: tuple[str, ...] = (
  "Improve operational safety and hazard awareness",
  "Apply standard procedures and documentation practices",
  "Select appropriate equipment and verify readiness",
  "Communicate effectively with the dive team",
  "Identify risks and implement control measures",
  "Follow emergency response protocols and reporting",
)

_BULLET = re.compile(r"^[-*]\s+(.*)$")
_ORDERED = re.compile(r"^\d+\.\s+(.*)$")


def _unique(items: Sequence[str]) -> list[str]:
  seen: dict[str, None] = {}
  for item in items:
    cleaned = item.strip()
    if cleaned:
      seen.setdefault(cleaned, None)
  return list(seen)


def extract_objectives(content: str) -> list[str]:
  """Collect list items under the first "learning objectives" line, stopping at the next `##` heading."""
  if not content:
    return []
  lines = content.split("\n")
  start = next((index for index, line in enumerate(lines) if "learning objectives" in line.lower()), None)
  if start is None:
    return []

  objectives: list[str] = []
  for raw in lines[start + 1 :]:
    line = raw.strip()
    if not line:
      continue
    if line.startswith("##"):
      break
    match = _BULLET.match(line) or _ORDERED.match(line)
    if match:
      objectives.append(match.group(1).strip().removesuffix("."))
  return _unique(objectives)


def quiz_topics(lesson_title: str, objectives: Sequence[str]) -> list[str]:
  fallback = [
    f"Apply the core procedures covered in {lesson_title}",
    f"Identify key safety considerations for {lesson_title}",
    f"Explain the purpose of {lesson_title} in operations",
    f"Select appropriate equipment or methods for {lesson_title}",
    f"Document and communicate outcomes from {lesson_title}",
  ]
  return _unique([*objectives, *fallback])[:QUESTIONS_PER_QUIZ]


def build_quiz(lesson_title: str, objectives: Sequence[str]) -> NewQuiz:
  """Build a five-question multiple-choice quiz whose first option is always correct."""
  questions: list[NewQuestion] = []
  for index, topic in enumerate(quiz_topics(lesson_title, objectives), start=1):
    pool = [item for item in [*objectives, *DEFAULT_DISTRACTORS] if item != topic]
    options = (topic, *pool[: OPTIONS_PER_QUESTION - 1])
    questions.append(NewQuestion(prompt=f'Which of the following is a key objective for "{lesson_title}"?', options=options, correct_answer="a", order=index))
  return NewQuiz(title=f"{lesson_title} Quiz", passing_score=DEFAULT_PASSING_SCORE, time_limit=DEFAULT_TIME_LIMIT_MINUTES, questions=tuple(questions))
