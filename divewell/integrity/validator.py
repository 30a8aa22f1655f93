"""Structural compliance checks for a freshly generated lesson payload."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

Severity = Literal["critical", "warning"]

MIN_CONTENT_CHARS = 1200
MIN_OBJECTIVES = 3
CRITICAL_PENALTY = 25
WARNING_PENALTY = 5

BRAND_DENYLIST: tuple[str, ...] = ("3m", "dewalt", "microsoft", "google", "apple", "facebook", "instagram", "linkedin", "twitter", "aws", "azure")
REQUIRED_SECTIONS: tuple[str, ...] = (
  "Industry Standards and Regulations",
  "Core Concepts",
  "Practical Applications",
  "Safety Protocols",
  "Practice Scenarios",
  "Assessment Preparation",
)

_BRAND_PATTERN = re.compile(r"\b(" + "|".join(re.escape(token) for token in BRAND_DENYLIST) + r")\b", re.IGNORECASE)


@dataclass(frozen=True)
class ValidationIssue:
  field: str
  message: str
  severity: Severity


@dataclass(frozen=True)
class ValidationReport:
  passed: bool
  issues: tuple[ValidationIssue, ...]
  compliance_score: int


@dataclass(frozen=True)
class GeneratedLesson:
  """The parts of a generated lesson the validator inspects."""

  content: str
  objectives: tuple[str, ...] = ()
  quiz_questions: tuple[Any, ...] = field(default_factory=tuple)

  @classmethod
  def from_payload(cls, payload: Mapping[str, Any]) -> GeneratedLesson:
    quiz = payload.get("quiz")
    questions: Sequence[Any] = ()
    if isinstance(quiz, Mapping):
      questions = quiz.get("questions") or ()
    return cls(content=str(payload.get("content") or ""), objectives=tuple(payload.get("objectives") or ()), quiz_questions=tuple(questions))


def validate_lesson(lesson: GeneratedLesson) -> ValidationReport:
  """Run every rule independently and score the lesson."""
  issues: list[ValidationIssue] = []
  content = lesson.content or ""

  if len(content) < MIN_CONTENT_CHARS:
    issues.append(ValidationIssue("content", "Content is too short; ensure sufficient technical depth.", "critical"))

  if _BRAND_PATTERN.search(content):
    issues.append(ValidationIssue("content", "Brand references detected; ensure brand-neutral language.", "critical"))

  for section in REQUIRED_SECTIONS:
    if section not in content:
      issues.append(ValidationIssue("content", f"Missing required section: {section}", "warning"))

  if len(lesson.objectives) < MIN_OBJECTIVES:
    issues.append(ValidationIssue("objectives", f"At least {MIN_OBJECTIVES} learning objectives are required.", "critical"))

  if not lesson.quiz_questions:
    issues.append(ValidationIssue("quiz", "Quiz questions missing.", "critical"))

  critical = sum(1 for issue in issues if issue.severity == "critical")
  warnings = sum(1 for issue in issues if issue.severity == "warning")
  score = max(0, 100 - CRITICAL_PENALTY * critical - WARNING_PENALTY * warnings)
  return ValidationReport(passed=critical == 0, issues=tuple(issues), compliance_score=score)
