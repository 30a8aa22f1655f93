"""Integrity audit findings and summaries."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, fields
from enum import StrEnum
from typing import Any, Literal

IssueSeverity = Literal["critical", "warning"]
AuditTrigger = Literal["startup", "scheduled", "manual"]


class IssueType(StrEnum):
  MISSING_TRACK = "missing_track"
  LESSON_COUNT_MISMATCH = "lesson_count_mismatch"
  MISSING_LESSON_CONTENT = "missing_lesson_content"
  MISSING_QUIZ = "missing_quiz"
  QUIZ_QUESTION_SHORTAGE = "quiz_question_shortage"
  MISSING_PODCAST_URL = "missing_podcast_url"
  MISSING_PDF_URL = "missing_pdf_url"
  MISSING_PODCAST_FILE = "missing_podcast_file"
  MISSING_PDF_FILE = "missing_pdf_file"


@dataclass(frozen=True)
class IntegrityIssue:
  severity: IssueSeverity
  type: IssueType
  message: str
  track_slug: str | None = None
  lesson_id: str | None = None
  details: dict[str, Any] | None = None

  def to_wire(self) -> dict[str, Any]:
    payload: dict[str, Any] = {"severity": self.severity, "type": self.type.value, "message": self.message}
    if self.track_slug is not None:
      payload["trackSlug"] = self.track_slug
    if self.lesson_id is not None:
      payload["lessonId"] = self.lesson_id
    if self.details is not None:
      payload["details"] = self.details
    return payload


def _camel(name: str) -> str:
  head, *rest = name.split("_")
  return head + "".join(part.title() for part in rest)


@dataclass
class IntegrityStats:
  tracks_checked: int = 0
  lessons_checked: int = 0
  quizzes_checked: int = 0
  questions_checked: int = 0
  missing_lessons: int = 0
  missing_quizzes: int = 0
  missing_podcast_urls: int = 0
  missing_pdf_urls: int = 0
  missing_podcast_files: int = 0
  missing_pdf_files: int = 0
  restored_tracks: int = 0
  rebuilt_quizzes: int = 0
  regenerated_media: int = 0

  def merge(self, other: IntegrityStats) -> None:
    for item in fields(self):
      setattr(self, item.name, getattr(self, item.name) + getattr(other, item.name))

  def to_wire(self) -> dict[str, int]:
    return {_camel(item.name): getattr(self, item.name) for item in fields(self)}


@dataclass(frozen=True)
class AuditOptions:
  auto_repair: bool = False
  regenerate_media: bool = False
  send_alerts: bool = False
  trigger: AuditTrigger = "manual"


@dataclass(frozen=True)
class IntegritySummary:
  ok: bool
  blocking_issues: int
  warning_issues: int
  issues: tuple[IntegrityIssue, ...]
  stats: IntegrityStats = field(default_factory=IntegrityStats)

  @classmethod
  def from_issues(cls, issues: list[IntegrityIssue], stats: IntegrityStats) -> IntegritySummary:
    blocking = sum(1 for issue in issues if issue.severity == "critical")
    return cls(ok=blocking == 0, blocking_issues=blocking, warning_issues=len(issues) - blocking, issues=tuple(issues), stats=stats)

  def issue_counts(self) -> dict[str, int]:
    return dict(Counter(issue.type.value for issue in self.issues))

  def to_wire(self, *, issue_limit: int | None = None) -> dict[str, Any]:
    issues = self.issues if issue_limit is None else self.issues[:issue_limit]
    return {
      "ok": self.ok,
      "blockingIssues": self.blocking_issues,
      "warningIssues": self.warning_issues,
      "issues": [issue.to_wire() for issue in issues],
      "stats": self.stats.to_wire(),
    }
