"""Shared data structures for lint review processing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Literal


@dataclass(slots=True)
class ChangedFile:
    filename: str
    patch: str | None
    position_map: Dict[int, int] = field(default_factory=dict)

    def position_for(self, line: int) -> int | None:
        """Return the diff position for a final-file line, or None when it is not visible."""
        return self.position_map.get(line)


@dataclass(slots=True)
class Finding:
    file_path: str
    line: int
    message: str
    rule_id: str | None = None


@dataclass(slots=True)
class LintResult:
    file_path: str
    findings: List[Finding] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Suggestion:
    code: str
    explanation: str


@dataclass(frozen=True, slots=True)
class InlineComment:
    path: str
    position: int
    body: str


@dataclass(frozen=True, slots=True)
class RunSummary:
    title: str
    summary: str
    text: str


RunStatus = Literal["no_files_changed", "issues_found", "no_issues_found"]


@dataclass(slots=True)
class RunOutcome:
    status: RunStatus
    comments: List[InlineComment] = field(default_factory=list)
    summary: RunSummary | None = None
