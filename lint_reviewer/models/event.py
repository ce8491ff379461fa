"""Data models for the pull request event that triggers a review run."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from pydantic import BaseModel, Field, ValidationError


class PullRequestEndpoint(BaseModel):
    ref: str | None = None
    sha: str | None = None


class PullRequestInfo(BaseModel):
    number: int
    title: str | None = None
    url: str | None = None
    head: PullRequestEndpoint = Field(default_factory=PullRequestEndpoint)
    base: PullRequestEndpoint = Field(default_factory=PullRequestEndpoint)


class RepositoryInfo(BaseModel):
    id: int | None = None
    full_name: str | None = None
    name: str | None = None


class PullRequestEvent(BaseModel):
    action: str | None = None
    pull_request: PullRequestInfo | None = None
    repository: RepositoryInfo | None = None
    sender: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_pull_request(self) -> bool:
        return self.pull_request is not None

    @property
    def head_sha(self) -> str | None:
        return self.pull_request.head.sha if self.pull_request else None


class EventPayloadError(RuntimeError):
    """Raised when the event payload file cannot be read or understood."""


def load_event(path: Path) -> PullRequestEvent:
    """Read the GitHub Actions event payload from disk."""

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise EventPayloadError(f"Unable to read event payload at {path}: {exc}") from exc

    try:
        return PullRequestEvent.model_validate(raw)
    except ValidationError as exc:
        raise EventPayloadError(f"Event payload at {path} is not a valid pull request event.") from exc
