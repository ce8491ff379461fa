import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from lint_reviewer.config import Settings
from lint_reviewer.github_client import GitHubClient
from lint_reviewer.models.event import PullRequestEvent


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    (root / "src").mkdir(parents=True)
    return root


@pytest.fixture
def event_payload() -> dict:
    return {
        "action": "synchronize",
        "pull_request": {
            "number": 42,
            "title": "Add widgets",
            "head": {"ref": "feature", "sha": "headsha"},
            "base": {"ref": "main", "sha": "basesha"},
        },
        "repository": {"full_name": "octo/repo", "name": "repo"},
    }


@pytest.fixture
def event_file(tmp_path: Path, event_payload: dict) -> Path:
    path = tmp_path / "event.json"
    path.write_text(json.dumps(event_payload), encoding="utf-8")
    return path


@pytest.fixture
def settings(workspace: Path, event_file: Path) -> Settings:
    return Settings(
        github_token="gh-token",
        gemini_api_key="gemini-key",
        repository="octo/repo",
        event_path=event_file,
        workspace=workspace,
    )


@pytest.fixture
def event(event_payload: dict) -> PullRequestEvent:
    return PullRequestEvent.model_validate(event_payload)


@pytest.fixture
def github_client() -> MagicMock:
    client = MagicMock(spec=GitHubClient)
    client.list_pull_request_files = AsyncMock(return_value=[])
    client.create_review_comment = AsyncMock(return_value={"id": 1})
    client.create_check_run = AsyncMock(return_value={"id": 2})
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def suggester() -> MagicMock:
    mock = MagicMock()
    mock.suggest_fix = AsyncMock(return_value=[])
    mock.aclose = AsyncMock()
    return mock


@pytest.fixture
def linter() -> MagicMock:
    mock = MagicMock()
    mock.run.return_value = []
    return mock
