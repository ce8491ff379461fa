"""Action configuration helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Final, Mapping

from dotenv import load_dotenv
from pydantic import AnyHttpUrl, BaseModel, Field, ValidationError

# Local runs pick up a .env file from the working directory
load_dotenv()


class SettingsError(RuntimeError):
    """Raised when action configuration is invalid or incomplete."""


DEFAULT_GITHUB_API_BASE_URL: Final[str] = "https://api.github.com"
DEFAULT_GEMINI_API_BASE_URL: Final[str] = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL: Final[str] = "gemini-2.0-flash"
DEFAULT_FILE_EXTENSIONS: Final[tuple[str, ...]] = (".js", ".ts")
CHECK_RUN_NAME: Final[str] = "ESLint Gemini Suggestions"


class Settings(BaseModel):
    """Runtime settings for one review run, built once at process entry."""

    github_token: str
    gemini_api_key: str
    repository: str
    event_path: Path
    workspace: Path
    github_api_base_url: AnyHttpUrl = DEFAULT_GITHUB_API_BASE_URL
    gemini_api_base_url: AnyHttpUrl = DEFAULT_GEMINI_API_BASE_URL
    gemini_model: str = DEFAULT_GEMINI_MODEL
    file_extensions: tuple[str, ...] = DEFAULT_FILE_EXTENSIONS
    eslint_bin: str = "./node_modules/.bin/eslint"
    eslint_config: str = ".eslintrc.json"
    eslint_cwd: Path | None = None
    eslint_report: Path | None = None
    request_timeout: float = Field(default=30.0, gt=0)
    post_lint_only_comments: bool = False
    check_run_name: str = CHECK_RUN_NAME

    @property
    def normalized_github_api_base_url(self) -> str:
        """Return the GitHub API base URL without a trailing slash."""
        return str(self.github_api_base_url).rstrip("/")

    @property
    def normalized_gemini_api_base_url(self) -> str:
        """Return the Gemini API base URL without a trailing slash."""
        return str(self.gemini_api_base_url).rstrip("/")

    @property
    def resolved_eslint_cwd(self) -> Path:
        return self.eslint_cwd or self.workspace / "action"

    @property
    def resolved_eslint_report(self) -> Path:
        return self.eslint_report or self.workspace / "eslint-report.json"


_TRUE_VALUES: Final[set[str]] = {"1", "true", "yes", "on"}


def _parse_bool_env(raw_value: str | None, *, default: bool = False) -> bool:
    """Convert an environment variable string to a boolean value."""

    if raw_value is None or not raw_value.strip():
        return default
    return raw_value.strip().lower() in _TRUE_VALUES


def _parse_extensions(raw_value: str | None) -> tuple[str, ...]:
    if not raw_value or not raw_value.strip():
        return DEFAULT_FILE_EXTENSIONS
    extensions = []
    for item in raw_value.split(","):
        item = item.strip()
        if not item:
            continue
        extensions.append(item if item.startswith(".") else f".{item}")
    return tuple(extensions) or DEFAULT_FILE_EXTENSIONS


def _first(env: Mapping[str, str], *names: str) -> str | None:
    for name in names:
        value = env.get(name)
        if value and value.strip():
            return value.strip()
    return None


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build settings from action inputs and GitHub runner variables."""

    env = os.environ if environ is None else environ

    github_token = _first(env, "INPUT_GITHUB_TOKEN", "GITHUB_TOKEN")
    gemini_api_key = _first(env, "INPUT_GEMINI_API_KEY", "GEMINI_API_KEY")
    repository = _first(env, "GITHUB_REPOSITORY")
    event_path = _first(env, "GITHUB_EVENT_PATH")

    missing = []
    if not github_token:
        missing.append("INPUT_GITHUB_TOKEN")
    if not gemini_api_key:
        missing.append("INPUT_GEMINI_API_KEY")
    if not repository:
        missing.append("GITHUB_REPOSITORY")
    if not event_path:
        missing.append("GITHUB_EVENT_PATH")
    if missing:
        missing_vars = ", ".join(missing)
        raise SettingsError(
            "Lint review is not configured. Missing environment variables: "
            f"{missing_vars}."
        )

    owner, _, name = repository.partition("/")
    if not owner or not name or "/" in name:
        raise SettingsError(
            f"Invalid GITHUB_REPOSITORY value '{repository}'. Expected 'owner/repo'."
        )

    workspace = _first(env, "GITHUB_WORKSPACE") or os.getcwd()
    eslint_cwd = _first(env, "INPUT_ESLINT_CWD")
    timeout_raw = _first(env, "INPUT_REQUEST_TIMEOUT")

    try:
        request_timeout = float(timeout_raw) if timeout_raw else 30.0
    except ValueError as exc:
        raise SettingsError("Invalid value for INPUT_REQUEST_TIMEOUT. It must be a number.") from exc

    try:
        return Settings(
            github_token=github_token,
            gemini_api_key=gemini_api_key,
            repository=repository,
            event_path=Path(event_path),
            workspace=Path(workspace),
            github_api_base_url=_first(env, "GITHUB_API_URL") or DEFAULT_GITHUB_API_BASE_URL,
            gemini_api_base_url=_first(env, "GEMINI_API_BASE_URL") or DEFAULT_GEMINI_API_BASE_URL,
            gemini_model=_first(env, "INPUT_GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
            file_extensions=_parse_extensions(env.get("INPUT_FILE_EXTENSIONS")),
            eslint_bin=_first(env, "INPUT_ESLINT_BIN") or "./node_modules/.bin/eslint",
            eslint_config=_first(env, "INPUT_ESLINT_CONFIG") or ".eslintrc.json",
            eslint_cwd=Path(eslint_cwd) if eslint_cwd else None,
            request_timeout=request_timeout,
            post_lint_only_comments=_parse_bool_env(env.get("INPUT_POST_LINT_ONLY_COMMENTS")),
        )
    except ValidationError as exc:
        raise SettingsError("Invalid action configuration.") from exc
