"""Turn lint findings on a pull request into inline review comments."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Dict, List, Protocol, Sequence

from lint_reviewer.config import CHECK_RUN_NAME, Settings
from lint_reviewer.github_client import GitHubAPIError, GitHubClient
from lint_reviewer.logger import get_logger, log_with_context, log_timing, log_success, log_failure
from lint_reviewer.models.event import PullRequestEvent
from lint_reviewer.models.review import (
    ChangedFile,
    Finding,
    InlineComment,
    LintResult,
    RunOutcome,
    RunSummary,
    Suggestion,
)
from lint_reviewer.services.change_set import fetch_changed_files
from lint_reviewer.utils.cancellation import CancellationToken, ReviewCancelledError, run_with_deadline

logger = get_logger()

ESLINT_RULE_DOCS_URL = "https://eslint.org/docs/latest/rules/"

NO_FILES_SUMMARY = RunSummary(CHECK_RUN_NAME, "No files changed", "No JS/TS files to lint. ✅")
NO_ISSUES_SUMMARY = RunSummary(CHECK_RUN_NAME, "No ESLint issues found 🎉", "Great job! No problems detected.")


class ReviewProcessorError(RuntimeError):
    """Raised when review processing fails."""

    def __init__(self, message: str, step: str):
        super().__init__(message)
        self.step = step


class Suggester(Protocol):
    async def suggest_fix(
        self, error_message: str, code_snippet: str, *, token: CancellationToken | None = None
    ) -> List[Suggestion]: ...


class Linter(Protocol):
    def run(self, files: Sequence[str]) -> List[LintResult]: ...


def failure_summary(error: BaseException) -> RunSummary:
    return RunSummary(CHECK_RUN_NAME, "Action failed ❌", str(error))


def read_code_context(file_path: str | Path, line: int) -> str:
    """Return lines ``line-1`` through ``line+1`` (1-based, clamped at file start)."""

    lines = Path(file_path).read_text(encoding="utf-8", errors="replace").split("\n")
    return "\n".join(lines[max(line - 2, 0): line + 1])


def relative_path(file_path: str, root: Path) -> str:
    return Path(os.path.relpath(file_path, root)).as_posix()


def format_finding_header(finding: Finding) -> str:
    if finding.rule_id:
        rule_link = f"{ESLINT_RULE_DOCS_URL}{finding.rule_id}"
        return f"**ESLint [{finding.rule_id}]({rule_link})**: {finding.message}\n\n"
    return f"**ESLint**: {finding.message}\n\n"


def format_comment_body(finding: Finding, suggestion: Suggestion | None) -> str:
    body = format_finding_header(finding)
    if suggestion is None:
        return body
    body += "💡 **AI Suggestion:**\n"
    body += f"\n```js\n{suggestion.code}\n```\n\n📌 {suggestion.explanation}\n"
    return body


class ReviewProcessor:
    def __init__(
        self,
        settings: Settings,
        github_client: GitHubClient,
        suggester: Suggester,
        linter: Linter,
        *,
        token: CancellationToken | None = None,
    ) -> None:
        self._settings = settings
        self._github = github_client
        self._suggester = suggester
        self._linter = linter
        self._token = token or CancellationToken()

    async def run(self, event: PullRequestEvent) -> RunOutcome:
        pull_request = event.pull_request
        if pull_request is None:
            raise ReviewProcessorError("Event is not a pull request", "load_event")

        full_name = self._settings.repository
        ctx_logger = log_with_context(logger, repository=full_name, pull_number=pull_request.number)
        ctx_logger.info("=== PROCESSOR: Starting lint review ===")

        with log_timing(ctx_logger, "fetch_changed_files"):
            changed_files = await fetch_changed_files(
                self._github,
                full_name=full_name,
                pull_number=pull_request.number,
                extensions=self._settings.file_extensions,
            )

        if not changed_files:
            ctx_logger.info("No JS/TS files changed, skipping linting.")
            await self._report(event, NO_FILES_SUMMARY)
            return RunOutcome(status="no_files_changed", summary=NO_FILES_SUMMARY)

        file_map: Dict[str, ChangedFile] = {f.filename: f for f in changed_files}
        self._token.raise_if_cancelled()
        with log_timing(ctx_logger, "run_style_checker"):
            lint_results = await asyncio.to_thread(self._linter.run, [f.filename for f in changed_files])

        comments: List[InlineComment] = []
        for result in lint_results:
            rel_path = relative_path(result.file_path, self._settings.workspace)
            changed_file = file_map.get(rel_path)
            if changed_file is None:
                ctx_logger.debug(f"Lint result for {rel_path} is outside the change set; skipping")
                continue

            for finding in result.findings:
                self._token.raise_if_cancelled()
                comment = await self._review_finding(event, rel_path, changed_file, finding)
                if comment is not None:
                    comments.append(comment)

        if comments:
            log_success(logger, f"Posted {len(comments)} inline comment(s)", repository=full_name)
            return RunOutcome(status="issues_found", comments=comments)

        await self._report(event, NO_ISSUES_SUMMARY)
        return RunOutcome(status="no_issues_found", summary=NO_ISSUES_SUMMARY)

    async def _review_finding(
        self,
        event: PullRequestEvent,
        rel_path: str,
        changed_file: ChangedFile,
        finding: Finding,
    ) -> InlineComment | None:
        ctx_logger = log_with_context(logger, path=rel_path, line=finding.line, rule=finding.rule_id)

        position = changed_file.position_for(finding.line)
        if position is None:
            ctx_logger.debug("Finding is outside the diff; skipping")
            return None

        code_snippet = read_code_context(finding.file_path, finding.line)
        suggestions = await self._suggester.suggest_fix(finding.message, code_snippet, token=self._token)

        if suggestions:
            body = format_comment_body(finding, suggestions[0])
        elif self._settings.post_lint_only_comments:
            body = format_comment_body(finding, None)
        else:
            ctx_logger.info("No AI suggestion returned; not commenting")
            return None

        comment = InlineComment(path=rel_path, position=position, body=body)
        await self._post_comment(event, comment)
        return comment

    async def _post_comment(self, event: PullRequestEvent, comment: InlineComment) -> None:
        ctx_logger = log_with_context(logger, path=comment.path, position=comment.position)
        try:
            await run_with_deadline(
                self._github.create_review_comment(
                    full_name=self._settings.repository,
                    pull_number=event.pull_request.number,
                    commit_id=event.head_sha,
                    path=comment.path,
                    position=comment.position,
                    body=comment.body,
                ),
                timeout=self._settings.request_timeout,
                token=self._token,
            )
            ctx_logger.info(f"Posted inline comment on {comment.path} at position {comment.position}")
        except ReviewCancelledError:
            raise
        except GitHubAPIError as exc:
            log_failure(logger, f"Failed to create inline comment (status={exc.status_code})", exc,
                        path=comment.path)
        except asyncio.TimeoutError:
            log_failure(logger, f"Creating inline comment timed out after {self._settings.request_timeout}s",
                        path=comment.path)
        except Exception as exc:
            log_failure(logger, "Failed to create inline comment", exc, path=comment.path)

    async def _report(self, event: PullRequestEvent, summary: RunSummary) -> None:
        await post_run_summary(self._github, self._settings, event.head_sha, summary)


async def post_run_summary(
    github_client: GitHubClient,
    settings: Settings,
    head_sha: str | None,
    summary: RunSummary,
) -> None:
    if not head_sha:
        logger.warning(f"No head SHA available; cannot post summary '{summary.summary}'")
        return
    await github_client.create_check_run(
        full_name=settings.repository,
        name=settings.check_run_name,
        head_sha=head_sha,
        title=summary.title,
        summary=summary.summary,
        text=summary.text,
    )
