"""Action entry point: one lint review per pull request event."""

from __future__ import annotations

import asyncio
import signal
import sys

from lint_reviewer.config import Settings, SettingsError, load_settings
from lint_reviewer.gemini_client import GeminiClient
from lint_reviewer.github_client import GitHubClient
from lint_reviewer.logger import get_logger, log_failure
from lint_reviewer.models.event import EventPayloadError, load_event
from lint_reviewer.models.review import RunOutcome
from lint_reviewer.services.review_processor import ReviewProcessor, failure_summary, post_run_summary
from lint_reviewer.services.style_checker import StyleChecker
from lint_reviewer.utils.cancellation import CancellationToken

logger = get_logger()


def _install_signal_handlers(token: CancellationToken) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, token.cancel, f"Review run cancelled by {sig.name}")
        except (NotImplementedError, RuntimeError):  # pragma: no cover - platform without signal support
            pass


async def run_review(
    settings: Settings,
    *,
    github_client: GitHubClient | None = None,
    gemini_client: GeminiClient | None = None,
    style_checker: StyleChecker | None = None,
    token: CancellationToken | None = None,
) -> RunOutcome | None:
    """Run one review; any unhandled failure is reported as a failed check run."""

    event = load_event(settings.event_path)
    if not event.is_pull_request:
        logger.info("This action only runs on pull requests.")
        return None

    github = github_client or GitHubClient(
        base_url=settings.normalized_github_api_base_url,
        token=settings.github_token,
        timeout=settings.request_timeout,
    )
    gemini = gemini_client or GeminiClient(
        settings.gemini_api_key,
        model=settings.gemini_model,
        base_url=settings.normalized_gemini_api_base_url,
        timeout=settings.request_timeout,
    )
    checker = style_checker or StyleChecker(
        eslint_bin=settings.eslint_bin,
        config_path=settings.eslint_config,
        cwd=settings.resolved_eslint_cwd,
        workspace=settings.workspace,
        report_path=settings.resolved_eslint_report,
    )

    processor = ReviewProcessor(settings, github, gemini, checker, token=token)
    try:
        return await processor.run(event)
    except Exception as exc:
        log_failure(logger, "Lint review failed", exc, repository=settings.repository,
                    step=getattr(exc, "step", None))
        try:
            await post_run_summary(github, settings, event.head_sha, failure_summary(exc))
        except Exception as report_exc:
            log_failure(logger, "Failed to report the failed run", report_exc, repository=settings.repository)
        return None
    finally:
        await gemini.aclose()
        await github.aclose()


async def async_main() -> int:
    try:
        settings = load_settings()
    except SettingsError as exc:
        log_failure(logger, "Configuration missing", exc)
        return 1

    token = CancellationToken()
    _install_signal_handlers(token)

    try:
        await run_review(settings, token=token)
    except EventPayloadError as exc:
        log_failure(logger, "Unable to load the event payload", exc)
        return 1
    return 0


def main() -> int:
    return asyncio.run(async_main())


if __name__ == "__main__":
    sys.exit(main())
