"""Helpers to build the changed-file set of a pull request."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from lint_reviewer.github_client import GitHubAPIError, GitHubClient
from lint_reviewer.logger import get_logger, log_with_context, log_timing
from lint_reviewer.models.review import ChangedFile
from lint_reviewer.services.patch_index import build_line_position_map

logger = get_logger()


def is_source_file(filename: str, extensions: Iterable[str]) -> bool:
    return filename.endswith(tuple(extensions))


def build_changed_files(files: List[Dict[str, Any]], extensions: Iterable[str]) -> List[ChangedFile]:
    """Filter raw file entries to source files and index each patch."""

    extensions = tuple(extensions)
    changed: List[ChangedFile] = []
    skipped_count = 0
    for entry in files:
        filename = entry.get("filename")
        if not filename:
            logger.warning(f"Skipping file entry missing filename: {entry}")
            skipped_count += 1
            continue
        if not is_source_file(filename, extensions):
            continue
        patch = entry.get("patch")
        changed.append(
            ChangedFile(
                filename=filename,
                patch=patch,
                position_map=build_line_position_map(patch),
            )
        )
    if skipped_count > 0:
        logger.warning(f"Skipped {skipped_count} file(s) due to missing filename")
    logger.debug(f"Kept {len(changed)} source file(s) from {len(files)} changed file entries")
    return changed


async def fetch_changed_files(
    client: GitHubClient,
    *,
    full_name: str,
    pull_number: int,
    extensions: Iterable[str],
) -> List[ChangedFile]:
    ctx_logger = log_with_context(logger, repository=full_name, pull_number=pull_number)
    ctx_logger.info(f"Fetching changed files for PR #{pull_number}")

    try:
        with log_timing(ctx_logger, "fetch_pr_files"):
            files = await client.list_pull_request_files(full_name=full_name, pull_number=pull_number)
    except GitHubAPIError as exc:
        if exc.status_code == 404:
            ctx_logger.error(f"PR or repository not found (404): {exc}")
        elif exc.status_code == 403:
            ctx_logger.error(f"Permission denied (403): {exc}")
        else:
            ctx_logger.error(f"GitHub API error ({exc.status_code}): {exc}")
        raise

    changed = build_changed_files(files, extensions)
    ctx_logger.info(f"PR #{pull_number} changed {len(files)} file(s), {len(changed)} to lint")
    return changed
