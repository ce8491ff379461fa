import pytest

from lint_reviewer.github_client import GitHubAPIError
from lint_reviewer.services.change_set import build_changed_files, fetch_changed_files, is_source_file


def test_is_source_file() -> None:
    assert is_source_file("src/app.ts", (".js", ".ts"))
    assert not is_source_file("src/app.json", (".js", ".ts"))


def test_build_changed_files_filters_and_indexes() -> None:
    files = [
        {"filename": "src/a.js", "patch": "@@ -1 +1,2 @@\n a\n+b"},
        {"filename": "docs/readme.md", "patch": "@@ -1 +1 @@\n+x"},
        {"filename": "src/logo.ts"},
        {"patch": "@@ -1 +1 @@\n+x"},
    ]
    changed = build_changed_files(files, (".js", ".ts"))

    assert [f.filename for f in changed] == ["src/a.js", "src/logo.ts"]
    assert changed[0].position_map == {1: 2, 2: 3}
    # a file without patch text (binary, rename-only) is kept but never commentable
    assert changed[1].patch is None
    assert changed[1].position_map == {}


@pytest.mark.asyncio
async def test_fetch_changed_files_keeps_provider_order(github_client) -> None:
    github_client.list_pull_request_files.return_value = [
        {"filename": "z.js", "patch": None},
        {"filename": "a.js", "patch": None},
    ]
    changed = await fetch_changed_files(github_client, full_name="octo/repo", pull_number=3, extensions=(".js",))

    assert [f.filename for f in changed] == ["z.js", "a.js"]
    github_client.list_pull_request_files.assert_awaited_once_with(full_name="octo/repo", pull_number=3)


@pytest.mark.asyncio
async def test_fetch_changed_files_propagates_errors(github_client) -> None:
    github_client.list_pull_request_files.side_effect = GitHubAPIError("forbidden", 403)
    with pytest.raises(GitHubAPIError):
        await fetch_changed_files(github_client, full_name="octo/repo", pull_number=3, extensions=(".js",))
