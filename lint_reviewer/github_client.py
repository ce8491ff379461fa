"""GitHub API client helpers."""

from __future__ import annotations

from typing import Any, Dict, List

import httpx


class GitHubAPIError(RuntimeError):
    """Raised when a GitHub API request fails."""

    def __init__(self, message: str, status_code: int, response_body: Any | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


DEFAULT_ACCEPT_HEADER = "application/vnd.github+json"
DEFAULT_API_VERSION = "2022-11-28"
FILES_PAGE_SIZE = 100


class GitHubClient:
    """Token-authenticated client for the pull request endpoints a review run needs."""

    def __init__(
        self,
        *,
        base_url: str,
        token: str,
        timeout: float = 10.0,
        user_agent: str = "Lint-Reviewer/1.0",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._user_agent = user_agent
        self._client = client or httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers={
                "User-Agent": self._user_agent,
                "Authorization": f"Bearer {token}",
                "Accept": DEFAULT_ACCEPT_HEADER,
                "X-GitHub-Api-Version": DEFAULT_API_VERSION,
            },
        )
        self._owns_client = client is None

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Dict[str, Any] | None = None,
        json: Any | None = None,
    ) -> httpx.Response:
        response = await self._client.request(method, url, params=params, json=json)
        if response.status_code >= 400:
            detail: Any | None
            if response.content:
                try:
                    detail = response.json()
                except ValueError:
                    detail = response.text
            else:
                detail = None
            raise GitHubAPIError(
                f"GitHub API request to {url} failed with status {response.status_code}.",
                response.status_code,
                detail,
            )
        return response

    @staticmethod
    def _split_full_name(full_name: str) -> tuple[str, str]:
        if "/" not in full_name:
            raise ValueError(f"Repository full name '{full_name}' is invalid.")
        owner, repo = full_name.split("/", 1)
        return owner, repo

    async def list_pull_request_files(
        self,
        *,
        full_name: str,
        pull_number: int,
    ) -> List[Dict[str, Any]]:
        owner, repo = self._split_full_name(full_name)

        files: List[Dict[str, Any]] = []
        page = 1
        while True:
            response = await self._request(
                "GET",
                f"/repos/{owner}/{repo}/pulls/{pull_number}/files",
                params={"per_page": FILES_PAGE_SIZE, "page": page},
            )
            batch = response.json()
            if not isinstance(batch, list):
                raise GitHubAPIError(
                    "Unexpected response while listing pull request files.",
                    response.status_code,
                    batch,
                )
            files.extend(batch)
            if len(batch) < FILES_PAGE_SIZE:
                break
            page += 1
        return files

    async def create_review_comment(
        self,
        *,
        full_name: str,
        pull_number: int,
        commit_id: str,
        path: str,
        position: int,
        body: str,
    ) -> Dict[str, Any]:
        owner, repo = self._split_full_name(full_name)
        payload: Dict[str, Any] = {
            "body": body,
            "commit_id": commit_id,
            "path": path,
            "position": position,
        }
        response = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/pulls/{pull_number}/comments",
            json=payload,
        )
        return response.json()

    async def create_check_run(
        self,
        *,
        full_name: str,
        name: str,
        head_sha: str,
        title: str,
        summary: str,
        text: str | None = None,
        conclusion: str = "neutral",
    ) -> Dict[str, Any]:
        owner, repo = self._split_full_name(full_name)
        output: Dict[str, Any] = {"title": title, "summary": summary}
        if text:
            output["text"] = text
        payload: Dict[str, Any] = {
            "name": name,
            "head_sha": head_sha,
            "status": "completed",
            "conclusion": conclusion,
            "output": output,
        }
        response = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/check-runs",
            json=payload,
        )
        return response.json()

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
