"""Client wrapper for requesting fix suggestions from the Gemini API."""

from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

import httpx
from pydantic import BaseModel, ValidationError

from lint_reviewer.logger import get_logger, log_with_context, log_timing
from lint_reviewer.models.review import Suggestion
from lint_reviewer.utils.cancellation import CancellationToken, ReviewCancelledError, run_with_deadline

logger = get_logger()

_FENCED_BLOCK_RE = re.compile(r"```(?:json)?[ \t]*\r?\n(.*?)```", re.DOTALL)


class GeminiAPIError(RuntimeError):
    """Raised when the Gemini API responds with an error."""


class _SuggestionEntry(BaseModel):
    code: str | None = None
    explanation: str | None = None


class _SuggestionEnvelope(BaseModel):
    suggestions: List[_SuggestionEntry] = []


@dataclass(frozen=True, slots=True)
class ParsedSuggestions:
    suggestions: List[Suggestion] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class UnparseableResponse:
    raw_text: str
    reason: str


SuggestionParseResult = ParsedSuggestions | UnparseableResponse


def build_prompt(error_message: str, code_snippet: str) -> str:
    return (
        "Here is a JavaScript/TypeScript ESLint error message and a code snippet.\n"
        "Please suggest 1 alternative code snippet that fixes the issue.\n"
        "Include a brief explanation including 2 or 3 sentences.\n"
        "\n"
        "Respond ONLY in raw JSON. Do NOT use Markdown or backticks.\n"
        "Wrap all code and text in valid JSON strings using double quotes.\n"
        "\n"
        "**ESLint Error:**\n"
        f"{error_message}\n"
        "\n"
        "**Original Code:**\n"
        f"{code_snippet}\n"
        "\n"
        "**Expected JSON Response Format:**\n"
        "{\n"
        "  \"suggestions\": [\n"
        "    {\n"
        "      \"code\": \"<alternative code snippet>\",\n"
        "      \"explanation\": \"<brief explanation of why this is a better approach>\"\n"
        "    }\n"
        "  ]\n"
        "}"
    )


def extract_json_fragment(text: str) -> str:
    """Return the body of the first fenced code block, or the text itself."""

    match = _FENCED_BLOCK_RE.search(text)
    if match:
        return match.group(1)
    return text


def parse_suggestions(text: str) -> SuggestionParseResult:
    if not isinstance(text, str):
        return UnparseableResponse(repr(text), f"expected text, got {type(text).__name__}")

    fragment = extract_json_fragment(text).strip()
    if not fragment:
        return UnparseableResponse(text, "empty response")

    try:
        data = json.loads(fragment)
    except json.JSONDecodeError as exc:
        return UnparseableResponse(text, f"invalid JSON: {exc}")

    try:
        envelope = _SuggestionEnvelope.model_validate(data)
    except ValidationError as exc:
        return UnparseableResponse(text, f"unexpected shape: {exc.error_count()} validation error(s)")

    suggestions = [
        Suggestion(code=entry.code, explanation=entry.explanation)
        for entry in envelope.suggestions
        if entry.code is not None and entry.explanation is not None
    ]
    return ParsedSuggestions(suggestions)


def _extract_text(payload: Dict[str, Any]) -> str:
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return "{}"
    if not isinstance(text, str) or not text:
        return "{}"
    return text


class GeminiClient:
    def __init__(
        self,
        api_key: str,
        *,
        model: str = "gemini-2.0-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._model = model
        self._timeout = timeout
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers={
                "x-goog-api-key": api_key,
                "Content-Type": "application/json",
            },
        )
        self._owns_client = client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def generate(self, prompt: str) -> str:
        response = await self._client.post(
            f"/models/{self._model}:generateContent",
            json={"contents": [{"role": "user", "parts": [{"text": prompt}]}]},
        )
        _raise_for_status("generate content", response)
        try:
            payload = response.json()
        except ValueError as exc:
            raise GeminiAPIError("Gemini returned a non-JSON response body.") from exc
        return _extract_text(payload)

    async def suggest_fix(
        self,
        error_message: str,
        code_snippet: str,
        *,
        token: CancellationToken | None = None,
    ) -> List[Suggestion]:
        """Return at most one suggestion; failures are logged and yield an empty list."""

        ctx_logger = log_with_context(logger, model=self._model)
        prompt = build_prompt(error_message, code_snippet)

        try:
            with log_timing(ctx_logger, "gemini_generate"):
                raw_text = await run_with_deadline(self.generate(prompt), timeout=self._timeout, token=token)
        except ReviewCancelledError:
            raise
        except GeminiAPIError as exc:
            ctx_logger.error(f"Error fetching AI suggestions: {exc}")
            return []
        except asyncio.TimeoutError:
            ctx_logger.error(f"Gemini request timed out after {self._timeout}s")
            return []
        except httpx.HTTPError as exc:
            ctx_logger.error(f"Gemini request failed: {exc}")
            return []

        result = parse_suggestions(raw_text)
        if isinstance(result, UnparseableResponse):
            ctx_logger.error(f"Failed to parse Gemini response: {result.reason}")
            ctx_logger.debug(f"Unparseable Gemini response: {result.raw_text[:500]}")
            return []
        return result.suggestions[:1]


def _raise_for_status(action: str, response: httpx.Response) -> None:
    if response.status_code < 400:
        return
    detail: Any | None
    try:
        detail = response.json()
    except ValueError:
        detail = response.text
    raise GeminiAPIError(f"Failed to {action}: status={response.status_code}, detail={detail}")
