"""Run ESLint against the changed files and read its JSON report."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any, List, Sequence

from lint_reviewer.logger import get_logger, log_timing
from lint_reviewer.models.review import Finding, LintResult

logger = get_logger()

EXCLUDED_PREFIXES = ("action/", "node_modules/")


class StyleCheckerError(RuntimeError):
    """Raised when the ESLint report cannot be produced or read."""


def filter_lintable(files: Sequence[str]) -> List[str]:
    return [f for f in files if not f.startswith(EXCLUDED_PREFIXES)]


def parse_report(raw: Any) -> List[LintResult]:
    """Convert ESLint's JSON formatter output into lint results."""

    if not isinstance(raw, list):
        raise StyleCheckerError("ESLint report must be a JSON array of file results.")

    results: List[LintResult] = []
    for entry in raw:
        if not isinstance(entry, dict) or not entry.get("filePath"):
            logger.warning(f"Skipping ESLint report entry without filePath: {entry!r}")
            continue
        file_path = entry["filePath"]
        findings: List[Finding] = []
        for message in entry.get("messages") or []:
            line = message.get("line")
            if not isinstance(line, int) or line < 1:
                # File-level messages (e.g. parse errors on ignored files) carry no line.
                continue
            findings.append(
                Finding(
                    file_path=file_path,
                    line=line,
                    message=message.get("message", ""),
                    rule_id=message.get("ruleId") or None,
                )
            )
        results.append(LintResult(file_path=file_path, findings=findings))
    return results


class StyleChecker:
    def __init__(
        self,
        *,
        eslint_bin: str,
        config_path: str,
        cwd: Path,
        workspace: Path,
        report_path: Path,
    ) -> None:
        self._eslint_bin = eslint_bin
        self._config_path = config_path
        self._cwd = cwd
        self._workspace = workspace
        self._report_path = report_path

    def build_command(self, files: Sequence[str]) -> List[str]:
        return [
            self._eslint_bin,
            *(str(self._workspace / f) for f in files),
            "--format",
            "json",
            "-c",
            self._config_path,
            "-o",
            str(self._report_path),
        ]

    def run(self, files: Sequence[str]) -> List[LintResult]:
        lintable = filter_lintable(files)
        if not lintable:
            logger.info("No lintable files after filtering, skipping ESLint")
            return []

        command = self.build_command(lintable)
        # A report left by an earlier run must not be read as this run's output.
        self._report_path.unlink(missing_ok=True)
        logger.info(f"Running ESLint on {len(lintable)} file(s)...")
        with log_timing(logger, "eslint"):
            try:
                completed = subprocess.run(command, cwd=self._cwd, capture_output=True, text=True)
            except OSError as exc:
                raise StyleCheckerError(f"Unable to start ESLint ({self._eslint_bin}): {exc}") from exc

        # ESLint exits 1 when it finds problems; the report is still written.
        if completed.returncode != 0:
            logger.warning(f"ESLint exited with status {completed.returncode}")
            if completed.stderr:
                logger.debug(f"ESLint stderr: {completed.stderr.strip()}")

        return self.read_report()

    def read_report(self) -> List[LintResult]:
        try:
            raw = json.loads(self._report_path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise StyleCheckerError(f"ESLint report not found at {self._report_path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise StyleCheckerError(f"ESLint report at {self._report_path} is not valid JSON: {exc}") from exc
        results = parse_report(raw)
        logger.info(f"Done ESLint: {sum(len(r.findings) for r in results)} finding(s) in {len(results)} file(s)")
        return results
