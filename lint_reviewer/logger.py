"""Loguru setup shared by the action's modules.

Everything goes to stdout so it shows up in the workflow log. Setting
``LINT_REVIEW_LOG_DIR`` additionally keeps daily DEBUG files, which helps
when replaying an event payload locally.
"""

from __future__ import annotations

import os
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from loguru import logger as _logger

LOG_DIR_ENV = "LINT_REVIEW_LOG_DIR"
LOG_LEVEL_ENV = "LINT_REVIEW_LOG_LEVEL"

_LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

_configured = False


def _log_dir_from(explicit: str | Path | None) -> Path | None:
    raw = explicit if explicit is not None else os.getenv(LOG_DIR_ENV)
    if not raw:
        return None
    return Path(raw).expanduser().resolve()


def _add_file_sink(directory: Path) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    _logger.add(
        directory / "lint-review-{time:YYYY-MM-DD}.log",
        level="DEBUG",
        format=_LOG_FORMAT,
        rotation="50 MB",
        retention="10 days",
        enqueue=True,
        backtrace=True,
        diagnose=True,
    )


def configure_logger(*, log_dir: str | Path | None = None, level: str | None = None) -> None:
    """Install the stdout sink (and the optional file sink) on first call only."""

    global _configured
    if _configured:
        return

    _logger.remove()
    _logger.add(
        sys.stdout,
        level=level or os.getenv(LOG_LEVEL_ENV, "INFO"),
        format=_LOG_FORMAT,
        colorize=sys.stdout.isatty(),
    )
    directory = _log_dir_from(log_dir)
    if directory is not None:
        _add_file_sink(directory)

    _configured = True


def get_logger(*, log_dir: str | Path | None = None, level: str | None = None):
    configure_logger(log_dir=log_dir, level=level)
    return _logger


def log_with_context(logger_instance, **context: str | int | None) -> Any:
    """Bind the given fields, ignoring ones that are None.

    ``log_with_context(logger, path="src/app.js", line=None)`` binds only ``path``,
    so callers can pass optional values such as an ESLint rule id unchanged.
    """
    return logger_instance.bind(**{key: value for key, value in context.items() if value is not None})


@contextmanager
def log_timing(logger_instance, operation: str, **context: str | int | None) -> Iterator[Any]:
    """Time the wrapped block at DEBUG level; failures are logged at ERROR and re-raised."""

    bound = log_with_context(logger_instance, **context)
    started = time.perf_counter()
    bound.debug(f"Starting {operation}")
    try:
        yield bound
    except Exception as exc:
        bound.error(f"Failed {operation} after {time.perf_counter() - started:.3f}s: {exc}")
        raise
    bound.debug(f"Completed {operation} in {time.perf_counter() - started:.3f}s")


def log_success(logger_instance, message: str, **context: str | int | None) -> None:
    log_with_context(logger_instance, **context).info(f"=== SUCCESS: {message} ===")


def log_failure(logger_instance, message: str, error: Exception | None = None, **context: str | int | None) -> None:
    """Report a failed step; the error text, when given, is appended to the banner."""
    suffix = f" | Error: {error}" if error else ""
    log_with_context(logger_instance, **context).error(f"=== FAILURE: {message}{suffix} ===")
