"""Unified diff helpers for GitHub pull request review comments.

GitHub's legacy review comment API anchors a comment by ``position``: a
1-indexed offset over every line of the file's ``patch`` text (the field
returned by ``pulls/{number}/files``), hunk headers included. Linters report
absolute line numbers in the final file, so each finding has to be translated
through the map built here before it can be posted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from lint_reviewer.logger import get_logger

logger = get_logger()

HUNK_MARKER = "@@"
NO_NEWLINE_MARKER = "\\"


@dataclass(frozen=True, slots=True)
class HunkHeader:
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    section: str = ""


@dataclass(frozen=True, slots=True)
class MalformedHunkHeader:
    line: str
    reason: str


def _parse_range(token: str, sign: str) -> tuple[int, int] | None:
    """Parse ``-a,b`` / ``+c,d`` (count optional, defaults to 1)."""

    if len(token) < 2 or token[0] != sign:
        return None
    start_raw, sep, count_raw = token[1:].partition(",")
    if not start_raw.isdigit():
        return None
    if sep and not count_raw.isdigit():
        return None
    return int(start_raw), int(count_raw) if sep else 1


def parse_hunk_header(line: str) -> HunkHeader | MalformedHunkHeader:
    """Parse ``@@ -a[,b] +c[,d] @@[ section]`` into its components."""

    if not line.startswith(HUNK_MARKER):
        return MalformedHunkHeader(line, "missing leading @@")

    closing = line.find(HUNK_MARKER, len(HUNK_MARKER))
    if closing == -1:
        return MalformedHunkHeader(line, "missing closing @@")

    ranges = line[len(HUNK_MARKER):closing].split()
    if len(ranges) != 2:
        return MalformedHunkHeader(line, "expected old and new ranges")

    old_range = _parse_range(ranges[0], "-")
    if old_range is None:
        return MalformedHunkHeader(line, f"invalid old range {ranges[0]!r}")
    new_range = _parse_range(ranges[1], "+")
    if new_range is None:
        return MalformedHunkHeader(line, f"invalid new range {ranges[1]!r}")

    return HunkHeader(
        old_start=old_range[0],
        old_count=old_range[1],
        new_start=new_range[0],
        new_count=new_range[1],
        section=line[closing + len(HUNK_MARKER):].strip(),
    )


def split_patch_lines(patch: str) -> List[str]:
    """Split a patch into physical lines.

    A trailing newline terminates the last line rather than opening an empty
    one; a last line without a newline still counts.
    """

    lines = patch.split("\n")
    if patch.endswith("\n"):
        lines.pop()
    return lines


def build_line_position_map(patch: str | None) -> Dict[int, int]:
    """Return map: final-file line number -> diff position (both 1-indexed).

    Context and added lines are keyed; removed lines are not, and they do not
    advance the final-file cursor. Every physical line, hunk headers included,
    consumes one position.
    """

    mapping: Dict[int, int] = {}
    if not patch:
        return mapping

    position = 0
    new_line = 0
    for raw in split_patch_lines(patch):
        position += 1

        if raw.startswith(HUNK_MARKER):
            header = parse_hunk_header(raw)
            if isinstance(header, MalformedHunkHeader):
                logger.warning(
                    f"Malformed hunk header at position {position} ({header.reason}); keeping line cursor at {new_line}"
                )
                continue
            new_line = header.new_start - 1
            continue

        if raw.startswith("-"):
            continue

        # "\ No newline at end of file" belongs to the previous line.
        if raw.startswith(NO_NEWLINE_MARKER):
            continue

        new_line += 1
        mapping[new_line] = position

    return mapping
