"""Screen budgeting and log line clean-up for the dashboard."""

from __future__ import annotations

import re

HEADER_HEIGHT = 3
FOOTER_HEIGHT = 3
PANEL_CHROME_HEIGHT = 4  # border, title, project line, border
PANEL_RESERVED_LINES = 2  # project summary and padding inside an expanded panel
RECENT_LINES = 15
MIN_LINE_WIDTH = 40
LINE_WIDTH_MARGIN = 8
ELLIPSIS = "..."

_ANSI_CSI = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")
_ANSI_OSC = re.compile(r"\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

_ERROR = re.compile(r"error|fail|✗", re.IGNORECASE)
_SUCCESS = re.compile(r"success|pass|✓|done|completed", re.IGNORECASE)
_WARNING = re.compile(r"warning|warn", re.IGNORECASE)
_PROGRESS = re.compile(r"running|starting|processing", re.IGNORECASE)


def log_height_per_workflow(rows: int, workflow_count: int, expanded_count: int) -> int:
    """Lines each expanded workflow may use; every expanded workflow gets the same share."""

    if expanded_count <= 0:
        return 0
    available = rows - HEADER_HEIGHT - FOOTER_HEIGHT - PANEL_CHROME_HEIGHT * workflow_count
    return max(0, available // expanded_count)


def sanitize_line(line: str) -> str:
    cleaned = _ANSI_OSC.sub("", line)
    cleaned = _ANSI_CSI.sub("", cleaned)
    cleaned = _CONTROL_CHARS.sub("", cleaned)
    cleaned = cleaned.replace("\r", "")
    return cleaned.strip()


def tail_lines(text: str, log_height: int) -> list[str]:
    """Sanitized, non-empty trailing lines that fit in a panel of ``log_height`` lines."""

    lines = [cleaned for cleaned in (sanitize_line(line) for line in text.split("\n")) if cleaned]
    keep = max(1, log_height - PANEL_RESERVED_LINES)
    return lines[-keep:]


def line_style(line: str) -> str | None:
    """Classify a log line for colouring: error, success, warning, running or None."""

    if _ERROR.search(line):
        return "error"
    if _SUCCESS.search(line):
        return "success"
    if _WARNING.search(line):
        return "warning"
    if _PROGRESS.search(line):
        return "running"
    return None


def max_line_width(columns: int) -> int:
    return max(MIN_LINE_WIDTH, columns - LINE_WIDTH_MARGIN)


def truncate_line(line: str, columns: int) -> str:
    limit = max_line_width(columns)
    if len(line) <= limit:
        return line
    return line[: limit - len(ELLIPSIS)] + ELLIPSIS


__all__ = [
    "FOOTER_HEIGHT",
    "HEADER_HEIGHT",
    "PANEL_CHROME_HEIGHT",
    "RECENT_LINES",
    "line_style",
    "log_height_per_workflow",
    "max_line_width",
    "sanitize_line",
    "tail_lines",
    "truncate_line",
]
