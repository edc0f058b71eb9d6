"""Copilot CLI session launching."""

from .runner import (
    DEFAULT_PERMISSION_FLAGS,
    CopilotNotFoundError,
    CopilotRunner,
    CopilotRunnerError,
)

__all__ = [
    "CopilotRunner",
    "CopilotRunnerError",
    "CopilotNotFoundError",
    "DEFAULT_PERMISSION_FLAGS",
]
