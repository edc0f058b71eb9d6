"""Utility helpers for the Copilot runner."""

from __future__ import annotations

import os
from typing import Mapping

_SANITIZED_VARS = {
    "PYTHONHOME",
    "PYTHONPATH",
    "VIRTUAL_ENV",
    "PIP_RESPECT_VIRTUALENV",
}

# Output is piped into a log file, so nothing may wait on a pager.
_NON_INTERACTIVE_VARS = {
    "PAGER": "cat",
    "GIT_PAGER": "cat",
}


def sanitize_environment(additional: Mapping[str, str] | None = None) -> dict[str, str]:
    """Return an environment suitable for an unattended session subprocess."""

    env = dict(os.environ)
    for key in _SANITIZED_VARS:
        env.pop(key, None)
    env.update(_NON_INTERACTIVE_VARS)
    if additional:
        env.update(additional)
    return env
