"""Async launcher for the Copilot CLI."""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Sequence

from .utils import sanitize_environment

logger = logging.getLogger(__name__)

DEFAULT_PERMISSION_FLAGS: tuple[str, ...] = ("--allow-all-tools", "--allow-all-paths")


class CopilotRunnerError(RuntimeError):
    """Base class for Copilot runner errors."""


class CopilotNotFoundError(CopilotRunnerError):
    """Raised when the Copilot CLI executable cannot be located."""


class CopilotRunner:
    """Start fresh or resumed Copilot sessions as piped subprocesses."""

    def __init__(
        self,
        executable: Path | None = None,
        *,
        flags: Sequence[str] = DEFAULT_PERMISSION_FLAGS,
    ) -> None:
        self._executable_path = self._resolve_executable(executable)
        self._flags = tuple(flags)

    @staticmethod
    def _resolve_executable(explicit: Path | None) -> Path:
        if explicit is not None:
            candidate = Path(explicit)
            if candidate.exists() and candidate.is_file():
                return candidate
            raise CopilotNotFoundError(f"Copilot executable not found at {candidate}")

        binary = shutil.which("copilot")
        if binary is None:
            raise CopilotNotFoundError("Copilot CLI executable not found on PATH")
        return Path(binary)

    @property
    def executable(self) -> Path:
        return self._executable_path

    @property
    def flags(self) -> tuple[str, ...]:
        return self._flags

    def fresh_args(self, prompt: str) -> list[str]:
        return ["-p", prompt, *self._flags]

    def resume_args(self) -> list[str]:
        return ["--resume", *self._flags]

    async def start(self, prompt: str) -> asyncio.subprocess.Process:
        return await self._launch(*self.fresh_args(prompt))

    async def resume(self) -> asyncio.subprocess.Process:
        return await self._launch(*self.resume_args())

    async def _launch(self, *args: str) -> asyncio.subprocess.Process:
        cmd = [str(self._executable_path), *args]
        logger.debug("Launching session", extra={"executable": cmd[0], "argc": len(args)})
        return await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=sanitize_environment(),
        )


__all__ = [
    "CopilotNotFoundError",
    "CopilotRunner",
    "CopilotRunnerError",
    "DEFAULT_PERMISSION_FLAGS",
]
