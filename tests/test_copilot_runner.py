from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from gopher.copilot import CopilotNotFoundError, CopilotRunner, DEFAULT_PERMISSION_FLAGS
from gopher.copilot.utils import sanitize_environment


def test_start_passes_prompt_and_flags(make_copilot) -> None:
    runner = CopilotRunner(make_copilot('echo "$@"\n'))

    async def scenario() -> tuple[int | None, bytes]:
        process = await runner.start("fix things")
        stdout, _ = await process.communicate()
        return process.returncode, stdout

    returncode, stdout = asyncio.run(scenario())

    assert returncode == 0
    assert stdout.decode().strip() == "-p fix things --allow-all-tools --allow-all-paths"


def test_resume_uses_resume_flag(make_copilot) -> None:
    runner = CopilotRunner(make_copilot('echo "$@"; echo oops >&2; exit 4\n'), flags=["--allow-all-tools"])

    async def scenario() -> tuple[int | None, bytes, bytes]:
        process = await runner.resume()
        stdout, stderr = await process.communicate()
        return process.returncode, stdout, stderr

    returncode, stdout, stderr = asyncio.run(scenario())

    assert returncode == 4
    assert stdout.decode().strip() == "--resume --allow-all-tools"
    assert stderr.decode().strip() == "oops"


def test_default_flags_grant_permissions(make_copilot) -> None:
    runner = CopilotRunner(make_copilot("exit 0\n"))

    assert runner.flags == DEFAULT_PERMISSION_FLAGS
    assert runner.fresh_args("p") == ["-p", "p", *DEFAULT_PERMISSION_FLAGS]
    assert runner.resume_args() == ["--resume", *DEFAULT_PERMISSION_FLAGS]


def test_copilot_not_found(tmp_path: Path) -> None:
    with pytest.raises(CopilotNotFoundError):
        CopilotRunner(tmp_path / "missing")


def test_copilot_not_on_path(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("gopher.copilot.runner.shutil.which", lambda name: None)
    with pytest.raises(CopilotNotFoundError):
        CopilotRunner()


def test_sanitize_environment_strips_virtualenv(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PYTHONPATH", "value")
    monkeypatch.setenv("PAGER", "less")
    env = sanitize_environment({"EXTRA": "1"})

    assert "PYTHONPATH" not in env
    assert env["PAGER"] == "cat"
    assert env["EXTRA"] == "1"
