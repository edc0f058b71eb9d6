from __future__ import annotations

from pathlib import Path

import pytest

from gopher.storage import StateStore


@pytest.fixture
def store(tmp_path: Path) -> StateStore:
    state = StateStore(tmp_path / "state")
    state.ensure_directories()
    return state


@pytest.fixture
def make_copilot(tmp_path: Path):
    """Write an executable shell script that stands in for the Copilot CLI."""

    def _make(body: str, name: str = "copilot") -> Path:
        script = tmp_path / name
        script.write_text("#!/bin/sh\n" + body, encoding="utf-8")
        script.chmod(0o755)
        return script

    return _make
