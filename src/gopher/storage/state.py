"""File-backed state shared between the supervisor and the dashboard."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from ..workflows import ProgressRecord, SessionStatus, WorkflowKind

logger = logging.getLogger(__name__)


def _name(workflow: WorkflowKind | str) -> str:
    return WorkflowKind(getattr(workflow, "value", workflow)).value


class StateStore:
    """Layout and access helpers for everything under the state root.

    Each workflow owns ``logs/<workflow>.log``, ``logs/<workflow>.status`` and
    ``logs/<workflow>.prompt``, written only by its supervisor, plus
    ``progress/<workflow>-progress.json`` written by the external tool. Readers
    treat missing or half-written files as "no data yet".
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def logs_dir(self) -> Path:
        return self._root / "logs"

    @property
    def progress_dir(self) -> Path:
        return self._root / "progress"

    @property
    def workflows_file(self) -> Path:
        return self._root / "selected-workflows.txt"

    @property
    def projects_file(self) -> Path:
        return self._root / "selected-projects.txt"

    @property
    def resume_note_path(self) -> Path:
        return self._root / "resume-status.txt"

    def ensure_directories(self) -> None:
        for path in (self._root, self.logs_dir, self.progress_dir):
            path.mkdir(parents=True, exist_ok=True)

    def log_path(self, workflow: WorkflowKind | str) -> Path:
        return self.logs_dir / f"{_name(workflow)}.log"

    def status_path(self, workflow: WorkflowKind | str) -> Path:
        return self.logs_dir / f"{_name(workflow)}.status"

    def prompt_path(self, workflow: WorkflowKind | str) -> Path:
        return self.logs_dir / f"{_name(workflow)}.prompt"

    def progress_path(self, workflow: WorkflowKind | str) -> Path:
        return self.progress_dir / f"{_name(workflow)}-progress.json"

    # Session status

    def read_status(self, workflow: WorkflowKind | str) -> SessionStatus:
        """Return the persisted status; anything unreadable counts as PENDING."""

        try:
            token = self.status_path(workflow).read_text(encoding="utf-8").strip()
        except OSError:
            return SessionStatus.PENDING
        try:
            return SessionStatus(token)
        except ValueError:
            return SessionStatus.PENDING

    def write_status(self, workflow: WorkflowKind | str, status: SessionStatus) -> None:
        path = self.status_path(workflow)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(status.value, encoding="utf-8")

    def was_abandoned(self, workflow: WorkflowKind | str) -> bool:
        """A RUNNING status at launch time means the previous run never finished."""

        return self.read_status(workflow) is SessionStatus.RUNNING

    def write_prompt(self, workflow: WorkflowKind | str, prompt: str) -> None:
        path = self.prompt_path(workflow)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(prompt, encoding="utf-8")

    # Read-only views used by the dashboard

    def read_progress(self, workflow: WorkflowKind | str) -> ProgressRecord | None:
        try:
            raw = self.progress_path(workflow).read_text(encoding="utf-8", errors="replace")
            return ProgressRecord.model_validate(json.loads(raw))
        except (OSError, ValueError, TypeError, ValidationError):
            return None

    def read_log(self, workflow: WorkflowKind | str) -> str:
        try:
            return self.log_path(workflow).read_text(encoding="utf-8", errors="replace")
        except OSError:
            return ""

    # Selections and operator notes

    def load_selection(self, path: Path) -> list[str] | None:
        """Return the tokens stored in a selection file, or None when there is none."""

        try:
            content = path.read_text(encoding="utf-8")
        except OSError:
            return None
        tokens = [line.strip() for line in content.splitlines() if line.strip()]
        return tokens or None

    def save_selection(self, path: Path, items: Iterable[str]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(items), encoding="utf-8")

    def write_resume_note(self, workflows: Iterable[WorkflowKind | str]) -> None:
        names = [_name(workflow) for workflow in workflows]
        self._root.mkdir(parents=True, exist_ok=True)
        self.resume_note_path.write_text(
            f"Resuming abandoned workflows: {', '.join(names)}\n", encoding="utf-8"
        )
        logger.info("Recorded abandoned workflows", extra={"workflows": names})


__all__ = ["StateStore"]
