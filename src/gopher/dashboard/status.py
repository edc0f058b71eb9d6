"""Per-project status derivation from progress beacons and log text."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from ..storage import StateStore
from ..workflows import ProgressRecord, WorkflowKind


class ProjectStatus(str, Enum):
    PASS = "PASS"
    RUNNING = "RUNNING"
    PENDING = "PENDING"


@dataclass(slots=True, frozen=True)
class WorkflowSnapshot:
    """What one poll tick knows about a workflow's progress file and log."""

    workflow: WorkflowKind
    progress: ProgressRecord | None
    log_text: str

    @classmethod
    def read(cls, store: StateStore, workflow: WorkflowKind) -> "WorkflowSnapshot":
        return cls(
            workflow=workflow,
            progress=store.read_progress(workflow),
            log_text=store.read_log(workflow),
        )


class StatusClassifier(Protocol):
    def classify(self, project: str, snapshot: WorkflowSnapshot) -> ProjectStatus: ...


class ProgressClassifier:
    """Trusts only the structured progress record."""

    def classify(self, project: str, snapshot: WorkflowSnapshot) -> ProjectStatus:
        return self._from_progress(project, snapshot.progress) or ProjectStatus.PENDING

    @staticmethod
    def _from_progress(project: str, progress: ProgressRecord | None) -> ProjectStatus | None:
        if progress is None:
            return None
        if project in progress.completed_projects:
            return ProjectStatus.PASS
        if progress.current_project == project:
            return ProjectStatus.RUNNING
        return None


class HeuristicClassifier(ProgressClassifier):
    """Progress record first, then a case-insensitive scan of the log.

    A project counts as passed when its name is followed by ``done``,
    ``completed`` or ``pass`` later on the same log line.
    """

    def classify(self, project: str, snapshot: WorkflowSnapshot) -> ProjectStatus:
        status = self._from_progress(project, snapshot.progress)
        if status is not None:
            return status
        if not project or not snapshot.log_text:
            return ProjectStatus.PENDING

        text = snapshot.log_text.lower()
        name = project.lower()
        if name not in text:
            return ProjectStatus.PENDING
        if re.search(re.escape(name) + r".*(?:done|completed|pass)", text):
            return ProjectStatus.PASS
        return ProjectStatus.RUNNING


def project_status(
    store: StateStore,
    project: str,
    workflow: WorkflowKind | str,
    classifier: StatusClassifier | None = None,
) -> ProjectStatus:
    """Derive one project's status for a workflow from the files on disk right now."""

    kind = WorkflowKind(getattr(workflow, "value", workflow))
    snapshot = WorkflowSnapshot.read(store, kind)
    return (classifier or HeuristicClassifier()).classify(project, snapshot)


__all__ = [
    "HeuristicClassifier",
    "ProgressClassifier",
    "ProjectStatus",
    "StatusClassifier",
    "WorkflowSnapshot",
    "project_status",
]
