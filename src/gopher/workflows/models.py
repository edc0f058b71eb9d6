"""Workflow, session status and progress models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WorkflowKind(str, Enum):
    """The fixed set of fix workflows Gopher knows how to run."""

    TYPE = "type"
    BUILD = "build"
    TEST = "test"
    LINT = "lint"


WORKFLOW_ORDER: tuple[WorkflowKind, ...] = (
    WorkflowKind.TYPE,
    WorkflowKind.BUILD,
    WorkflowKind.TEST,
    WorkflowKind.LINT,
)


class SessionStatus(str, Enum):
    """Persisted lifecycle state of one workflow session."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.FAILED)


def order_workflows(selection: Iterable[str | WorkflowKind]) -> list[WorkflowKind]:
    """Return the selection in canonical order, dropping duplicates and unknown names."""

    chosen: set[WorkflowKind] = set()
    for item in selection:
        try:
            chosen.add(WorkflowKind(str(getattr(item, "value", item)).strip()))
        except ValueError:
            continue
    return [kind for kind in WORKFLOW_ORDER if kind in chosen]


class WorkflowDefinition(BaseModel):
    """Describes what a workflow asks the external tool to do."""

    model_config = ConfigDict(frozen=True)

    id: WorkflowKind = Field(..., description="Workflow kind this definition applies to.")
    title: str = Field(..., description="Label shown in the selection menu.")
    action: str = Field(..., description="Short imperative used for TODO lines.")
    instructions: str = Field(..., description="Detailed instructions handed to the tool.")

    @field_validator("title", "action", "instructions")
    @classmethod
    def _require_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Workflow text fields must not be empty")
        return normalized


class ProgressRecord(BaseModel):
    """Progress beacon written by the external tool while it works."""

    model_config = ConfigDict(extra="ignore")

    current_project: str = ""
    current_task: int = 0
    completed_projects: list[str] = Field(default_factory=list)

    @field_validator("completed_projects", mode="before")
    @classmethod
    def _ensure_list(cls, value: Any):  # type: ignore[override]
        if value is None:
            return []
        if isinstance(value, (list, tuple)):
            return [str(item) for item in value]
        raise ValueError("completed_projects must be a list of project names")


__all__ = [
    "ProgressRecord",
    "SessionStatus",
    "WORKFLOW_ORDER",
    "WorkflowDefinition",
    "WorkflowKind",
    "order_workflows",
]
