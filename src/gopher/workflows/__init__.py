"""Workflow definitions, catalog and prompt construction."""

from .loader import DEFAULT_WORKFLOWS, WorkflowCatalog, WorkflowLoadError
from .models import (
    WORKFLOW_ORDER,
    ProgressRecord,
    SessionStatus,
    WorkflowDefinition,
    WorkflowKind,
    order_workflows,
)
from .prompt import build_workflow_todo

__all__ = [
    "DEFAULT_WORKFLOWS",
    "ProgressRecord",
    "SessionStatus",
    "WORKFLOW_ORDER",
    "WorkflowCatalog",
    "WorkflowDefinition",
    "WorkflowKind",
    "WorkflowLoadError",
    "build_workflow_todo",
    "order_workflows",
]
