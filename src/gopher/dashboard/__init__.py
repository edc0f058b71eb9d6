"""Terminal dashboard for running workflow sessions."""

from .app import Dashboard, DashboardContext
from .layout import log_height_per_workflow, sanitize_line, tail_lines, truncate_line
from .render import WorkflowView, render_dashboard
from .state import DashboardState, decode_keys
from .status import (
    HeuristicClassifier,
    ProgressClassifier,
    ProjectStatus,
    StatusClassifier,
    WorkflowSnapshot,
    project_status,
)

__all__ = [
    "Dashboard",
    "DashboardContext",
    "DashboardState",
    "HeuristicClassifier",
    "ProgressClassifier",
    "ProjectStatus",
    "StatusClassifier",
    "WorkflowSnapshot",
    "WorkflowView",
    "decode_keys",
    "log_height_per_workflow",
    "project_status",
    "render_dashboard",
    "sanitize_line",
    "tail_lines",
    "truncate_line",
]
