"""Rich renderables for the workflow dashboard."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from rich import box
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from ..workflows import SessionStatus, WorkflowKind
from .layout import RECENT_LINES, line_style, truncate_line
from .status import ProjectStatus

STATUS_ICONS = {
    SessionStatus.RUNNING: "🔄",
    SessionStatus.COMPLETED: "✅",
    SessionStatus.FAILED: "❌",
    SessionStatus.PENDING: "⏸",
}
PROJECT_ICONS = {
    ProjectStatus.PASS: "✅",
    ProjectStatus.RUNNING: "🔄",
    ProjectStatus.PENDING: "⏸",
}
LINE_COLORS = {
    "error": "red",
    "success": "green",
    "warning": "yellow",
    "running": "cyan",
}
INVALID_LINE = "[Invalid log line]"
WAITING_LINE = "Waiting for output..."
FOOTER_HELP = (
    "↑/↓/k/j: Navigate | Space/Enter/l: Expand | h: Collapse | "
    "E: Expand All | C: Collapse All | Q: Quit"
)


@dataclass(slots=True)
class WorkflowView:
    """Everything needed to draw one workflow panel for a single frame."""

    workflow: WorkflowKind
    status: SessionStatus
    project_statuses: list[ProjectStatus]
    selected: bool = False
    expanded: bool = False
    resumed: bool = False
    log_height: int = 0
    log_lines: list[str] = field(default_factory=list)


def project_glyphs(statuses: Iterable[ProjectStatus]) -> str:
    return " ".join(PROJECT_ICONS.get(status, PROJECT_ICONS[ProjectStatus.PENDING]) for status in statuses)


def render_log_line(line: str, *, recent: bool, columns: int) -> Text:
    """Colour and fit one log line; a line that cannot be drawn becomes a placeholder."""

    try:
        color = LINE_COLORS.get(line_style(line) or "")
        text = Text(truncate_line(line, columns), style=color or ("" if recent else "grey50"))
        text.no_wrap = True
        text.overflow = "ellipsis"
        if not recent:
            text.stylize("dim")
        return text
    except Exception:
        return Text(INVALID_LINE, style="dim red")


def render_log_lines(lines: Sequence[str], columns: int) -> list[Text]:
    first_recent = len(lines) - RECENT_LINES
    return [
        render_log_line(line, recent=index >= first_recent, columns=columns)
        for index, line in enumerate(lines)
    ]


def render_title(view: WorkflowView) -> Text:
    marker = "→" if view.selected else " "
    expand_icon = "▼" if view.expanded else "▶"
    icon = STATUS_ICONS.get(view.status, STATUS_ICONS[SessionStatus.PENDING])
    resumed = " [RESUMED]" if view.resumed and view.status is SessionStatus.RUNNING else ""
    label = f"{marker} {expand_icon} {icon} {view.workflow.value.upper()} [{view.status.value}]{resumed}"
    return Text(label, style="bold cyan" if view.selected else "bold")


def render_workflow_panel(view: WorkflowView, columns: int) -> Panel:
    glyphs = project_glyphs(view.project_statuses)
    parts: list[RenderableType] = [render_title(view)]
    if not view.expanded:
        parts.append(Text(glyphs, style="dim"))
    else:
        parts.append(Text(f"Projects: {glyphs}", style="dim"))
        if view.log_lines:
            parts.extend(render_log_lines(view.log_lines, columns))
        else:
            parts.append(Text(WAITING_LINE, style="dim"))

    return Panel(
        Group(*parts),
        box=box.ROUNDED if view.selected else box.SQUARE,
        border_style="cyan" if view.selected else "grey50",
        padding=(0, 1),
    )


def render_dashboard(
    views: Sequence[WorkflowView],
    workflows: Sequence[WorkflowKind],
    columns: int,
) -> Group:
    names = "/".join(kind.value for kind in workflows).upper()
    header = Panel(
        Text(f"COPILOT {names} FIXING DASHBOARD", style="bold", justify="center"),
        box=box.DOUBLE,
        border_style="cyan",
        padding=(0, 2),
    )
    footer = Panel(Text(FOOTER_HELP, style="dim"), border_style="grey50", padding=(0, 1))
    return Group(header, *(render_workflow_panel(view, columns) for view in views), footer)


__all__ = [
    "INVALID_LINE",
    "PROJECT_ICONS",
    "STATUS_ICONS",
    "WorkflowView",
    "project_glyphs",
    "render_dashboard",
    "render_log_line",
    "render_workflow_panel",
]
