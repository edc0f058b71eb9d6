"""Instruction payload sent to the external tool for a fresh session."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from .models import WorkflowDefinition


def build_workflow_todo(
    definition: WorkflowDefinition,
    projects: Sequence[str],
    progress_file: Path,
) -> str:
    """Render the TODO list prompt for one workflow across the given projects."""

    if not projects:
        raise ValueError("At least one project is required to build a workflow prompt")

    sections = [
        "You are a code quality automation expert. You have a structured TODO list to complete.",
        "EXECUTION RULES:\n"
        "1. Complete tasks in the EXACT order listed below\n"
        "2. For each task, run the command, analyze output, and fix any issues found\n"
        "3. After completing a task, mark it as DONE and move to the next\n"
        "4. Report progress after completing each task\n"
        "5. If a task passes with no errors, mark it DONE and proceed immediately\n"
        "6. Work continuously without waiting for confirmation",
        "PROGRESS TRACKING:\n"
        "IMPORTANT - Before starting each task, create/update a progress file to help the "
        "dashboard track your work:\n"
        f"- Create: {progress_file}\n"
        '- Format: {"current_project": "project-name", "current_task": N, '
        '"completed_projects": ["proj1", "proj2"]}\n'
        "- Update this file BEFORE starting each new project\n"
        f"- Example: echo '{{\"current_project\": \"{projects[0]}\", \"current_task\": 1, "
        f"\"completed_projects\": []}}' > {progress_file}\n"
        "- When a project completes successfully, add it to completed_projects array\n"
        "- This allows the dashboard to show real-time progress accurately",
        f"WORKFLOW: {definition.action}\nInstructions: {definition.instructions}",
        "TODO LIST:\n"
        + "\n".join(
            f"  {index}. {definition.action} in {project}"
            for index, project in enumerate(projects, start=1)
        ),
        "After completing ALL tasks above, create a summary report showing:\n"
        "- Which projects had issues that were fixed\n"
        "- Which projects passed all checks\n"
        "- Any remaining issues that need manual attention",
    ]
    return "\n\n".join(sections) + "\n"


__all__ = ["build_workflow_todo"]
