"""Interactive workflow and project selection, remembered between runs."""

from __future__ import annotations

import fnmatch
import re
from typing import Mapping, Sequence, TextIO

from rich.console import Console
from rich.prompt import Prompt

from .storage import StateStore
from .workflows import WORKFLOW_ORDER, WorkflowCatalog, WorkflowKind, order_workflows

KEEP_CHOICES = ["keep", "reselect", "exit"]
PREVIEW_LIMIT = 10


class SelectionCancelled(Exception):
    """Raised when the operator exits the prompt or selects nothing."""


def parse_choice(raw: str, options: Sequence[str]) -> list[str]:
    """Resolve numbers (1-based), exact names, glob patterns or ``all`` against options.

    The result keeps the order of ``options``. Unknown tokens raise ValueError.
    """

    tokens = [token for token in re.split(r"[,\s]+", raw.strip()) if token]
    if any(token.lower() == "all" for token in tokens):
        return list(options)

    chosen: set[str] = set()
    for token in tokens:
        if token.isdigit():
            index = int(token)
            if not 1 <= index <= len(options):
                raise ValueError(f"Choice {index} is out of range 1-{len(options)}")
            chosen.add(options[index - 1])
            continue
        matches = fnmatch.filter(options, token)
        if not matches:
            raise ValueError(f"No option matches {token!r}")
        chosen.update(matches)
    return [option for option in options if option in chosen]


class SelectionPrompt:
    """Asks which workflows and projects to run, offering the previous answer first."""

    def __init__(
        self,
        store: StateStore,
        *,
        console: Console | None = None,
        stream: TextIO | None = None,
    ) -> None:
        self._store = store
        self._console = console or Console()
        self._stream = stream

    def select_workflows(self, catalog: WorkflowCatalog) -> list[WorkflowKind]:
        previous = order_workflows(self._store.load_selection(self._store.workflows_file) or [])
        if previous:
            names = ", ".join(kind.value for kind in previous)
            self._console.print(f"Previously selected workflows: {names}\n")
            if self._keep_previous():
                return previous

        definitions = catalog.load_all()
        options = [kind.value for kind in WORKFLOW_ORDER]
        labels = {kind.value: definitions[kind].title for kind in WORKFLOW_ORDER}
        chosen = self._choose("Select workflows to run", options, labels)
        if not chosen:
            raise SelectionCancelled("No workflows selected")
        self._store.save_selection(self._store.workflows_file, chosen)
        return order_workflows(chosen)

    def select_projects(self, all_projects: Sequence[str]) -> list[str]:
        previous = self._store.load_selection(self._store.projects_file)
        if previous:
            self._console.print(f"Previously selected projects ({len(previous)}):")
            for project in previous[:PREVIEW_LIMIT]:
                self._console.print(f"  {project}", markup=False)
            if len(previous) > PREVIEW_LIMIT:
                self._console.print(f"  ... and {len(previous) - PREVIEW_LIMIT} more")
            self._console.print()
            if self._keep_previous():
                return previous

        if not all_projects:
            raise SelectionCancelled("No projects available to select")
        chosen = self._choose(
            f"Select projects to fix ({len(all_projects)} total)",
            list(all_projects),
            {},
        )
        if not chosen:
            raise SelectionCancelled("No projects selected")
        self._store.save_selection(self._store.projects_file, chosen)
        return chosen

    def _keep_previous(self) -> bool:
        answer = Prompt.ask(
            "Keep these selections?",
            choices=KEEP_CHOICES,
            default="keep",
            console=self._console,
            stream=self._stream,
        )
        if answer == "exit":
            raise SelectionCancelled("Selection exited")
        return answer == "keep"

    def _choose(self, message: str, options: Sequence[str], labels: Mapping[str, str]) -> list[str]:
        for index, option in enumerate(options, start=1):
            label = labels.get(option)
            self._console.print(
                f"  {index:>3}. {option}" + (f" ({label})" if label else ""), markup=False
            )
        while True:
            raw = Prompt.ask(
                f"{message} [dim](numbers, names, globs or 'all')[/dim]",
                default="",
                show_default=False,
                console=self._console,
                stream=self._stream,
            )
            try:
                return parse_choice(raw, options)
            except ValueError as exc:
                self._console.print(f"[red]{exc}[/red]")


__all__ = ["SelectionCancelled", "SelectionPrompt", "parse_choice"]
