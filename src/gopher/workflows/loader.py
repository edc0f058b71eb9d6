"""Workflow catalog with built-in definitions and YAML overrides."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import yaml
from pydantic import ValidationError

from .models import WorkflowDefinition, WorkflowKind

DEFAULT_WORKFLOWS: dict[WorkflowKind, WorkflowDefinition] = {
    WorkflowKind.TYPE: WorkflowDefinition(
        id=WorkflowKind.TYPE,
        title="Type checking",
        action="fix all TypeScript type errors",
        instructions=(
            "You are a TypeScript expert. PROCESS: 1) Run type check (e.g. 'npx nx type-check "
            "<project>' or 'tsc --noEmit'), 2) Read all error output, 3) Fix ALL type errors you "
            "can identify (add types, handle nulls, etc), 4) Run type check again to verify. Work "
            "QUICKLY - don't ask questions, just fix the issues. Avoid using 'any' or "
            "'@ts-ignore' unless absolutely necessary."
        ),
    ),
    WorkflowKind.BUILD: WorkflowDefinition(
        id=WorkflowKind.BUILD,
        title="Build",
        action="fix all build errors",
        instructions=(
            "You are a build expert. PROCESS: 1) Run build (e.g. 'npx nx build <project>'), "
            "2) Read all error output carefully, 3) Fix ALL errors you find (missing imports/index "
            "files, wrong paths, missing deps), 4) Run build again to verify. Work QUICKLY and "
            "DIRECTLY - don't ask questions, just fix the issues. For import errors, find the "
            "correct file path or create missing index files. For missing dependencies, install them."
        ),
    ),
    WorkflowKind.TEST: WorkflowDefinition(
        id=WorkflowKind.TEST,
        title="Tests",
        action="fix the tests",
        instructions=(
            "You are a testing expert. PROCESS: 1) Run the tests (e.g. 'npx nx test <project>'), "
            "2) Read every failure and its stack trace, 3) Fix the code or the test, whichever is "
            "wrong, 4) Run the tests again to verify. Work QUICKLY - don't ask questions. Never "
            "skip or delete a failing test to make the suite pass."
        ),
    ),
    WorkflowKind.LINT: WorkflowDefinition(
        id=WorkflowKind.LINT,
        title="Linting",
        action="fix all linting errors",
        instructions=(
            "You are a linting expert. PROCESS: 1) Run the lint command (e.g. 'npx nx lint "
            "<project>'), 2) Read all error output, 3) Fix ALL errors you can identify (unused "
            "imports, missing deps, etc), 4) Run lint again to verify. Work QUICKLY - don't ask "
            "questions, just fix the issues following the ESLint rules. Avoid disabling rules "
            "unless absolutely necessary."
        ),
    ),
}


class WorkflowLoadError(RuntimeError):
    """Raised when a workflow override file cannot be parsed."""


class WorkflowCatalog:
    """Built-in workflow definitions, optionally overridden from YAML files on disk."""

    def __init__(self, search_paths: Iterable[Path] | None = None) -> None:
        paths = [Path(path) for path in (search_paths or [])]
        self._search_paths: list[Path] = [path for path in paths if path.is_dir()]
        self._cache: dict[WorkflowKind, WorkflowDefinition] | None = None

    @property
    def search_paths(self) -> list[Path]:
        return list(self._search_paths)

    def load_all(self) -> dict[WorkflowKind, WorkflowDefinition]:
        """Return every workflow definition.

        Override documents only need the fields they change; later search paths
        override earlier ones.
        """

        if self._cache is not None:
            return dict(self._cache)

        definitions = dict(DEFAULT_WORKFLOWS)
        errors: list[str] = []

        for base in self._search_paths:
            for path in sorted(base.glob("*.yml")) + sorted(base.glob("*.yaml")):
                try:
                    document = yaml.safe_load(path.read_text(encoding="utf-8"))
                except yaml.YAMLError as exc:  # pragma: no cover - library type
                    errors.append(f"Failed to parse YAML in {path}: {exc}")
                    continue

                if document is None:
                    continue
                if not isinstance(document, dict):
                    errors.append(f"Workflow override in {path} must be a mapping")
                    continue

                try:
                    kind = WorkflowKind(str(document.get("id", "")).strip())
                except ValueError:
                    errors.append(f"Unknown workflow id in {path}: {document.get('id')!r}")
                    continue

                merged = {**definitions[kind].model_dump(), **document, "id": kind}
                try:
                    definitions[kind] = WorkflowDefinition.model_validate(merged)
                except ValidationError as exc:
                    errors.append(f"Workflow validation error in {path}: {exc}")

        if errors:
            raise WorkflowLoadError("; ".join(errors))

        self._cache = definitions
        return dict(definitions)

    def get(self, kind: WorkflowKind | str) -> WorkflowDefinition:
        """Return a single workflow definition."""

        try:
            key = WorkflowKind(getattr(kind, "value", kind))
        except ValueError as exc:
            raise WorkflowLoadError(f"Unknown workflow '{kind}'") from exc
        return self.load_all()[key]


__all__ = ["DEFAULT_WORKFLOWS", "WorkflowCatalog", "WorkflowLoadError"]
