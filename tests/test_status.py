from __future__ import annotations

import pytest

from gopher.dashboard import (
    HeuristicClassifier,
    ProgressClassifier,
    ProjectStatus,
    WorkflowSnapshot,
    project_status,
)
from gopher.storage import StateStore
from gopher.workflows import ProgressRecord, WorkflowKind

PROGRESS = '{"current_project":"web","current_task":2,"completed_projects":["api"]}'


def test_progress_record_drives_status(store: StateStore) -> None:
    store.progress_path("type").write_text(PROGRESS, encoding="utf-8")

    assert project_status(store, "api", "type") is ProjectStatus.PASS
    assert project_status(store, "web", "type") is ProjectStatus.RUNNING
    assert project_status(store, "docs", "type") is ProjectStatus.PENDING


def test_log_fallback_when_progress_is_missing(store: StateStore) -> None:
    store.log_path("lint").write_text(
        "Linting API now\nchecking web...\nweb: all checks PASSED\n", encoding="utf-8"
    )

    assert project_status(store, "web", "lint") is ProjectStatus.PASS
    assert project_status(store, "api", "lint") is ProjectStatus.RUNNING
    assert project_status(store, "docs", "lint") is ProjectStatus.PENDING


def test_log_fallback_requires_keyword_after_name_on_same_line(store: StateStore) -> None:
    store.log_path("build").write_text("done with setup\nbuilding api\n", encoding="utf-8")

    assert project_status(store, "api", "build") is ProjectStatus.RUNNING


def test_project_names_are_matched_literally(store: StateStore) -> None:
    store.log_path("test").write_text("@scope/a.b tests completed\n", encoding="utf-8")

    assert project_status(store, "@scope/a.b", "test") is ProjectStatus.PASS
    assert project_status(store, "@scope/axb", "test") is ProjectStatus.PENDING


def test_progress_mentioning_other_project_falls_back_to_log(store: StateStore) -> None:
    store.progress_path("type").write_text(PROGRESS, encoding="utf-8")
    store.log_path("type").write_text("docs done\n", encoding="utf-8")

    assert project_status(store, "docs", "type") is ProjectStatus.PASS


@pytest.mark.parametrize("content", ["", "{", "[]", '{"completed_projects": 7}'])
def test_malformed_files_degrade_to_pending(store: StateStore, content: str) -> None:
    store.progress_path("build").write_text(content, encoding="utf-8")
    assert project_status(store, "api", "build") is ProjectStatus.PENDING


def test_progress_classifier_ignores_log() -> None:
    snapshot = WorkflowSnapshot(
        workflow=WorkflowKind.LINT,
        progress=ProgressRecord(current_project="web", completed_projects=[]),
        log_text="api done\n",
    )

    assert ProgressClassifier().classify("api", snapshot) is ProjectStatus.PENDING
    assert HeuristicClassifier().classify("api", snapshot) is ProjectStatus.PASS
    assert ProgressClassifier().classify("web", snapshot) is ProjectStatus.RUNNING


def test_custom_classifier_is_pluggable(store: StateStore) -> None:
    class AlwaysPass:
        def classify(self, project, snapshot):
            return ProjectStatus.PASS

    assert project_status(store, "api", "type", classifier=AlwaysPass()) is ProjectStatus.PASS
