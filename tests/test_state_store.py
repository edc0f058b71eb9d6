from __future__ import annotations

from gopher.storage import StateStore
from gopher.workflows import SessionStatus, WorkflowKind


def test_layout_paths(store: StateStore) -> None:
    assert store.log_path("type") == store.root / "logs" / "type.log"
    assert store.status_path(WorkflowKind.LINT) == store.root / "logs" / "lint.status"
    assert store.prompt_path("build") == store.root / "logs" / "build.prompt"
    assert store.progress_path("test") == store.root / "progress" / "test-progress.json"


def test_missing_status_reads_as_pending(store: StateStore) -> None:
    assert store.read_status("type") is SessionStatus.PENDING
    assert not store.was_abandoned("type")


def test_status_roundtrip_and_abandonment(store: StateStore) -> None:
    store.write_status("build", SessionStatus.RUNNING)

    assert store.status_path("build").read_text(encoding="utf-8") == "RUNNING"
    assert store.read_status("build") is SessionStatus.RUNNING
    assert store.was_abandoned("build")


def test_unknown_status_token_reads_as_pending(store: StateStore) -> None:
    store.status_path("lint").write_text("EXPLODED\n", encoding="utf-8")
    assert store.read_status("lint") is SessionStatus.PENDING


def test_read_progress_tolerates_bad_files(store: StateStore) -> None:
    assert store.read_progress("type") is None

    store.progress_path("type").write_text("{not json", encoding="utf-8")
    assert store.read_progress("type") is None

    store.progress_path("type").write_text('{"completed_projects": "api"}', encoding="utf-8")
    assert store.read_progress("type") is None

    store.progress_path("type").write_text(
        '{"current_project": "web", "current_task": 2, "completed_projects": ["api"]}',
        encoding="utf-8",
    )
    progress = store.read_progress("type")
    assert progress is not None
    assert progress.current_project == "web"
    assert progress.completed_projects == ["api"]


def test_read_log_missing_is_empty(store: StateStore) -> None:
    assert store.read_log("lint") == ""


def test_selection_roundtrip(store: StateStore) -> None:
    assert store.load_selection(store.projects_file) is None

    store.save_selection(store.projects_file, ["api", "web"])
    store.projects_file.write_text(
        store.projects_file.read_text(encoding="utf-8") + "\n\n", encoding="utf-8"
    )

    assert store.load_selection(store.projects_file) == ["api", "web"]


def test_resume_note_lists_workflows(store: StateStore) -> None:
    store.write_resume_note([WorkflowKind.TYPE, "lint"])

    assert store.resume_note_path.read_text(encoding="utf-8") == (
        "Resuming abandoned workflows: type, lint\n"
    )
