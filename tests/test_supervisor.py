from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from gopher.copilot import CopilotRunner
from gopher.events import SessionEvent, SessionEventBus
from gopher.storage import StateStore
from gopher.supervisor import SessionSupervisor
from gopher.workflows import SessionStatus, WorkflowCatalog, WorkflowKind

ECHO_ARGS = 'echo "args: $1"\necho "warning: noisy" >&2\n'


def make_supervisor(store: StateStore, script: Path, events: SessionEventBus | None = None) -> SessionSupervisor:
    return SessionSupervisor(store, CopilotRunner(script), WorkflowCatalog(), events=events)


def test_fresh_session_completes(store: StateStore, make_copilot) -> None:
    supervisor = make_supervisor(store, make_copilot(ECHO_ARGS + "exit 0\n"))
    store.log_path("type").write_text("old run\n", encoding="utf-8")

    ok = asyncio.run(supervisor.run_session(WorkflowKind.TYPE, ["api", "web"]))

    assert ok is True
    assert store.read_status("type") is SessionStatus.COMPLETED
    log = store.read_log("type")
    assert "old run" not in log
    assert "args: -p" in log
    assert "warning: noisy" in log
    prompt = store.prompt_path("type").read_text(encoding="utf-8")
    assert "  1. fix all TypeScript type errors in api" in prompt
    assert "  2. fix all TypeScript type errors in web" in prompt


def test_non_zero_exit_marks_failed(store: StateStore, make_copilot) -> None:
    supervisor = make_supervisor(store, make_copilot("echo 'lint error' >&2\nexit 3\n"))

    ok = asyncio.run(supervisor.run_session("lint", ["api"]))

    assert ok is False
    assert store.read_status("lint") is SessionStatus.FAILED
    assert "lint error" in store.read_log("lint")


def test_abandoned_session_is_resumed_and_log_extended(store: StateStore, make_copilot) -> None:
    supervisor = make_supervisor(store, make_copilot('echo "args: $*"\n'))
    store.write_status("build", SessionStatus.RUNNING)
    store.log_path("build").write_text("previous output\n", encoding="utf-8")

    ok = asyncio.run(supervisor.run_session("build", ["api"]))

    log = store.read_log("build")
    assert ok is True
    assert log.startswith("previous output\n")
    assert "RESUMING WORKFLOW AT" in log
    assert log.index("RESUMING WORKFLOW AT") < log.index("args: --resume --allow-all-tools --allow-all-paths")
    assert not store.prompt_path("build").exists()
    assert store.read_status("build") is SessionStatus.COMPLETED


def test_launch_failure_marks_failed(store: StateStore, tmp_path: Path) -> None:
    script = tmp_path / "copilot"
    script.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
    script.chmod(0o644)
    supervisor = make_supervisor(store, script)

    ok = asyncio.run(supervisor.run_session("test", ["api"]))

    assert ok is False
    assert store.read_status("test") is SessionStatus.FAILED
    assert "Failed to launch" in store.read_log("test")


def test_session_publishes_status_events(store: StateStore, make_copilot) -> None:
    bus = SessionEventBus()
    supervisor = make_supervisor(store, make_copilot("exit 0\n"), events=bus)

    async def scenario() -> list[SessionEvent]:
        queue = bus.subscribe()
        await supervisor.run_session("type", ["api"])
        events = []
        while not queue.empty():
            events.append(queue.get_nowait())
        return events

    events = asyncio.run(scenario())

    assert [event.status for event in events] == [SessionStatus.RUNNING, SessionStatus.COMPLETED]
    assert events[-1].returncode == 0
    assert all(event.workflow is WorkflowKind.TYPE for event in events)


def test_cancelled_session_stays_running(store: StateStore, make_copilot) -> None:
    supervisor = make_supervisor(store, make_copilot("sleep 5\n"))

    async def scenario() -> None:
        task = asyncio.create_task(supervisor.run_session("lint", ["api"]))
        await asyncio.sleep(0.2)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())

    assert store.read_status("lint") is SessionStatus.RUNNING


def test_requires_projects(store: StateStore, make_copilot) -> None:
    supervisor = make_supervisor(store, make_copilot("exit 0\n"))
    with pytest.raises(ValueError):
        asyncio.run(supervisor.run_session("type", []))


class BrokenStream:
    async def read(self, _size: int) -> bytes:
        raise ConnectionResetError("pipe broke")


class FakeProcess:
    def __init__(self, returncode: int = 0, wait_error: Exception | None = None) -> None:
        self.stdout = BrokenStream()
        self.stderr = BrokenStream()
        self.returncode = returncode
        self.wait_error = wait_error
        self.waited = False

    async def wait(self) -> int:
        self.waited = True
        if self.wait_error is not None:
            raise self.wait_error
        return self.returncode


class FakeRunner:
    executable = "copilot"

    def __init__(self, process: FakeProcess) -> None:
        self.process = process

    async def start(self, prompt: str) -> FakeProcess:
        return self.process

    async def resume(self) -> FakeProcess:
        return self.process


def test_broken_output_streams_still_reap_and_finalize(store: StateStore) -> None:
    process = FakeProcess(returncode=0)
    supervisor = SessionSupervisor(store, FakeRunner(process), WorkflowCatalog())

    ok = asyncio.run(supervisor.run_session("build", ["api"]))

    assert process.waited
    assert ok is True
    assert store.read_status("build") is SessionStatus.COMPLETED
    assert "output stream closed: pipe broke" in store.read_log("build")


def test_unexpected_error_marks_failed_before_propagating(store: StateStore) -> None:
    bus = SessionEventBus()
    process = FakeProcess(wait_error=RuntimeError("wait exploded"))
    supervisor = SessionSupervisor(store, FakeRunner(process), WorkflowCatalog(), events=bus)

    async def scenario() -> list[SessionEvent]:
        queue = bus.subscribe()
        with pytest.raises(RuntimeError, match="wait exploded"):
            await supervisor.run_session("test", ["api"])
        return [queue.get_nowait() for _ in range(queue.qsize())]

    events = asyncio.run(scenario())

    assert store.read_status("test") is SessionStatus.FAILED
    assert [event.status for event in events] == [SessionStatus.RUNNING, SessionStatus.FAILED]
