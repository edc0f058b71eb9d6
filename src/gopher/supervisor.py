"""Process supervisor for a single workflow session."""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from .copilot import CopilotRunner
from .events import SessionEvent, SessionEventBus
from .storage import LogSink, StateStore, resume_delimiter
from .workflows import (
    SessionStatus,
    WorkflowCatalog,
    WorkflowKind,
    build_workflow_todo,
)

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 4096


async def _pump(stream: asyncio.StreamReader | None, sink: LogSink, workflow: WorkflowKind) -> None:
    if stream is None:
        return
    while True:
        try:
            chunk = await stream.read(READ_CHUNK_SIZE)
        except (OSError, asyncio.IncompleteReadError) as exc:
            logger.warning(
                "Session output stream failed", extra={"workflow": workflow.value, "error": str(exc)}
            )
            sink.write(f"[gopher] output stream closed: {exc}\n".encode("utf-8"))
            return
        if not chunk:
            break
        sink.write(chunk)


class SessionSupervisor:
    """Run one workflow's Copilot session from start (or resume) to a final status.

    The supervisor is the only writer of a workflow's status, prompt and log
    files. It never prints: the dashboard owns the terminal while sessions run.
    """

    def __init__(
        self,
        store: StateStore,
        runner: CopilotRunner,
        catalog: WorkflowCatalog,
        *,
        events: SessionEventBus | None = None,
    ) -> None:
        self._store = store
        self._runner = runner
        self._catalog = catalog
        self._events = events

    async def run_session(self, workflow: WorkflowKind | str, projects: Sequence[str]) -> bool:
        """Run a session to completion and return True when it exited cleanly.

        A status of RUNNING at entry means an earlier run was abandoned; that
        session is resumed and its log is extended rather than replaced.
        """

        if not projects:
            raise ValueError("run_session requires at least one project")

        kind = WorkflowKind(getattr(workflow, "value", workflow))
        definition = self._catalog.get(kind)
        resume = self._store.was_abandoned(kind)
        prompt: str | None = None

        if resume:
            logger.info("Resuming abandoned session", extra={"workflow": kind.value})
        else:
            self._store.write_status(kind, SessionStatus.RUNNING)
            prompt = build_workflow_todo(definition, projects, self._store.progress_path(kind))
            self._store.write_prompt(kind, prompt)
            logger.info(
                "Starting fresh session",
                extra={"workflow": kind.value, "projects": len(projects)},
            )
        self._publish(SessionEvent(workflow=kind, status=SessionStatus.RUNNING, resumed=resume))

        returncode: int | None = None
        try:
            async with LogSink(self._store.log_path(kind), append=resume) as sink:
                if resume:
                    sink.write(resume_delimiter())
                try:
                    if prompt is None:
                        process = await self._runner.resume()
                    else:
                        process = await self._runner.start(prompt)
                except OSError as exc:
                    logger.error(
                        "Failed to launch session",
                        extra={"workflow": kind.value, "error": str(exc)},
                    )
                    sink.write(
                        f"Failed to launch {self._runner.executable}: {exc}\n".encode("utf-8")
                    )
                else:
                    await asyncio.gather(
                        _pump(process.stdout, sink, kind), _pump(process.stderr, sink, kind)
                    )
                    returncode = await process.wait()
        except Exception:
            # CancelledError passes through here; the status stays RUNNING.
            self._finish(kind, SessionStatus.FAILED, resume, returncode)
            raise

        status = SessionStatus.COMPLETED if returncode == 0 else SessionStatus.FAILED
        self._finish(kind, status, resume, returncode)
        return status is SessionStatus.COMPLETED

    def _finish(
        self, kind: WorkflowKind, status: SessionStatus, resume: bool, returncode: int | None
    ) -> None:
        self._store.write_status(kind, status)
        self._publish(
            SessionEvent(workflow=kind, status=status, resumed=resume, returncode=returncode)
        )
        log = logger.info if status is SessionStatus.COMPLETED else logger.warning
        log(
            "Session finished",
            extra={"workflow": kind.value, "status": status.value, "returncode": returncode},
        )

    def _publish(self, event: SessionEvent) -> None:
        if self._events is not None:
            self._events.publish(event)


__all__ = ["SessionSupervisor"]
