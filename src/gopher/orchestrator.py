"""Fan sessions out across every selected workflow and wait for all of them."""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Sequence

from .storage import StateStore
from .supervisor import SessionSupervisor
from .workflows import WorkflowKind, order_workflows

logger = logging.getLogger(__name__)


def find_abandoned(store: StateStore, workflows: Iterable[WorkflowKind | str]) -> list[WorkflowKind]:
    """Return the selected workflows whose last session never reached a final status."""

    return [kind for kind in order_workflows(workflows) if store.was_abandoned(kind)]


class SessionOrchestrator:
    """Runs one supervisor per workflow concurrently.

    A failing workflow never cancels its siblings; each outcome is reflected only
    in that workflow's own status file.
    """

    def __init__(self, supervisor: SessionSupervisor, store: StateStore) -> None:
        self._supervisor = supervisor
        self._store = store
        self.abandoned: list[WorkflowKind] = []

    async def run_all(
        self,
        workflows: Iterable[WorkflowKind | str],
        projects: Sequence[str],
    ) -> dict[WorkflowKind, bool]:
        ordered = order_workflows(workflows)
        # Must run before any supervisor rewrites a status file.
        self.abandoned = find_abandoned(self._store, ordered)
        if self.abandoned:
            self._store.write_resume_note(self.abandoned)
            logger.warning(
                "Resuming abandoned workflows",
                extra={"workflows": [kind.value for kind in self.abandoned]},
            )

        outcomes = await asyncio.gather(
            *(self._supervisor.run_session(kind, projects) for kind in ordered),
            return_exceptions=True,
        )

        results: dict[WorkflowKind, bool] = {}
        for kind, outcome in zip(ordered, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, BaseException):
                logger.error(
                    "Session raised unexpectedly",
                    exc_info=outcome,
                    extra={"workflow": kind.value},
                )
                results[kind] = False
            else:
                results[kind] = bool(outcome)
        return results


__all__ = ["SessionOrchestrator", "find_abandoned"]
