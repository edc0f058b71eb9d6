"""In-process channel for session status transitions."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .workflows import SessionStatus, WorkflowKind


@dataclass(slots=True, frozen=True)
class SessionEvent:
    workflow: WorkflowKind
    status: SessionStatus
    resumed: bool = False
    returncode: int | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SessionEventBus:
    """Fan session events out to every subscriber queue without blocking the publisher."""

    def __init__(self) -> None:
        self._subscribers: list[asyncio.Queue[SessionEvent]] = []

    def subscribe(self) -> asyncio.Queue[SessionEvent]:
        queue: asyncio.Queue[SessionEvent] = asyncio.Queue()
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[SessionEvent]) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    def publish(self, event: SessionEvent) -> None:
        for queue in list(self._subscribers):
            queue.put_nowait(event)


__all__ = ["SessionEvent", "SessionEventBus"]
