"""Live dashboard loop: poll state files, read keys, redraw."""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import contextmanager
from typing import Iterable, Iterator, Sequence

from rich.console import Console, Group
from rich.live import Live

from ..events import SessionEvent
from ..storage import StateStore
from ..workflows import SessionStatus, WorkflowKind, order_workflows
from .layout import log_height_per_workflow, tail_lines
from .render import WorkflowView, render_dashboard
from .state import DashboardState, decode_keys
from .status import HeuristicClassifier, StatusClassifier, WorkflowSnapshot

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.2


class DashboardContext:
    """State for one dashboard run: what is shown, how it is classified, what is known."""

    def __init__(
        self,
        store: StateStore,
        workflows: Iterable[WorkflowKind | str],
        projects: Sequence[str],
        *,
        classifier: StatusClassifier | None = None,
        resumed: Iterable[WorkflowKind] = (),
        events: asyncio.Queue[SessionEvent] | None = None,
    ) -> None:
        self.store = store
        self.projects = list(projects)
        self.state = DashboardState(tuple(order_workflows(workflows)))
        self.classifier: StatusClassifier = classifier or HeuristicClassifier()
        self.resumed: set[WorkflowKind] = set(resumed)
        self.events = events
        self.live_status: dict[WorkflowKind, SessionStatus] = {}

    @property
    def workflows(self) -> tuple[WorkflowKind, ...]:
        return self.state.workflows

    def drain_events(self) -> int:
        if self.events is None:
            return 0
        drained = 0
        while True:
            try:
                event = self.events.get_nowait()
            except asyncio.QueueEmpty:
                break
            self.live_status[event.workflow] = event.status
            if event.resumed:
                self.resumed.add(event.workflow)
            drained += 1
        return drained

    def status_of(self, workflow: WorkflowKind) -> SessionStatus:
        # Before the first event arrives the status file is the only source.
        return self.live_status.get(workflow) or self.store.read_status(workflow)

    def refresh(self, rows: int) -> list[WorkflowView]:
        """Build the views for one poll tick."""

        self.drain_events()
        state = self.state
        log_height = log_height_per_workflow(rows, len(state.workflows), len(state.expanded))

        views: list[WorkflowView] = []
        for index, workflow in enumerate(state.workflows):
            snapshot = WorkflowSnapshot.read(self.store, workflow)
            expanded = state.is_expanded(workflow)
            views.append(
                WorkflowView(
                    workflow=workflow,
                    status=self.status_of(workflow),
                    project_statuses=[
                        self.classifier.classify(project, snapshot) for project in self.projects
                    ],
                    selected=index == state.selected_index,
                    expanded=expanded,
                    resumed=workflow in self.resumed,
                    log_height=log_height if expanded else 0,
                    log_lines=tail_lines(snapshot.log_text, log_height) if expanded else [],
                )
            )
        return views


class Dashboard:
    """Redraws on a fixed tick and immediately after each key press until the user quits."""

    def __init__(
        self,
        context: DashboardContext,
        *,
        console: Console | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        input_fd: int | None = None,
    ) -> None:
        self.context = context
        self.console = console or Console()
        self.poll_interval = poll_interval
        self._input_fd = input_fd
        self._wakeup = asyncio.Event()

    def feed(self, data: bytes) -> None:
        """Apply raw terminal input to the navigation state."""

        for key in decode_keys(data):
            self.context.state.handle_key(key)
        self._wakeup.set()

    def render(self) -> Group:
        width, height = self.console.size
        views = self.context.refresh(height)
        return render_dashboard(views, self.context.workflows, width)

    async def run(self) -> None:
        loop = asyncio.get_running_loop()
        state = self.context.state
        with self._keyboard(loop):
            with Live(
                self.render(),
                console=self.console,
                screen=True,
                auto_refresh=False,
                transient=True,
            ) as live:
                while not state.quit_requested:
                    try:
                        await asyncio.wait_for(self._wakeup.wait(), timeout=self.poll_interval)
                    except asyncio.TimeoutError:
                        pass
                    self._wakeup.clear()
                    if state.quit_requested:
                        break
                    live.update(self.render(), refresh=True)
        logger.info("Dashboard closed", extra={"quit": state.quit_requested})

    @contextmanager
    def _keyboard(self, loop: asyncio.AbstractEventLoop) -> Iterator[None]:
        fd = self._input_fd
        if fd is None or not os.isatty(fd):
            yield
            return
        try:
            import termios
            import tty
        except ImportError:
            # termios/tty not available (Windows without WSL)
            yield
            return

        old_settings = termios.tcgetattr(fd)
        try:
            tty.setcbreak(fd)
            loop.add_reader(fd, self._on_input, fd)
            yield
        finally:
            loop.remove_reader(fd)
            termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)

    def _on_input(self, fd: int) -> None:
        try:
            data = os.read(fd, 64)
        except OSError as exc:
            logger.debug("Keyboard read failed", extra={"error": str(exc)})
            return
        if data:
            self.feed(data)


__all__ = ["Dashboard", "DashboardContext", "DEFAULT_POLL_INTERVAL"]
