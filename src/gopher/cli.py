"""Command-line entry point: select, launch, watch."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import Sequence

from pydantic import ValidationError
from rich.console import Console
from rich.text import Text

from . import __version__
from .config import GopherSettings, get_settings
from .copilot import CopilotRunner, CopilotRunnerError
from .dashboard import Dashboard, DashboardContext
from .dashboard.render import STATUS_ICONS
from .discovery import DiscoveryError, discover_projects
from .events import SessionEventBus
from .orchestrator import SessionOrchestrator, find_abandoned
from .selection import SelectionCancelled, SelectionPrompt
from .storage import StateStore
from .supervisor import SessionSupervisor
from .workflows import WorkflowCatalog, WorkflowKind, WorkflowLoadError

logger = logging.getLogger(__name__)

RULE_WIDTH = 60


def configure_logging(level: str, log_file: Path) -> None:
    """Send log records to a file; the terminal belongs to the dashboard."""

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
        filename=str(log_file),
        encoding="utf-8",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gopher",
        description="Run Copilot fix workflows across workspace projects with a live dashboard.",
    )
    parser.add_argument(
        "--allow-all-tools",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Let Copilot run any tool without asking (default: on)",
    )
    parser.add_argument(
        "--allow-all-paths",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Let Copilot touch any path without asking (default: on)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def permission_flags(args: argparse.Namespace) -> list[str]:
    flags: list[str] = []
    if args.allow_all_tools:
        flags.append("--allow-all-tools")
    if args.allow_all_paths:
        flags.append("--allow-all-paths")
    return flags


def _stdin_fd() -> int | None:
    try:
        return sys.stdin.fileno() if sys.stdin.isatty() else None
    except (AttributeError, OSError, ValueError):
        return None


async def supervise(
    orchestrator: SessionOrchestrator,
    dashboard: Dashboard,
    workflows: Sequence[WorkflowKind],
    projects: Sequence[str],
) -> bool:
    """Race the sessions against the dashboard.

    Returns True when every session finished, False when the operator quit first.
    Sessions still running at quit keep their RUNNING status and resume next launch.
    """

    sessions = asyncio.create_task(orchestrator.run_all(workflows, projects), name="sessions")
    ui = asyncio.create_task(dashboard.run(), name="dashboard")
    done, pending = await asyncio.wait({sessions, ui}, return_when=asyncio.FIRST_COMPLETED)
    for task in pending:
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)
    for task in done:
        task.result()
    return sessions in done


def print_summary(
    console: Console,
    store: StateStore,
    workflows: Sequence[WorkflowKind],
    finished: bool,
) -> None:
    console.print()
    console.print("═" * RULE_WIDTH)
    console.print("SESSION COMPLETE".center(RULE_WIDTH))
    console.print("═" * RULE_WIDTH)
    console.print()
    for kind in workflows:
        status = store.read_status(kind)
        console.print(f"  {STATUS_ICONS[status]} {kind.value}: {status.value}")
    console.print()
    if finished:
        console.print("All workflows finished")
    else:
        console.print("Dashboard closed. Workflows still RUNNING resume on the next launch.")
    console.print()
    console.print("View workflow logs:")
    for kind in workflows:
        console.print(f"  - {kind.value}: {store.log_path(kind)}", markup=False)
    console.print()


def _launch(args: argparse.Namespace, settings: GopherSettings, store: StateStore, console: Console) -> int:
    console.clear()
    console.print("=" * RULE_WIDTH)
    console.print("  COPILOT INTERACTIVE FIX TOOL")
    console.print("=" * RULE_WIDTH)
    console.print()

    catalog = WorkflowCatalog(settings.workflow_paths)
    catalog.load_all()
    runner = CopilotRunner(
        Path(settings.copilot_path) if settings.copilot_path else None,
        flags=permission_flags(args),
    )
    prompt = SelectionPrompt(store, console=console)

    workflows = prompt.select_workflows(catalog)
    console.print(f"Selected workflows: {', '.join(kind.value for kind in workflows)}\n")

    console.print("Loading projects...")
    projects = prompt.select_projects(discover_projects(Path.cwd()))
    console.print(f"Selected {len(projects)} project(s)\n")

    abandoned = find_abandoned(store, workflows)
    if abandoned:
        console.print("🔄 Detected abandoned workflows that will be resumed:")
        for kind in abandoned:
            console.print(f"   - {kind.value}")
        console.print()

    console.print("Starting workflows...\n")
    time.sleep(settings.launch_delay)
    console.clear()

    async def _session() -> bool:
        bus = SessionEventBus()
        supervisor = SessionSupervisor(store, runner, catalog, events=bus)
        orchestrator = SessionOrchestrator(supervisor, store)
        context = DashboardContext(
            store, workflows, projects, resumed=abandoned, events=bus.subscribe()
        )
        dashboard = Dashboard(
            context,
            console=console,
            poll_interval=settings.poll_interval,
            input_fd=_stdin_fd(),
        )
        return await supervise(orchestrator, dashboard, workflows, projects)

    finished = asyncio.run(_session())
    logger.info("Run ended", extra={"finished": finished})
    print_summary(console, store, workflows, finished)
    return 0


def run(args: argparse.Namespace, *, console: Console | None = None) -> int:
    """Execute one interactive run and return the process exit code."""

    console = console or Console()
    try:
        settings = get_settings()
        store = StateStore(settings.state_dir)
        store.ensure_directories()
    except (ValidationError, OSError) as exc:
        console.print(Text.assemble(("Error: ", "red"), f"invalid configuration: {exc}"))
        return 1
    configure_logging(settings.log_level, settings.log_file)

    try:
        return _launch(args, settings, store, console)
    except SelectionCancelled as exc:
        console.print(f"{exc}. Exiting.")
        return 0
    except KeyboardInterrupt:
        console.print("Interrupted. Workflows still RUNNING resume on the next launch.")
        return 0
    except (CopilotRunnerError, WorkflowLoadError, DiscoveryError) as exc:
        logger.error("Startup failed", extra={"error": str(exc)})
        console.print(Text.assemble(("Error: ", "red"), str(exc)))
        return 1
    except Exception as exc:
        logger.exception("Unhandled failure")
        console.print(Text.assemble(("Error: ", "red"), str(exc)))
        return 1


def main(argv: list[str] | None = None) -> None:
    """Entry point for the ``gopher`` command."""

    parser = build_parser()
    args = parser.parse_args(argv)
    exit_code = run(args)
    if exit_code:
        raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
