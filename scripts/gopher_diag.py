"""Gopher diagnostics CLI: inspect workflow state without opening the dashboard."""

from __future__ import annotations

import argparse
import json

from gopher.config import GopherSettings
from gopher.dashboard import HeuristicClassifier, ProgressClassifier, WorkflowSnapshot
from gopher.dashboard.layout import sanitize_line
from gopher.storage import StateStore
from gopher.workflows import WORKFLOW_ORDER, WorkflowKind


def load_store(settings: GopherSettings) -> StateStore:
    return StateStore(settings.state_dir.expanduser())


def _workflow_arg(value: str) -> WorkflowKind:
    try:
        return WorkflowKind(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"unknown workflow {value!r}; choose from {', '.join(kind.value for kind in WORKFLOW_ORDER)}"
        ) from exc


def _line_count(value: str) -> int:
    count = int(value)
    if count < 1:
        raise argparse.ArgumentTypeError(f"--lines must be at least 1, got {count}")
    return count


def cmd_status(args: argparse.Namespace) -> None:
    settings = GopherSettings()
    store = load_store(settings)
    payload = []
    for kind in WORKFLOW_ORDER:
        status = store.read_status(kind)
        progress = store.read_progress(kind)
        payload.append(
            {
                "workflow": kind.value,
                "status": status.value,
                "abandoned": store.was_abandoned(kind),
                "log": str(store.log_path(kind)),
                "progress": progress.model_dump() if progress is not None else None,
            }
        )
    if args.json:
        print(json.dumps(payload, indent=2))
    else:
        for item in payload:
            print(f"{item['workflow']} [{item['status']}] -> {item['log']}")


def cmd_projects(args: argparse.Namespace) -> None:
    settings = GopherSettings()
    store = load_store(settings)
    projects = args.project or store.load_selection(store.projects_file) or []
    classifier = ProgressClassifier() if args.strict else HeuristicClassifier()
    snapshot = WorkflowSnapshot.read(store, args.workflow)
    payload = {
        project: classifier.classify(project, snapshot).value for project in projects
    }
    print(json.dumps(payload, indent=2))


def cmd_tail(args: argparse.Namespace) -> None:
    settings = GopherSettings()
    store = load_store(settings)
    lines = [cleaned for cleaned in map(sanitize_line, store.read_log(args.workflow).split("\n")) if cleaned]
    for line in lines[-args.lines:]:
        print(line)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Gopher diagnostics")
    sub = parser.add_subparsers(dest="cmd")

    p_status = sub.add_parser("status", help="Show persisted status for every workflow")
    p_status.add_argument("--json", action="store_true", help="Output JSON")
    p_status.set_defaults(func=cmd_status)

    p_projects = sub.add_parser("projects", help="Derive per-project status for a workflow")
    p_projects.add_argument("workflow", type=_workflow_arg)
    p_projects.add_argument(
        "--project",
        action="append",
        help="Project to classify (repeatable); defaults to the saved project selection",
    )
    p_projects.add_argument(
        "--strict",
        action="store_true",
        help="Only trust the progress file, ignore log heuristics",
    )
    p_projects.set_defaults(func=cmd_projects)

    p_tail = sub.add_parser("tail", help="Print the last sanitized lines of a workflow log")
    p_tail.add_argument("workflow", type=_workflow_arg)
    p_tail.add_argument("--lines", type=_line_count, default=20, help="Number of lines (default: 20)")
    p_tail.set_defaults(func=cmd_tail)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    args.func(args)


if __name__ == "__main__":
    main()
