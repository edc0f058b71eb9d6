"""Workspace project discovery for yarn, pnpm, npm and NX monorepos."""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Callable, Sequence

logger = logging.getLogger(__name__)


class DiscoveryError(RuntimeError):
    """Raised when no supported workspace layout yields a project list."""


def _run(cmd: Sequence[str], cwd: Path) -> str:
    try:
        process = subprocess.run(
            list(cmd),
            cwd=str(cwd),
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise DiscoveryError(f"Failed to run {' '.join(cmd)}: {exc}") from exc
    if process.returncode != 0:
        raise DiscoveryError(
            f"{' '.join(cmd)} exited with code {process.returncode}: {process.stderr.strip()}"
        )
    return process.stdout


def parse_yarn_workspaces(output: str) -> list[str]:
    """Parse ``yarn workspaces list --json`` (one JSON object per line)."""

    names: list[str] = []
    for line in output.splitlines():
        if not line.strip():
            continue
        try:
            entry = json.loads(line)
        except ValueError:
            continue
        if not isinstance(entry, dict):
            continue
        name = entry.get("name") or entry.get("location")
        if name and name != ".":
            names.append(name)
    return names


def parse_pnpm_workspaces(output: str) -> list[str]:
    entries = json.loads(output)
    return [
        entry["name"]
        for entry in entries
        if isinstance(entry, dict) and entry.get("name") and not entry["name"].startswith(".")
    ]


def parse_npm_workspaces(output: str) -> list[str]:
    entries = json.loads(output)
    return [entry["name"] for entry in entries if isinstance(entry, dict) and entry.get("name")]


def parse_nx_projects(output: str) -> list[str]:
    return [line.strip() for line in output.splitlines() if line.strip()]


def _package_name(path: Path) -> str | None:
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    name = document.get("name") if isinstance(document, dict) else None
    return name if isinstance(name, str) and name else None


def workspaces_from_package_json(root: Path) -> list[str]:
    """Resolve ``workspaces`` patterns in package.json to package names without npm."""

    document = json.loads((root / "package.json").read_text(encoding="utf-8"))
    workspaces = document.get("workspaces") or []
    patterns = workspaces if isinstance(workspaces, list) else workspaces.get("packages", [])

    projects: list[str] = []
    for pattern in patterns:
        if "*" in pattern:
            candidates = sorted(path.parent for path in root.glob(f"{pattern}/package.json"))
        else:
            candidates = [root / pattern]
        for candidate in candidates:
            name = _package_name(candidate / "package.json")
            if name:
                projects.append(name)
    return projects


def _yarn(root: Path) -> list[str] | None:
    if not (root / "yarn.lock").exists():
        return None
    return parse_yarn_workspaces(_run(["yarn", "workspaces", "list", "--json"], root))


def _pnpm(root: Path) -> list[str] | None:
    if not (root / "pnpm-workspace.yaml").exists():
        return None
    return parse_pnpm_workspaces(_run(["pnpm", "list", "-r", "--depth", "-1", "--json"], root))


def _npm(root: Path) -> list[str] | None:
    try:
        document = json.loads((root / "package.json").read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    if not isinstance(document, dict) or not document.get("workspaces"):
        return None
    try:
        return parse_npm_workspaces(_run(["npm", "query", ".workspace"], root))
    except DiscoveryError:
        return workspaces_from_package_json(root)


def _nx(root: Path) -> list[str] | None:
    return parse_nx_projects(_run(["npx", "nx", "show", "projects"], root))


STRATEGIES: tuple[tuple[str, Callable[[Path], list[str] | None]], ...] = (
    ("yarn", _yarn),
    ("pnpm", _pnpm),
    ("npm", _npm),
    ("nx", _nx),
)


def discover_projects(root: Path | None = None) -> list[str]:
    """Return project names for the workspace at ``root``.

    Strategies are tried in order; one that does not apply or fails hands over
    to the next.
    """

    root = Path(root or Path.cwd())
    failures: list[str] = []
    for label, strategy in STRATEGIES:
        try:
            projects = strategy(root)
        except (DiscoveryError, OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.info("Workspace strategy failed", extra={"strategy": label, "error": str(exc)})
            failures.append(f"{label}: {exc}")
            continue
        if projects is None:
            continue
        logger.info("Discovered projects", extra={"strategy": label, "count": len(projects)})
        return projects

    detail = "; ".join(failures)
    raise DiscoveryError(
        "Could not detect workspace type. Ensure you have npm/yarn/pnpm workspaces or NX configured."
        + (f" ({detail})" if detail else "")
    )


__all__ = [
    "DiscoveryError",
    "discover_projects",
    "parse_nx_projects",
    "parse_npm_workspaces",
    "parse_pnpm_workspaces",
    "parse_yarn_workspaces",
    "workspaces_from_package_json",
]
