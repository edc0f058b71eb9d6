"""Selection cursor and expand/collapse state, driven by key presses."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..workflows import WorkflowKind

QUIT_KEYS = {"q", "ctrl-c"}
UP_KEYS = {"up", "k"}
DOWN_KEYS = {"down", "j"}
TOGGLE_KEYS = {"space", "enter", "l"}
COLLAPSE_KEYS = {"h"}
EXPAND_ALL_KEYS = {"e", "E"}
COLLAPSE_ALL_KEYS = {"c", "C"}

_ESCAPE_SEQUENCES = {
    b"\x1b[A": "up",
    b"\x1b[B": "down",
    b"\x1b[C": "right",
    b"\x1b[D": "left",
    b"\x1bOA": "up",
    b"\x1bOB": "down",
}
_SINGLE_BYTES = {
    b" ": "space",
    b"\r": "enter",
    b"\n": "enter",
    b"\x03": "ctrl-c",
    b"\x1b": "escape",
}


def decode_keys(data: bytes) -> list[str]:
    """Split raw terminal input into key names."""

    keys: list[str] = []
    index = 0
    while index < len(data):
        sequence = data[index : index + 3]
        if sequence in _ESCAPE_SEQUENCES:
            keys.append(_ESCAPE_SEQUENCES[sequence])
            index += 3
            continue
        byte = data[index : index + 1]
        if byte in _SINGLE_BYTES:
            keys.append(_SINGLE_BYTES[byte])
        elif byte.isascii() and byte.decode("ascii").isprintable():
            keys.append(byte.decode("ascii"))
        index += 1
    return keys


@dataclass(slots=True)
class DashboardState:
    workflows: tuple[WorkflowKind, ...]
    selected_index: int = 0
    expanded: set[WorkflowKind] = field(default_factory=set)
    quit_requested: bool = False

    def __post_init__(self) -> None:
        self.workflows = tuple(self.workflows)
        if not self.workflows:
            raise ValueError("The dashboard needs at least one workflow")
        if not 0 <= self.selected_index < len(self.workflows):
            raise ValueError(f"selected_index {self.selected_index} is out of range")
        self.expanded = {workflow for workflow in self.expanded if workflow in self.workflows}

    @property
    def selected(self) -> WorkflowKind:
        return self.workflows[self.selected_index]

    def is_expanded(self, workflow: WorkflowKind) -> bool:
        return workflow in self.expanded

    def move_up(self) -> None:
        self.selected_index = max(0, self.selected_index - 1)

    def move_down(self) -> None:
        self.selected_index = min(len(self.workflows) - 1, self.selected_index + 1)

    def toggle_selected(self) -> None:
        self.expanded ^= {self.selected}

    def collapse_selected(self) -> None:
        self.expanded.discard(self.selected)

    def expand_all(self) -> None:
        self.expanded = set(self.workflows)

    def collapse_all(self) -> None:
        self.expanded = set()

    def handle_key(self, key: str) -> bool:
        """Apply a key press; returns True when the key changed anything."""

        if key in QUIT_KEYS:
            self.quit_requested = True
        elif key in UP_KEYS:
            self.move_up()
        elif key in DOWN_KEYS:
            self.move_down()
        elif key in TOGGLE_KEYS:
            self.toggle_selected()
        elif key in COLLAPSE_KEYS:
            self.collapse_selected()
        elif key in EXPAND_ALL_KEYS:
            self.expand_all()
        elif key in COLLAPSE_ALL_KEYS:
            self.collapse_all()
        else:
            return False
        return True


__all__ = ["DashboardState", "decode_keys"]
