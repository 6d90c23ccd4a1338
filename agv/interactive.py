"""Interactive prompting for step-by-step provisioning.

Lets users approve, skip, or edit each provisioning step as it runs.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import TextIO


class DecisionKind(Enum):
    """What to do with a single step."""

    RUN = "run"
    SKIP = "skip"
    ALL = "all"
    QUIT = "quit"


@dataclass(frozen=True)
class Decision:
    """A user's answer for a step; ``command`` is set for RUN and ALL."""

    kind: DecisionKind
    command: str | None = None


@dataclass
class InteractiveState:
    """State shared across step prompts in one run.

    ``all`` becomes true once the user picks "all"; later steps run
    without prompting.
    """

    all: bool = False


_RUN_ANSWERS = {"", "y", "yes"}
_SKIP_ANSWERS = {"n", "no"}
_ALL_ANSWERS = {"a", "all"}
_QUIT_ANSWERS = {"q", "quit"}
_EDIT_ANSWERS = {"e", "edit"}


def prompt_step(label: str, command: str) -> Decision:
    """Prompt on stdin/stderr about a step and return the decision."""
    return prompt_step_io(sys.stdin, sys.stderr, label, command)


def prompt_step_io(reader: TextIO, writer: TextIO, label: str, command: str) -> Decision:
    """Prompt about a step using the given reader and writer.

    Answers: ``y`` (default) runs as-is, ``n`` skips, ``e`` edits the command,
    ``a`` runs this and all remaining steps, ``q`` quits. End of input quits.
    """
    writer.write(f"\n  → {label}\n")
    for line in command.splitlines():
        writer.write(f"      {line}\n")

    while True:
        writer.write("  Run? [Y/n/e/a/q]: ")
        writer.flush()

        answer = reader.readline()
        if not answer:
            return Decision(DecisionKind.QUIT)
        choice = answer.strip().lower()

        if choice in _RUN_ANSWERS:
            return Decision(DecisionKind.RUN, command)
        if choice in _SKIP_ANSWERS:
            return Decision(DecisionKind.SKIP)
        if choice in _ALL_ANSWERS:
            return Decision(DecisionKind.ALL, command)
        if choice in _QUIT_ANSWERS:
            return Decision(DecisionKind.QUIT)
        if choice in _EDIT_ANSWERS:
            writer.write("  Edit (empty = keep): ")
            writer.flush()
            edited = reader.readline().strip()
            return Decision(DecisionKind.RUN, edited or command)
        writer.write("  Please answer y, n, e, a, or q.\n")


def user_quit_error() -> RuntimeError:
    """Build the error raised when the user quits an interactive run."""
    return RuntimeError("aborted by user (interactive q)")