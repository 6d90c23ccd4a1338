"""Host-facing manual instructions shown to the person running the tool.

Steps come from a user's own config and from mixins; they are rendered as a
printable block after provisioning and in VM inspection output.
"""

from __future__ import annotations

import os
import re
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field

_CYAN = "\x1b[36m"
_BOLD = "\x1b[1m"
_RESET = "\x1b[0m"
_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


@dataclass
class MixinManualSteps:
    """Manual steps contributed by one mixin."""

    name: str
    steps: list[str] = field(default_factory=list)


def render(
    config_steps: Sequence[str], mixin_steps: Sequence[MixinManualSteps]
) -> str | None:
    """Render manual steps as a styled block, or None when there are none.

    Config-level steps come first; mixin steps follow, each prefixed with the
    mixin's name in bold.
    """
    if not config_steps and not mixin_steps:
        return None

    lines = [f"{_CYAN}{_BOLD}Manual setup required{_RESET}{_RESET}", ""]
    lines.extend(f"  - {step}" for step in config_steps)
    lines.extend(
        f"  - {_BOLD}{entry.name}{_RESET}: {step}"
        for entry in mixin_steps
        for step in entry.steps
    )
    return "\n".join(lines) + "\n"


def _use_color(stream) -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def print_to_host(
    config_steps: Sequence[str], mixin_steps: Sequence[MixinManualSteps]
) -> None:
    """Print manual steps to stdout; styling is dropped when not a terminal."""
    rendered = render(config_steps, mixin_steps)
    if rendered is None:
        return
    out = sys.stdout
    if not _use_color(out):
        rendered = _ANSI_RE.sub("", rendered)
    out.write("\n" + rendered)
    out.flush()