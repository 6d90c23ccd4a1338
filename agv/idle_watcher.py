"""Idle detection for the per-VM auto-suspend watcher.

A VM counts as idle when no interactive session is logged in (``who`` is
empty) and its 5-minute load average is below a threshold. A long gap between
probe ticks is treated as the host having slept, which resets the idle timer.
The watcher records its pid in a file so cleanup paths can stop it.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path

from agv.forward import kill_supervisor

PROBE_INTERVAL = timedelta(seconds=60)


class Activity(Enum):
    """Outcome of a single tick's idle evaluation."""

    ACTIVE = "active"
    IDLE = "idle"


def evaluate(who_count: int, loadavg_5m: float, threshold: float) -> Activity:
    """Idle only when nobody is logged in and load is strictly below threshold."""
    if who_count == 0 and loadavg_5m < threshold:
        return Activity.IDLE
    return Activity.ACTIVE


def looks_like_host_wake(prev: datetime, now: datetime, expected: timedelta) -> bool:
    """Whether more than twice the expected interval passed between ticks.

    A backward clock jump never counts as a wake.
    """
    elapsed = now - prev
    if elapsed < timedelta(0):
        return False
    return elapsed > expected * 2


def parse_loadavg_5m(s: str) -> float:
    """Extract the 5-minute load average from a ``/proc/loadavg`` line."""
    fields = s.split()
    if not fields:
        raise ValueError("loadavg missing 1-min field")
    if len(fields) < 2:
        raise ValueError("loadavg missing 5-min field")
    five_min = fields[1]
    try:
        return float(five_min)
    except ValueError as e:
        raise ValueError(f"invalid 5-min loadavg: {five_min}") from e


def count_sessions(who_output: str) -> int:
    """Count interactive sessions in ``who`` output (non-blank lines)."""
    return sum(1 for line in who_output.splitlines() if line.strip())


def write_pid_file(path: str | os.PathLike[str]) -> None:
    """Record the current process id in ``path``."""
    p = Path(path)
    try:
        p.write_text(str(os.getpid()), encoding="utf-8")
    except OSError as e:
        raise OSError(e.errno, f"failed to write {p}: {e.strerror}") from e


def stop_watcher(pid_path: str | os.PathLike[str]) -> None:
    """Best effort: SIGTERM the watcher named in ``pid_path`` and remove the file.

    A missing file or a stale pid is tolerated.
    """
    p = Path(pid_path)
    try:
        contents = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return
    text = contents.strip()
    if text.isdigit():
        kill_supervisor(int(text))
    try:
        p.unlink()
    except OSError:
        pass