"""Open a VM's desktop in the host browser.

The guest serves an HTML5 VNC client over a host port allocated at VM start
and tunnelled through SSH; that port is read from a file and opened in the
system's default browser.
"""

from __future__ import annotations

import os
import re
import subprocess
import sys
from pathlib import Path

_PORT_RE = re.compile(r"\+?[0-9]+")
_MAX_PORT = 65535


def launcher_tool() -> str:
    """The command that opens a URL in the default browser on this platform."""
    if sys.platform == "darwin":
        return "open"
    if os.name == "posix":
        return "xdg-open"
    return "cmd"


def gui_url(port: int) -> str:
    """The noVNC URL for a forwarded GUI port."""
    return f"http://127.0.0.1:{port}/vnc.html?autoconnect=1&resize=scale"


def read_port(path: str | os.PathLike[str]) -> int:
    """Read the GUI host port written by the forward supervisor."""
    p = Path(path)
    try:
        raw = p.read_text(encoding="utf-8")
    except OSError as e:
        raise OSError(
            e.errno,
            f"failed to read GUI port from {p} — is the VM's forward supervisor up?",
        ) from e
    text = raw.strip()
    if not _PORT_RE.fullmatch(text) or int(text) > _MAX_PORT:
        raise ValueError(f"{p} did not contain a valid port")
    return int(text)


def open_in_browser(url: str) -> None:
    """Open ``url`` with the platform launcher; raises RuntimeError on failure."""
    tool = launcher_tool()
    try:
        result = subprocess.run([tool, url], capture_output=True)
    except OSError as e:
        raise RuntimeError(f"failed to run {tool} {url}: {e}") from e
    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace")
        raise RuntimeError(f"{tool} failed (exit {result.returncode}): {stderr}")