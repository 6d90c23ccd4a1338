"""Port forwarding spec types and active-forward state tracking.

A forward maps a host port to a guest port. TCP is implicit because forwards
are tunnelled through ``ssh -L``, which only carries TCP. The specs are used
both by declarative config (``forwards = [...]``) and by the runtime
``forward`` command.
"""

from __future__ import annotations

import os
import re
import signal
import tomllib
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import tomli_w

_PORT_RE = re.compile(r"\+?[0-9]+")
_MAX_PORT = 65535
_MAX_PID = 2**31 - 1


def _parse_port(text: str) -> int:
    trimmed = text.strip()
    if not trimmed:
        raise ValueError("port is empty")
    if not _PORT_RE.fullmatch(trimmed) or int(trimmed) > _MAX_PORT:
        raise ValueError(f"'{trimmed}' is not a valid port (0-65535)")
    port = int(trimmed)
    if port == 0:
        raise ValueError("port 0 is not allowed")
    return port


@dataclass(frozen=True)
class ForwardSpec:
    """A single forward specification, written ``host[:guest]``.

    When the guest port is omitted it equals the host port.
    """

    host: int
    guest: int

    @classmethod
    def parse(cls, raw: str) -> ForwardSpec:
        """Parse ``host[:guest]``; raises ValueError on any malformed input."""
        s = raw.strip()
        if not s:
            raise ValueError("empty forward spec")

        if "/" in s:
            ports_part, proto_part = s.split("/", 1)
            raise ValueError(
                f"forward spec '{raw}' has a '/{proto_part}' protocol suffix, "
                "which is no longer accepted — TCP is implicit (the underlying "
                f"`ssh -L` tunnel is TCP-only). Drop the suffix: '{ports_part}'"
            )

        if ":" in s:
            host_str, guest_str = s.split(":", 1)
        else:
            host_str = guest_str = s

        try:
            host = _parse_port(host_str)
        except ValueError as e:
            raise ValueError(f"host port in '{raw}': {e}") from e
        try:
            guest = _parse_port(guest_str)
        except ValueError as e:
            raise ValueError(f"guest port in '{raw}': {e}") from e
        return cls(host, guest)

    def to_short_string(self) -> str:
        """Render in the short form that parses back to the same spec."""
        return str(self)

    def __str__(self) -> str:
        if self.host == self.guest:
            return str(self.host)
        return f"{self.host}:{self.guest}"


def parse_specs(raw: Iterable[str]) -> list[ForwardSpec]:
    """Parse a list of spec strings, raising on the first bad one."""
    return [ForwardSpec.parse(item) for item in raw]


def validate_unique(specs: Sequence[ForwardSpec]) -> None:
    """Raise ValueError if two specs bind the same host port."""
    seen: set[int] = set()
    for spec in specs:
        if spec.host in seen:
            raise ValueError(f"duplicate forward for host port {spec.host} in list")
        seen.add(spec.host)


class Origin(str, Enum):
    """Where a forward came from."""

    CONFIG = "config"
    ADHOC = "adhoc"
    AUTO = "auto"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ActiveForward:
    """A forward currently active on a running VM, backed by a supervisor.

    ``pid`` is the supervisor's process-group leader.
    """

    host: int
    guest: int
    origin: Origin
    pid: int

    @classmethod
    def from_spec(cls, spec: ForwardSpec, origin: Origin, pid: int) -> ActiveForward:
        """Build an active entry from a spec, origin and supervisor pid."""
        return cls(spec.host, spec.guest, origin, pid)

    def spec(self) -> ForwardSpec:
        """The spec this forward was created from."""
        return ForwardSpec(self.host, self.guest)

    def _to_toml(self) -> dict[str, Any]:
        return {
            "host": self.host,
            "guest": self.guest,
            "origin": self.origin.value,
            "pid": self.pid,
        }

    @classmethod
    def _from_toml(cls, data: Any) -> ActiveForward:
        if not isinstance(data, dict):
            raise ValueError("active forward entry must be a table")
        try:
            host, guest, pid = data["host"], data["guest"], data["pid"]
            origin = Origin(data["origin"])
        except KeyError as e:
            raise ValueError(f"active forward entry is missing field {e.args[0]!r}") from e
        for label, value, upper in (
            ("host", host, _MAX_PORT),
            ("guest", guest, _MAX_PORT),
            ("pid", pid, 2**32 - 1),
        ):
            if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= upper:
                raise ValueError(f"invalid {label} value {value!r} in active forward entry")
        return cls(host, guest, origin, pid)


@dataclass(frozen=True)
class ForwardJson:
    """JSON view of an active forward: drops the pid, adds liveness."""

    host: int
    guest: int
    origin: Origin
    alive: bool

    @classmethod
    def from_active(cls, active: ActiveForward) -> ForwardJson:
        """Project an active forward, checking its supervisor's liveness now."""
        return cls(active.host, active.guest, active.origin, is_alive(active.pid))

    def to_dict(self) -> dict[str, Any]:
        """A JSON-ready dict with the stable key set."""
        return {
            "host": self.host,
            "guest": self.guest,
            "origin": self.origin.value,
            "alive": self.alive,
        }


def read_active(path: str | os.PathLike[str]) -> list[ActiveForward]:
    """Read the active-forwards state file; a missing file means none."""
    p = Path(path)
    try:
        contents = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        return []
    except OSError as e:
        raise OSError(e.errno, f"failed to read {p}: {e.strerror}") from e
    try:
        data = tomllib.loads(contents)
        entries = data.get("active", [])
        if not isinstance(entries, list):
            raise ValueError("'active' must be an array of tables")
        return [ActiveForward._from_toml(entry) for entry in entries]
    except (tomllib.TOMLDecodeError, ValueError) as e:
        raise ValueError(f"failed to parse {p}: {e}") from e


def write_active(path: str | os.PathLike[str], active: Sequence[ActiveForward]) -> None:
    """Write the state file, or remove it when ``active`` is empty."""
    p = Path(path)
    if not active:
        clear_active(p)
        return
    text = tomli_w.dumps({"active": [entry._to_toml() for entry in active]})
    try:
        p.write_text(text, encoding="utf-8")
    except OSError as e:
        raise OSError(e.errno, f"failed to write {p}: {e.strerror}") from e


def clear_active(path: str | os.PathLike[str]) -> None:
    """Remove the state file if it exists."""
    p = Path(path)
    try:
        p.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        raise OSError(e.errno, f"failed to remove {p}: {e.strerror}") from e


def _valid_pid(pid: int) -> bool:
    return 0 < pid <= _MAX_PID


def is_alive(pid: int) -> bool:
    """Whether a signal could be delivered to ``pid`` (without sending one)."""
    if not _valid_pid(pid):
        return False
    try:
        os.kill(pid, 0)
    except OSError:
        return False
    return True


def kill_supervisor(pid: int) -> None:
    """Send SIGTERM to a supervisor's process group; a dead pid is ignored."""
    if not _valid_pid(pid):
        return
    try:
        os.killpg(pid, signal.SIGTERM)
    except OSError:
        pass


def kill_all_and_clear(path: str | os.PathLike[str]) -> None:
    """Best effort: kill every supervisor listed in ``path`` and remove it."""
    try:
        active = read_active(path)
    except (OSError, ValueError):
        return
    for entry in active:
        kill_supervisor(entry.pid)
    try:
        clear_active(path)
    except OSError:
        pass