"""Write a starter VM configuration file."""

from __future__ import annotations

import os
from pathlib import Path

_TEMPLATE_DIR = Path(__file__).with_name("templates")

DEFAULT_CONTENT = """\
# Starter configuration for an agv virtual machine.
#
# Handy commands:
#   agv images                  show base images and mixins you can use
#   agv specs                   show the named hardware sizes
#   agv create --start <name>   build a VM from this file and boot it
#
# Agent-specific starting points are kept under examples/ in the project
# (claude, gemini, codex, openclaw, repo-checkout), or generate one with
# `agv init <template>`. Every option is described in docs/config.md.

[base]
from = "ubuntu-24.04"                 # pick another with `agv images`
# include = ["devtools"]              # adds git, curl and a compiler toolchain
spec = "medium"                       # see `agv specs` for the sizes

# Per-VM overrides of the chosen spec:
# [vm]
# memory = "8G"
# cpus = 4
# disk = "40G"

# -- Copying host files into the guest --
# Host paths take {{HOME}}; guest paths take /home/{{AGV_USER}}.
# A leading tilde is passed through untouched, so spell paths out.
#
# [[files]]
# source = "{{HOME}}/.gitconfig"
# dest = "/home/{{AGV_USER}}/.gitconfig"

# -- Root-level setup, run while the OS is prepared --
# [[setup]]
# run = "apt-get install -y ripgrep"

# -- User-level provisioning, run after setup --
# [[provision]]
# run = "git clone git@example.com:org/repo.git ~/repo"

# -- Variables --
# Any value may use {{NAME}} or {{NAME:-fallback}}. Keep private values in a
# .env file beside this one and leave that file out of version control.
# docs/repo-access.md covers ways to reach private repositories.
"""


class InitError(Exception):
    """The starter config could not be written."""


def _available_templates() -> dict[str, Path]:
    if not _TEMPLATE_DIR.is_dir():
        return {}
    return {p.stem: p for p in sorted(_TEMPLATE_DIR.glob("*.toml"))}


def _template_content(name: str) -> str:
    templates = _available_templates()
    path = templates.get(name)
    if path is None:
        raise InitError(f"unknown template '{name}'. Available: {', '.join(templates)}")
    return path.read_text(encoding="utf-8")


def write_config(
    dest: str | os.PathLike[str], template: str | None = None, force: bool = False
) -> Path:
    """Write the default or a named template to ``dest`` and return its path.

    Refuses to overwrite an existing file unless ``force`` is set.
    """
    path = Path(dest)
    if path.exists() and not force:
        raise InitError(f"{path} already exists. Use --force to overwrite.")

    content = DEFAULT_CONTENT if template is None else _template_content(template)

    parent = path.parent
    if str(parent) and not parent.exists():
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OSError(
                e.errno, f"failed to create parent directory {parent}: {e.strerror}"
            ) from e

    try:
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise OSError(e.errno, f"failed to write {path}: {e.strerror}") from e
    return path


def run(template: str | None = None, output: str = "agv.toml", force: bool = False) -> None:
    """Write a starter config to ``output`` and tell the user what to do next."""
    path = write_config(output, template, force)
    label = template or "default"
    print(f"  Wrote {path} ({label})")
    print(f"  Run: agv create --config {path} --start <name>")