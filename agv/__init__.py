"""Host-side helpers for QEMU VMs used by AI agents: forwards, image formats, idle detection, prompts and starter configs."""

__version__ = "0.2.4"

__all__ = [
    "forward",
    "gui",
    "idle_watcher",
    "imagefmt",
    "init",
    "interactive",
    "manual_steps",
]