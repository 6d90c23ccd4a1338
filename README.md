# agv

Host-side helpers for QEMU virtual machines that AI agents work inside.
The package is a library of small, self-contained pieces:

- `agv.forward`: parse `host[:guest]` port-forward specs, check a list
  for clashing host ports, and read and write the TOML file that records
  which forward supervisors are running. It can also check whether a
  supervisor pid is alive and send SIGTERM to its process group.
- `agv.imagefmt`: parse `sha256:<hex>` / `sha512:<hex>` checksums and
  verify files against them, hash files, derive a cache filename from an
  image URL, and normalise or parse disk sizes such as `20G`.
- `agv.idle_watcher`: decide from the guest's `who` output and five-minute
  load average whether a VM is idle, spot a long gap between ticks that
  means the host was asleep, and write or stop a watcher pid file.
- `agv.interactive`: the `[Y/n/e/a/q]` prompt used to approve, skip, edit
  or quit provisioning steps one at a time.
- `agv.init`: write a commented starter `agv.toml`.
- `agv.manual_steps`: render the setup steps that only a human can carry
  out, attributing each mixin's steps to the mixin.
- `agv.gui`: build the local noVNC URL for a VM's desktop, read the
  forwarded port from its file, and open a URL in the default browser.

## Installing

```
pip install agv
```

Python 3.11 or later is needed. `tomli-w` is the only dependency.

## Examples

Forward specs:

```python
from agv.forward import ForwardSpec, parse_specs, validate_unique

spec = ForwardSpec.parse("8080:3000")
spec.host, spec.guest          # (8080, 3000)
spec.to_short_string()         # "8080:3000"
str(ForwardSpec.parse("53"))   # "53"

specs = parse_specs(["8080", "3000:5000", "53"])
validate_unique(specs)         # ValueError if two share a host port
```

Port 0, ports above 65535, empty parts and protocol suffixes such as
`53/udp` raise `ValueError`; forwards are TCP only.

Active-forward state:

```python
from agv.forward import ActiveForward, Origin, read_active, write_active

entry = ActiveForward.from_spec(ForwardSpec(8080, 8080), Origin.ADHOC, 12345)
write_active("forwards.toml", [entry])
read_active("forwards.toml")   # [entry]
write_active("forwards.toml", [])   # removes the file
```

`ForwardJson.from_active(entry).to_dict()` gives the JSON view with the
keys `host`, `guest`, `origin` and `alive`.

Checksums and disk sizes:

```python
from agv.imagefmt import parse_checksum, normalize_size, parse_disk_size

checksum = parse_checksum("sha256:" + "a" * 64)
checksum.verify("disk.img")    # raises ChecksumMismatch on a wrong digest

normalize_size("8GiB")         # "8G"
parse_disk_size("1G")          # 1073741824
```

Idle detection:

```python
from agv.idle_watcher import Activity, evaluate, parse_loadavg_5m

load = parse_loadavg_5m("0.10 0.45 0.30 1/123 4567\n")   # 0.45
evaluate(0, load, 0.2)         # Activity.ACTIVE
evaluate(0, 0.05, 0.2)         # Activity.IDLE
```

A VM counts as idle only when nobody is logged in and the load is strictly
below the threshold.

Step prompts:

```python
import io
from agv.interactive import DecisionKind, prompt_step_io

decision = prompt_step_io(io.StringIO("e\necho replaced\n"), io.StringIO(),
                          "provision 1/3", "echo original")
decision.kind, decision.command   # (DecisionKind.RUN, "echo replaced")
```

End of input counts as quit.

Starter config:

```python
from agv.init import write_config

write_config("agv.toml")               # InitError if the file exists
write_config("agv.toml", force=True)   # overwrite
```

Named templates are read from `.toml` files in a `templates` directory
beside the module; an unknown name raises `InitError` listing those found.

## What the package does not do

There is no command-line program and no VM lifecycle: nothing here
creates, starts, stops or suspends a VM, talks to QEMU or runs `ssh`.
Base images are not downloaded or cached, and disks are not created,
resized or converted. The forward supervisor and the idle watcher's
polling loop are not included; only their state files, pid handling and
decision functions are.

## Running the tests

```
pip install -e .[test]
pytest
```