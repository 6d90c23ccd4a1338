[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "agv"
version = "0.2.4"
description = "Host-side helpers for QEMU VMs used by AI agents: port-forward specs and state, image checksums and sizes, idle detection, provisioning prompts and starter configs"
requires-python = ">=3.11"
dependencies = [
    "tomli-w",
]
keywords = ["qemu", "vm", "agent", "port-forwarding", "provisioning"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: MacOS",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["agv"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py311"
