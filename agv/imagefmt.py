"""Pure helpers for base images: checksums, cache filenames and disk sizes."""

from __future__ import annotations

import hashlib
import os
import re
from dataclasses import dataclass
from pathlib import Path

_CHUNK_SIZE = 64 * 1024
_NUMBER_RE = re.compile(r"\+?[0-9]+")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_U64_MAX = 2**64 - 1
_UNIT_MULTIPLIERS = {
    "K": 1024,
    "M": 1024**2,
    "G": 1024**3,
    "T": 1024**4,
}
_HEX_LENGTHS = {"sha256": 64, "sha512": 128}


class ImageError(Exception):
    """Base class for image handling failures."""


class ChecksumMismatch(ImageError):
    """A downloaded image did not match its expected checksum."""

    def __init__(self, path: str | os.PathLike[str], expected: str, actual: str) -> None:
        self.path = Path(path)
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"checksum mismatch for {self.path}: expected {expected}, got {actual}"
        )


def _digest_file(path: str | os.PathLike[str], algorithm: str) -> str:
    p = Path(path)
    hasher = hashlib.new(algorithm)
    try:
        with p.open("rb") as f:
            for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
                hasher.update(chunk)
    except OSError as e:
        raise OSError(e.errno, f"failed to read {p} for checksum: {e.strerror}") from e
    return hasher.hexdigest()


@dataclass(frozen=True)
class Checksum:
    """An expected digest: ``algorithm`` is ``sha256`` or ``sha512``."""

    algorithm: str
    hex: str

    def digest_file(self, path: str | os.PathLike[str]) -> str:
        """Compute this checksum's algorithm over a file, as lowercase hex."""
        return _digest_file(path, self.algorithm)

    def verify(self, path: str | os.PathLike[str]) -> str:
        """Return the file's digest, raising ChecksumMismatch if it differs."""
        actual = self.digest_file(path)
        if actual != self.hex:
            raise ChecksumMismatch(path, self.hex, actual)
        return actual


def parse_checksum(raw: str | None) -> Checksum | None:
    """Parse ``sha256:<hex>`` or ``sha512:<hex>``; None stays None."""
    if raw is None:
        return None
    for algorithm, length in _HEX_LENGTHS.items():
        prefix = f"{algorithm}:"
        if raw.startswith(prefix):
            hex_part = raw[len(prefix):]
            if len(hex_part) != length or not set(hex_part) <= _HEX_DIGITS:
                raise ValueError(
                    f"{algorithm} checksum must be exactly {length} hex characters"
                )
            return Checksum(algorithm, hex_part)
    raise ValueError("checksum must start with 'sha256:' or 'sha512:'")


def filename_from_url(url: str) -> str:
    """The URL's last path segment, or the SHA-256 of the URL if unusable."""
    last = url.rsplit("/", 1)[-1]
    if last and "." in last:
        return last
    return hashlib.sha256(url.encode("utf-8")).hexdigest()


def sha256_file(path: str | os.PathLike[str]) -> str:
    """SHA-256 of a file as lowercase hex, read in 64 KiB chunks."""
    return _digest_file(path, "sha256")


def sha512_file(path: str | os.PathLike[str]) -> str:
    """SHA-512 of a file as lowercase hex, read in 64 KiB chunks."""
    return _digest_file(path, "sha512")


def _split_size(raw: str, what: str) -> tuple[int, str]:
    s = raw.strip()
    pos = next((i for i, c in enumerate(s) if c.isalpha()), None)
    if pos is None:
        raise ValueError(f'{what} must include a unit (K, M, G, T): "{s}"')
    num_str, suffix = s[:pos], s[pos:]
    if not _NUMBER_RE.fullmatch(num_str) or int(num_str) > _U64_MAX:
        raise ValueError(f'invalid number in {what} "{s}"')
    first = suffix[0]
    unit = first.upper() if first.isascii() else first
    if unit not in _UNIT_MULTIPLIERS:
        raise ValueError(f'unknown unit "{suffix}" in {what} "{s}" — use K, M, G, or T')
    return int(num_str), unit


def normalize_size(s: str) -> str:
    """Normalise ``8G``, ``8GB``, ``8GiB``, ``8g`` and the like to ``8G``."""
    num, unit = _split_size(s, "size")
    return f"{num}{unit}"


def parse_disk_size(s: str) -> int:
    """Parse a size such as ``20G`` into bytes using binary units."""
    num, unit = _split_size(s, "disk size")
    total = num * _UNIT_MULTIPLIERS[unit]
    if total > _U64_MAX:
        raise ValueError(f'disk size "{s.strip()}" is too large')
    return total