from __future__ import annotations

import hashlib
from pathlib import Path


class DataAccessError(Exception):
    pass


def require_readable_file(path: Path) -> Path:
    """
    Resolve `path` and confirm it is an existing, readable regular file.

    Checked before any external process is spawned so a missing input is reported as such
    and not as an ambiguous engine exit code.
    """

    if not isinstance(path, Path):
        raise TypeError("path must be a pathlib.Path")

    resolved = path.expanduser().resolve()
    if not resolved.exists():
        raise DataAccessError(f"Document not found: {resolved}")
    if not resolved.is_file():
        raise DataAccessError(f"Document is not a regular file: {resolved}")
    try:
        with resolved.open("rb") as f:
            f.read(1)
    except OSError as e:
        raise DataAccessError(f"Document not readable: {resolved} ({e.strerror or e})") from e
    return resolved


def sha256_file(path: Path) -> str:
    """
    Compute SHA-256 of a file for audit metadata.
    """

    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()
