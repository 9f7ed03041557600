"""File primitives for the append-only session logs.

Appends take an exclusive ``fcntl.flock`` on the target file itself, so two
review invocations finishing at the same moment never interleave lines.
Report files are written atomically (temp file + rename) and never edited.
"""

from __future__ import annotations

import fcntl
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator


@contextmanager
def locked(path: Path) -> Iterator[IO[str]]:
    """Open ``path`` for reading and appending under an exclusive lock, creating it if needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a+", encoding="utf-8") as f:
        fcntl.flock(f, fcntl.LOCK_EX)
        try:
            f.seek(0)
            yield f
        finally:
            f.flush()
            os.fsync(f.fileno())
            fcntl.flock(f, fcntl.LOCK_UN)


def locked_append(path: Path, text: str, header: str = "", unless: str | None = None) -> bool:
    """Append ``text`` as whole line(s) to ``path`` under an exclusive lock.

    ``header`` is written first when the file is empty. When ``unless`` already
    occurs in the file nothing is written. Returns whether anything was appended.
    """
    with locked(path) as f:
        current = f.read()
        if unless is not None and unless in current:
            return False
        chunk = ""
        if not current and header:
            chunk += header if header.endswith("\n") else header + "\n"
        elif current and not current.endswith("\n"):
            chunk += "\n"
        chunk += text if text.endswith("\n") else text + "\n"
        f.write(chunk)
    return True


def atomic_write(path: Path, content: str) -> None:
    """Write file atomically via temp + rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except Exception:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def reserve(path: Path) -> bool:
    """Create ``path`` empty if it does not exist yet. Returns False when it already exists."""
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
    except FileExistsError:
        return False
    os.close(fd)
    return True
