"""Session lookup over the registry table in ``.claude/README.md``.

The registry is a markdown table:

    | Session | Created | Status |
    |---------|---------|--------|
    | fix-auth-bug | 2024-01-15 | closed |

Only reads happen here; appending rows is reviewkit_store's job.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

from reviewkit_core.errors import NoSessionFound
from reviewkit_core.models import Session, SessionStatus

logger = logging.getLogger(__name__)

_REQUIRED_COLUMNS = ("session", "created", "status")


def _split_row(line: str) -> list[str]:
    return [cell.strip() for cell in line.strip().strip("|").split("|")]


def _is_separator(cells: list[str]) -> bool:
    return all(cell and set(cell) <= set("-: ") for cell in cells)


def _clean_slug(cell: str) -> str:
    # Rows often link the slug: [fix-auth-bug](fix-auth-bug/README.md)
    cell = cell.strip("` ")
    if cell.startswith("[") and "]" in cell:
        cell = cell[1 : cell.index("]")]
    return cell.strip("` ")


def parse_session_index(text: str) -> list[Session]:
    """Parse every session row of the registry table, in file order."""
    sessions: list[Session] = []
    columns: dict[str, int] | None = None

    for line in text.splitlines():
        if not line.strip().startswith("|"):
            columns = None
            continue
        cells = _split_row(line)
        if columns is None:
            lowered = [c.lower() for c in cells]
            if all(name in lowered for name in _REQUIRED_COLUMNS):
                columns = {name: lowered.index(name) for name in _REQUIRED_COLUMNS}
            continue
        if _is_separator(cells):
            continue
        try:
            slug = _clean_slug(cells[columns["session"]])
            created = date.fromisoformat(cells[columns["created"]])
            status = SessionStatus(cells[columns["status"]].lower())
        except (IndexError, ValueError) as e:
            logger.warning("Skipping malformed session row %r: %s", line.strip(), e)
            continue
        if not slug:
            logger.warning("Skipping session row without a slug: %r", line.strip())
            continue
        sessions.append(Session(slug=slug, created_at=created, status=status))

    return sessions


def _latest_index(sessions: list[Session]) -> int:
    return max(range(len(sessions)), key=lambda i: (sessions[i].created_at, i))


def latest_session(sessions: list[Session]) -> str:
    """Return the slug of the most recently created session; later rows win ties."""
    if not sessions:
        raise NoSessionFound("No sessions found in the session index.")
    return sessions[_latest_index(sessions)].slug


def read_session_index(index_path: str | Path) -> list[Session]:
    path = Path(index_path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise NoSessionFound(f"Session index {path} is unreadable: {e}") from e
    return parse_session_index(text)


def locate_session(index_path: str | Path, explicit: str | None = None) -> Session:
    """Return the session to file reports under.

    An explicit slug must appear in the registry or have its own directory next
    to the registry file; otherwise the most recently created session is used.
    """
    path = Path(index_path)
    if explicit:
        sessions = read_session_index(path) if path.exists() else []
        for session in sessions:
            if session.slug == explicit:
                return session
        if (path.parent / explicit).is_dir():
            logger.debug("Session %s is not in %s; using its directory", explicit, path)
            return Session(slug=explicit, created_at=date.today())
        raise NoSessionFound(f"Session {explicit!r} is not registered in {path}.")

    sessions = read_session_index(path)
    if not sessions:
        raise NoSessionFound(f"No sessions found in {path}. Create one with `reviewkit session new <slug>`.")
    return sessions[_latest_index(sessions)]
