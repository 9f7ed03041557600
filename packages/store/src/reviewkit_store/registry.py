"""The session registry: an append-only markdown table in ``<root>/README.md``.

Rows are only ever appended, under an exclusive lock. Readers take one
snapshot per invocation and never see a half-written row.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from pathlib import Path

from reviewkit_core.errors import ReviewError
from reviewkit_core.models import Session, SessionStatus
from reviewkit_core.session import parse_session_index

from reviewkit_store.locking import locked

logger = logging.getLogger(__name__)

REGISTRY_HEADER = "# Review Sessions\n\n"
TABLE_HEADER = "| Session | Created | Status |\n|---------|---------|--------|\n"

_SLUG_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class SessionExists(ReviewError):
    pass


class InvalidSessionSlug(ReviewError):
    pass


def validate_slug(slug: str) -> str:
    if not _SLUG_RE.match(slug or ""):
        raise InvalidSessionSlug(
            f"Invalid session name {slug!r}: use letters, digits, '.', '_' or '-', starting with a letter or digit."
        )
    return slug


class SessionRegistry:
    def __init__(self, root: str | Path):
        self.root = Path(root)

    @property
    def path(self) -> Path:
        return self.root / "README.md"

    def snapshot(self) -> list[Session]:
        """All registered sessions, in file order. A missing registry is empty."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        return parse_session_index(text)

    def ensure(self) -> bool:
        """Create an empty registry table if the file does not exist. Returns whether it was created."""
        with locked(self.path) as f:
            if f.read():
                return False
            f.write(REGISTRY_HEADER + TABLE_HEADER)
        return True

    def add(self, slug: str, created: date | None = None, status: SessionStatus = SessionStatus.OPEN) -> Session:
        """Append a session row; the table is started when the file has none at its end."""
        session = Session(slug=validate_slug(slug), created_at=created or date.today(), status=status)
        row = f"| {session.slug} | {session.created_at.isoformat()} | {session.status.value} |\n"

        with locked(self.path) as f:
            current = f.read()
            if any(s.slug == session.slug for s in parse_session_index(current)):
                raise SessionExists(f"Session {session.slug!r} already exists in {self.path}.")

            chunk = ""
            if not current:
                chunk = REGISTRY_HEADER + TABLE_HEADER
            else:
                if not current.endswith("\n"):
                    chunk = "\n"
                last_line = current.rstrip("\n").rsplit("\n", 1)[-1]
                # A row only joins the table if it directly follows a table line.
                if current.endswith("\n\n") or not last_line.lstrip().startswith("|"):
                    chunk += "\n" + TABLE_HEADER
            f.write(chunk + row)

        logger.debug("Registered session %s in %s", session.slug, self.path)
        return session
