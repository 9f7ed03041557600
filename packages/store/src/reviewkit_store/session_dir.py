"""Session-directory store: the default backend.

Layout under the session root (``.claude`` unless configured otherwise):

    README.md                       session registry (append-only table)
    <slug>/README.md                session index (append-only link list)
    <slug>/reviews/<domain>-<date>.md   one file per review, never edited

A report is written first and linked second. If linking fails the report
stays on disk and PartialWriteError says so; ``reviewkit link`` repairs it.
"""

from __future__ import annotations

import logging
import os
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING

from reviewkit_core.errors import NoSessionFound, PartialWriteError
from reviewkit_core.models import Session
from reviewkit_core.report import parse_front_matter, report_filename

from reviewkit_store.base import BaseStore
from reviewkit_store.locking import atomic_write, locked_append, reserve
from reviewkit_store.models import ReportRecord
from reviewkit_store.registry import SessionRegistry, validate_slug

if TYPE_CHECKING:
    from reviewkit_core.models import ReviewReport

logger = logging.getLogger(__name__)

_MAX_SUFFIX = 100


def _index_header(slug: str) -> str:
    return f"# {slug}\n\n## Reviews\n\n"


def index_line(name: str, command: str, recommendation: str, completed: str) -> str:
    return f"- [{name}](reviews/{name}) · {command} · {recommendation} · {completed}"


class SessionDirStore(BaseStore):
    def __init__(self, root: str | Path):
        self.root = Path(root)
        self.registry = SessionRegistry(self.root)

    def session_dir(self, slug: str) -> Path:
        return self.root / slug

    def reviews_dir(self, slug: str) -> Path:
        return self.session_dir(slug) / "reviews"

    def index_path(self, slug: str) -> Path:
        return self.session_dir(slug) / "README.md"

    # ------------------------------------------------------------------ #
    # Sessions                                                             #
    # ------------------------------------------------------------------ #

    def create_session(self, slug: str, today: date | None = None) -> Session:
        """Register a new session and lay out its directory."""
        validate_slug(slug)
        session = self.registry.add(slug, created=today)
        self.reviews_dir(slug).mkdir(parents=True, exist_ok=True)
        index = self.index_path(slug)
        if not index.exists():
            atomic_write(index, _index_header(slug))
        logger.info("Created session %s under %s", slug, self.root)
        return session

    # ------------------------------------------------------------------ #
    # Reports                                                              #
    # ------------------------------------------------------------------ #

    def _claim_report_path(self, report: ReviewReport) -> Path:
        """Reserve ``<domain>-<date>.md``, or the first free ``-2``, ``-3``... variant."""
        reviews = self.reviews_dir(report.session.slug)
        base = report_filename(report.domain, report.completed)
        stem = base[: -len(".md")]
        for n in range(1, _MAX_SUFFIX + 1):
            candidate = reviews / (base if n == 1 else f"{stem}-{n}.md")
            if reserve(candidate):
                return candidate
        raise FileExistsError(f"Too many reports named {stem}-*.md in {reviews}")

    def save(self, report: ReviewReport, markdown: str) -> Path:
        slug = report.session.slug
        path: Path | None = None
        try:
            path = self._claim_report_path(report)
            atomic_write(path, markdown)
        except OSError as e:
            if path is not None and path.exists() and path.stat().st_size == 0:
                os.unlink(path)
            shown = str(path) if path else str(self.reviews_dir(slug))
            raise PartialWriteError(shown, report_written=False, index_written=False, cause=e) from e

        try:
            self.link(slug, path, report=report)
        except OSError as e:
            raise PartialWriteError(str(path), report_written=True, index_written=False, cause=e) from e

        logger.info("Saved %s report to %s", report.command, path)
        return path

    def link(self, slug: str, report_path: str | Path, report: ReviewReport | None = None) -> bool:
        """Append the report's line to the session index. Returns False if it was already linked.

        Without ``report`` the line is built from the file's front matter.
        """
        report_path = Path(report_path)
        name = report_path.name
        if report is not None:
            line = index_line(name, report.command, report.recommendation.value, report.completed.isoformat())
        else:
            meta = parse_front_matter(report_path.read_text(encoding="utf-8"))
            if not meta:
                raise ValueError(f"{report_path} has no report front matter")
            record = ReportRecord.from_front_matter(str(report_path), meta)
            completed = record.completed.isoformat() if record.completed else "unknown"
            line = index_line(name, record.command, record.recommendation, completed)

        appended = locked_append(
            self.index_path(slug),
            line,
            header=_index_header(slug),
            unless=f"(reviews/{name})",
        )
        if not appended:
            logger.debug("%s is already linked from the %s index", name, slug)
        return appended

    def list_reports(self, session_slug: str) -> list[ReportRecord]:
        reviews = self.reviews_dir(session_slug)
        if not reviews.is_dir():
            return []
        records = []
        for path in sorted(reviews.glob("*.md")):
            try:
                meta = parse_front_matter(path.read_text(encoding="utf-8"))
            except OSError as e:
                logger.warning("Could not read %s: %s", path, e)
                continue
            if not meta:
                logger.warning("Skipping %s: no report front matter", path)
                continue
            records.append(ReportRecord.from_front_matter(str(path), meta))
        records.sort(key=lambda r: (r.completed or date.min, r.path))
        return records

    def unlinked_reports(self, session_slug: str) -> list[Path]:
        """Report files present on disk but missing from the session index."""
        index = self.index_path(session_slug)
        text = index.read_text(encoding="utf-8") if index.exists() else ""
        reviews = self.reviews_dir(session_slug)
        if not reviews.is_dir():
            return []
        return [p for p in sorted(reviews.glob("*.md")) if f"(reviews/{p.name})" not in text]

    def require_session_dir(self, slug: str) -> Path:
        path = self.session_dir(slug)
        if not path.is_dir():
            raise NoSessionFound(f"Session directory {path} does not exist.")
        return path
