"""No-op store used by ``reviewkit review --dry-run``.

Using a NoOpStore rather than None lets the CLI always call store.save()
without conditional checks.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from reviewkit_store.base import BaseStore

if TYPE_CHECKING:
    from reviewkit_core.models import ReviewReport

    from reviewkit_store.models import ReportRecord


class NoOpStore(BaseStore):
    """Silently discards every report."""

    def save(self, report: ReviewReport, markdown: str) -> Path | None:
        return None

    def list_reports(self, session_slug: str) -> list[ReportRecord]:
        return []
