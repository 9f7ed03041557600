"""Abstract store interface.

The CLI depends on BaseStore, not on a concrete backend, so ``--dry-run``
can swap in NoOpStore without touching command code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reviewkit_core.models import ReviewReport

    from reviewkit_store.models import ReportRecord


class BaseStore(ABC):
    """Where finished reports go."""

    @abstractmethod
    def save(self, report: ReviewReport, markdown: str) -> Path | None:
        """Persist a rendered report and link it from its session index.

        Returns the report path, or None when the store keeps nothing.
        """

    @abstractmethod
    def list_reports(self, session_slug: str) -> list[ReportRecord]:
        """Return the reports filed under a session, oldest first.

        Returns an empty list if none exist; never raises.
        """

    def close(self) -> None:
        """Release any resources held by the store. Default is a no-op."""
