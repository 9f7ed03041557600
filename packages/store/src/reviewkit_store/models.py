"""Report records as read back from a session's reviews directory.

Decoupled from reviewkit_core's ReviewReport: a record is what the front
matter of a written report says, which is all history and stats need.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date


@dataclass
class ReportRecord:
    path: str
    command: str
    session_slug: str
    scope: str
    target: str | None
    completed: date | None
    recommendation: str
    summary: dict[str, int] = field(default_factory=dict)
    files_reviewed: int = 0
    rules: dict[str, int] = field(default_factory=dict)

    @property
    def domain(self) -> str:
        return self.command.split(":", 1)[-1] if ":" in self.command else self.command

    @property
    def total_findings(self) -> int:
        return sum(self.summary.values())

    @classmethod
    def from_front_matter(cls, path: str, meta: dict) -> ReportRecord:
        completed = meta.get("completed")
        if isinstance(completed, str):
            try:
                completed = date.fromisoformat(completed)
            except ValueError:
                completed = None
        target = meta.get("target")
        return cls(
            path=path,
            command=str(meta.get("command", "")),
            session_slug=str(meta.get("session_slug", "")),
            scope=str(meta.get("scope", "")),
            target=None if target is None else str(target),
            completed=completed if isinstance(completed, date) else None,
            recommendation=str(meta.get("recommendation", "")),
            summary={str(k): int(v) for k, v in (meta.get("summary") or {}).items()},
            files_reviewed=int(meta.get("files_reviewed") or 0),
            rules={str(k): int(v) for k, v in (meta.get("rules") or {}).items()},
        )
