"""Value records shared by every stage of the review pipeline.

All records are frozen dataclasses: a stage receives the full output of the
previous one and never mutates it. The store layer keeps its own record type
(ReportRecord) so reviewkit_core carries no persistence concerns.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from reviewkit_core.errors import InvalidTargetFormat, MissingTarget


class Severity(str, Enum):
    BLOCKER = "BLOCKER"
    HIGH = "HIGH"
    MED = "MED"
    LOW = "LOW"
    NIT = "NIT"

    @property
    def rank(self) -> int:
        """Higher is more severe."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.BLOCKER: 4,
    Severity.HIGH: 3,
    Severity.MED: 2,
    Severity.LOW: 1,
    Severity.NIT: 0,
}


class Confidence(str, Enum):
    HIGH = "High"
    MED = "Med"
    LOW = "Low"

    @property
    def rank(self) -> int:
        return {"High": 2, "Med": 1, "Low": 0}[self.value]


class Recommendation(str, Enum):
    BLOCK = "BLOCK"
    REQUEST_CHANGES = "REQUEST_CHANGES"
    APPROVE_WITH_COMMENTS = "APPROVE_WITH_COMMENTS"
    APPROVE = "APPROVE"


class Scope(str, Enum):
    PR = "pr"
    WORKTREE = "worktree"
    DIFF = "diff"
    REPO = "repo"
    FILE = "file"


class SessionStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class Session:
    slug: str
    created_at: date
    status: SessionStatus = SessionStatus.OPEN


@dataclass(frozen=True)
class ReviewRequest:
    """What to review. Build through build_request() so bad input never gets this far."""

    scope: Scope
    target: str | None = None
    paths: tuple[str, ...] = ()
    context: str | None = None

    def target_paths(self) -> list[str]:
        """Split a file-scope target into individual paths (comma or whitespace separated)."""
        if not self.target:
            return []
        return [p for p in re.split(r"[,\s]+", self.target) if p]

    def diff_refs(self) -> tuple[str, str]:
        """Return (base, head) for a ``ref1..ref2`` target; ``...`` is kept as a merge-base range."""
        if not self.target:
            raise MissingTarget("Scope 'diff' requires a TARGET of the form ref1..ref2.")
        sep = "..." if "..." in self.target else ".."
        base, head = self.target.split(sep, 1)
        return base, head


_PR_TARGET_RE = re.compile(r"^#?(\d+)$")


def build_request(
    scope: str | Scope,
    target: str | None = None,
    paths: list[str] | tuple[str, ...] | None = None,
    context: str | None = None,
) -> ReviewRequest:
    """Validate command-line style arguments into a ReviewRequest.

    Raises MissingTarget / InvalidTargetFormat for combinations that cannot be
    resolved. ``repo`` and ``worktree`` scopes drop any target they are given.
    """
    try:
        scope = Scope(scope)
    except ValueError:
        valid = ", ".join(s.value for s in Scope)
        raise InvalidTargetFormat(f"Unknown scope {scope!r}. Expected one of: {valid}.") from None

    target = target.strip() if target else None
    paths = tuple(p for p in (paths or ()) if p)

    if scope is Scope.PR:
        if not target:
            raise MissingTarget("Scope 'pr' requires a pull request number as TARGET.")
        match = _PR_TARGET_RE.match(target)
        if not match:
            raise InvalidTargetFormat(f"Scope 'pr' expects a pull request number, got {target!r}.")
        target = match.group(1)
    elif scope is Scope.DIFF:
        if not target:
            raise MissingTarget("Scope 'diff' requires a TARGET of the form ref1..ref2.")
        if ".." not in target:
            raise InvalidTargetFormat(f"Scope 'diff' expects ref1..ref2, got {target!r} (no '..' separator).")
        sep = "..." if "..." in target else ".."
        base, head = target.split(sep, 1)
        if not base or not head:
            raise InvalidTargetFormat(f"Scope 'diff' expects ref1..ref2, got {target!r} (empty ref).")
    elif scope is Scope.FILE:
        if not target:
            raise MissingTarget("Scope 'file' requires one or more file paths as TARGET.")
    else:
        target = None

    return ReviewRequest(scope=scope, target=target, paths=paths, context=context or None)


@dataclass(frozen=True)
class Location:
    file: str
    line: int = 0

    def __str__(self) -> str:
        return f"{self.file}:{self.line}" if self.line else self.file


@dataclass(frozen=True)
class Finding:
    id: str
    rule_id: str
    title: str
    severity: Severity
    confidence: Confidence
    location: Location
    evidence: str
    remediation: str | None = None
    category: str = "general"


@dataclass(frozen=True)
class FileChange:
    """One file's slice of a unified diff."""

    path: str
    status: str  # "added" | "modified" | "deleted" | "renamed"
    patch: str
    old_path: str | None = None


@dataclass(frozen=True)
class ResolvedScope:
    files: tuple[tuple[str, str], ...] = ()
    diff: str | None = None
    changes: tuple[FileChange, ...] = ()

    @property
    def paths(self) -> list[str]:
        return [path for path, _ in self.files]

    def change_for(self, path: str) -> FileChange | None:
        for change in self.changes:
            if change.path == path:
                return change
        return None

    @property
    def is_empty(self) -> bool:
        return not self.files and not self.changes


@dataclass(frozen=True)
class Artifact:
    """A slice of reviewed content relevant to one domain.

    ``lines`` holds (new-file line number, text) pairs: the added lines for a
    file changed in the diff, every line otherwise.
    """

    file: str
    kind: str
    snippet: str
    line: int = 1
    lines: tuple[tuple[int, str], ...] = ()
    removed: tuple[str, ...] = ()
    status: str = "unchanged"
    content: str = ""


SEVERITY_ORDER: tuple[Severity, ...] = tuple(Severity)


@dataclass(frozen=True)
class ReviewReport:
    session: Session
    request: ReviewRequest
    domain: str
    findings: tuple[Finding, ...]
    summary_counts: dict[Severity, int]
    recommendation: Recommendation
    completed: date
    files_reviewed: int = 0
    unevaluated: tuple[str, ...] = ()
    context_notes: tuple[str, ...] = field(default_factory=tuple)

    @property
    def command(self) -> str:
        return f"/review:{self.domain}"
