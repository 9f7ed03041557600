"""Free-text review context → severity parameters.

Context is whatever the user typed after the scope ("PostgreSQL 14, zero
downtime", "strict backward compatibility"). There is no grammar: a table of
known phrases sets parameters, everything else is kept verbatim in
``unrecognized`` and otherwise ignored. parse_context() never raises.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field


@dataclass
class ContextHints:
    raw: str = ""
    strict_compat: bool = False
    versioning: str | None = None  # "url" | "header" | "semver"
    db_engine: str | None = None  # "postgresql" | "mysql" | "sqlite"
    db_version: str | None = None
    zero_downtime: bool = False
    slo: float | None = None  # availability target in percent, e.g. 99.9
    framework: str | None = None
    bundle_budget_kb: int | None = None
    release_type: str | None = None  # "major" | "minor" | "patch"
    coverage_target: int | None = None
    matched: list[str] = field(default_factory=list)
    unrecognized: str = ""

    @property
    def is_postgres(self) -> bool:
        return self.db_engine == "postgresql"

    def describe(self) -> list[str]:
        """Human-readable list of the parameters in effect, for the report."""
        notes = []
        if self.strict_compat:
            notes.append("strict backward compatibility")
        if self.versioning:
            notes.append(f"versioning: {self.versioning}")
        if self.db_engine:
            notes.append(f"database: {self.db_engine}" + (f" {self.db_version}" if self.db_version else ""))
        if self.zero_downtime:
            notes.append("zero-downtime deploys")
        if self.slo is not None:
            notes.append(f"availability SLO: {self.slo:g}%")
        if self.framework:
            notes.append(f"framework: {self.framework}")
        if self.bundle_budget_kb is not None:
            notes.append(f"bundle budget: {self.bundle_budget_kb} KB")
        if self.release_type:
            notes.append(f"release type: {self.release_type}")
        if self.coverage_target is not None:
            notes.append(f"coverage target: {self.coverage_target}%")
        return notes


def _set(name, value):
    def apply(hints: ContextHints, match: re.Match) -> None:
        setattr(hints, name, value(match) if callable(value) else value)

    return apply


def _db(engine):
    def apply(hints: ContextHints, match: re.Match) -> None:
        hints.db_engine = engine
        if match.lastindex and match.group(match.lastindex):
            hints.db_version = match.group(match.lastindex)

    return apply


# (pattern, setter). Order matters only for overlapping phrases: later wins.
_HINTS: list[tuple[re.Pattern, object]] = [
    (re.compile(r"strict(?:ly)?\s+backward[s]?[\s-]+compat\w*", re.I), _set("strict_compat", True)),
    (re.compile(r"no\s+breaking\s+changes", re.I), _set("strict_compat", True)),
    (re.compile(r"\burl[\s-]+(?:based\s+)?versioning\b|/v\d+/", re.I), _set("versioning", "url")),
    (re.compile(r"\bheader[\s-]+(?:based\s+)?versioning\b", re.I), _set("versioning", "header")),
    (re.compile(r"\bsemver\b|semantic\s+versioning", re.I), _set("versioning", "semver")),
    (re.compile(r"\b(?:postgres(?:ql)?|pg)\b(?:\s*v?(\d+(?:\.\d+)?))?", re.I), _db("postgresql")),
    (re.compile(r"\bmysql\b(?:\s*v?(\d+(?:\.\d+)?))?", re.I), _db("mysql")),
    (re.compile(r"\bmariadb\b(?:\s*v?(\d+(?:\.\d+)?))?", re.I), _db("mysql")),
    (re.compile(r"\bsqlite\b(?:\s*v?(\d+(?:\.\d+)?))?", re.I), _db("sqlite")),
    (re.compile(r"zero[\s-]+downtime|online\s+migration", re.I), _set("zero_downtime", True)),
    (re.compile(r"(\d{2}(?:\.\d+)?)\s*%\s*(?:availability|uptime|slo)?", re.I), _set("slo", lambda m: float(m.group(1)))),
    (re.compile(r"\b(react|vue|svelte|angular|next\.?js|nuxt)\b", re.I), _set("framework", lambda m: m.group(1).lower())),
    (
        re.compile(r"(\d+)\s*kb\b(?:\s*(?:bundle|budget|gzip))?", re.I),
        _set("bundle_budget_kb", lambda m: int(m.group(1))),
    ),
    (re.compile(r"\b(major|minor|patch)\s+release\b", re.I), _set("release_type", lambda m: m.group(1).lower())),
    (
        re.compile(r"coverage\s*(?:target|threshold|of|>=|≥)?\s*(\d{1,3})\s*%", re.I),
        _set("coverage_target", lambda m: int(m.group(1))),
    ),
]


def parse_context(text: str | None) -> ContextHints:
    """Extract known hints from free text. Unknown text is preserved, never rejected."""
    raw = text or ""
    hints = ContextHints(raw=raw)
    leftover = raw

    for pattern, apply in _HINTS:
        for match in pattern.finditer(raw):
            try:
                apply(hints, match)
            except (ValueError, IndexError):
                continue
            hints.matched.append(match.group(0).strip())
            leftover = leftover.replace(match.group(0), " ")

    # A coverage figure is not an availability SLO.
    if hints.coverage_target is not None and hints.slo == float(hints.coverage_target):
        hints.slo = None

    hints.unrecognized = re.sub(r"[\s,;]+", " ", leftover).strip()
    return hints


def merge_context(*parts: str | None) -> str:
    return ", ".join(p.strip() for p in parts if p and p.strip())
