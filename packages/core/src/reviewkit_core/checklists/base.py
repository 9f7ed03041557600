"""Rule table building blocks.

A domain checklist is an ordered tuple of rules plus the selectors that decide
which files become artifacts. Four rule shapes exist:

    PatternRule  : regex over an artifact's added/removed/full lines
    PredicateRule: arbitrary pure function of one artifact
    AggregateRule: pure function of every applicable artifact at once
    JudgmentRule : a question only an external reasoning engine can answer

Rules never see each other's results; order in the table only breaks ties
when findings are sorted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from reviewkit_core.models import Artifact, Confidence, Severity

if TYPE_CHECKING:
    from reviewkit_core.context import ContextHints

_EVIDENCE_LIMIT = 200


@dataclass(frozen=True)
class ArtifactSelector:
    """Files matching ``patterns`` (and ``content`` when given) become artifacts of ``kind``."""

    kind: str
    patterns: tuple[str, ...]
    content: re.Pattern | None = None
    exclude: tuple[str, ...] = ()


@dataclass(frozen=True)
class Hit:
    file: str
    line: int
    evidence: str


def clip(text: str) -> str:
    text = text.strip()
    return text if len(text) <= _EVIDENCE_LIMIT else text[:_EVIDENCE_LIMIT] + "…"


@dataclass(frozen=True, kw_only=True)
class Rule:
    id: str
    title: str
    category: str
    severity: Severity
    confidence: Confidence = Confidence.HIGH
    kinds: tuple[str, ...] = ()
    remediation: str | None = None
    when: Callable[[ContextHints], bool] | None = None
    escalate_when: Callable[[ContextHints], bool] | None = None
    escalated: Severity | None = None

    def applies_to(self, artifact: Artifact) -> bool:
        return not self.kinds or artifact.kind in self.kinds

    def enabled(self, hints: ContextHints) -> bool:
        return self.when is None or bool(self.when(hints))

    def severity_for(self, hints: ContextHints) -> Severity:
        if self.escalated is not None and self.escalate_when is not None and self.escalate_when(hints):
            return self.escalated
        return self.severity


@dataclass(frozen=True, kw_only=True)
class PatternRule(Rule):
    """Flag lines matching ``pattern``.

    ``on`` picks the lines examined: "added" (new-file lines of the artifact),
    "removed" (deleted lines; reported at the artifact's first line). A line is
    skipped when ``unless`` matches it, and the whole artifact is skipped when
    ``unless_anywhere`` matches its snippet. With ``readded`` set, a removed line
    is ignored when an added line yields the same first capture group (the
    field or route moved rather than disappeared).
    """

    pattern: re.Pattern
    on: str = "added"
    unless: re.Pattern | None = None
    unless_anywhere: re.Pattern | None = None
    readded: bool = False

    def check(self, artifact: Artifact, hints: ContextHints) -> list[Hit]:
        if self.unless_anywhere is not None and self.unless_anywhere.search(artifact.snippet):
            return []

        if self.on == "removed":
            candidates = [(artifact.line, text) for text in artifact.removed]
        else:
            candidates = list(artifact.lines)

        readded_keys: set[str] = set()
        if self.readded:
            for _, text in artifact.lines:
                m = self.pattern.search(text)
                if m and m.groups():
                    readded_keys.add(m.group(1))

        hits = []
        for line_no, text in candidates:
            match = self.pattern.search(text)
            if not match:
                continue
            if self.unless is not None and self.unless.search(text):
                continue
            if self.readded and match.groups() and match.group(1) in readded_keys:
                continue
            hits.append(Hit(file=artifact.file, line=line_no, evidence=clip(text)))
        return hits


@dataclass(frozen=True, kw_only=True)
class PredicateRule(Rule):
    predicate: Callable[[Artifact, ContextHints], list[Hit]]

    def check(self, artifact: Artifact, hints: ContextHints) -> list[Hit]:
        return list(self.predicate(artifact, hints))


@dataclass(frozen=True, kw_only=True)
class AggregateRule(Rule):
    predicate: Callable[[list[Artifact], ContextHints], list[Hit]]

    def check_all(self, artifacts: list[Artifact], hints: ContextHints) -> list[Hit]:
        return list(self.predicate(artifacts, hints))


@dataclass(frozen=True, kw_only=True)
class JudgmentRule(Rule):
    """Needs semantic understanding; evaluated only through an injected judge."""

    question: str
    confidence: Confidence = Confidence.MED


@dataclass(frozen=True)
class Checklist:
    domain: str
    title: str
    selectors: tuple[ArtifactSelector, ...]
    rules: tuple[Rule, ...]
    categories: tuple[str, ...] = field(default_factory=tuple)

    def rule_index(self, rule_id: str) -> int:
        for i, rule in enumerate(self.rules):
            if rule.id == rule_id:
                return i
        return len(self.rules)


def added_text(artifact: Artifact) -> str:
    return "\n".join(text for _, text in artifact.lines)


def first_line(artifact: Artifact, pattern: re.Pattern) -> tuple[int, str] | None:
    for line_no, text in artifact.lines:
        if pattern.search(text):
            return line_no, text
    return None
