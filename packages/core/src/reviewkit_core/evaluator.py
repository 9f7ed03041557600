"""Checklist evaluation: apply a domain's rule table to its artifacts."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Iterable

from reviewkit_core.checklists.base import AggregateRule, Checklist, Hit, JudgmentRule, Rule
from reviewkit_core.models import Artifact, Finding, Location, Severity

if TYPE_CHECKING:
    from reviewkit_core.context import ContextHints
    from reviewkit_core.providers.base import BaseJudge

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Evaluation:
    findings: tuple[Finding, ...]
    unevaluated: tuple[str, ...] = ()


def sort_findings(findings: Iterable[Finding], checklist: Checklist) -> list[Finding]:
    """Severity desc, confidence desc, rule-table order, file, line."""
    return sorted(
        findings,
        key=lambda f: (
            -f.severity.rank,
            -f.confidence.rank,
            checklist.rule_index(f.rule_id),
            f.location.file,
            f.location.line,
        ),
    )


def _hits_for(rule: Rule, artifacts: list[Artifact], hints: ContextHints) -> list[Hit]:
    if isinstance(rule, AggregateRule):
        return rule.check_all([a for a in artifacts if rule.applies_to(a)], hints)
    hits: list[Hit] = []
    for artifact in artifacts:
        if rule.applies_to(artifact):
            hits.extend(rule.check(artifact, hints))
    return hits


def _judge_hits(
    rule: JudgmentRule, artifacts: list[Artifact], hints: ContextHints, judge: BaseJudge
) -> tuple[list[Hit], int]:
    """Hits from the judge, plus the number of artifacts it could not answer for."""
    hits: list[Hit] = []
    failed = 0
    for artifact in artifacts:
        if not rule.applies_to(artifact):
            continue
        verdict = judge.evaluate(rule, artifact, hints)
        if verdict is None:
            failed += 1
        else:
            hits.extend(verdict)
    return hits, failed


def evaluate(
    checklist: Checklist,
    artifacts: list[Artifact],
    hints: ContextHints,
    judge: BaseJudge | None = None,
    disabled: Iterable[str] = (),
    severity_overrides: dict[str, Severity] | None = None,
) -> Evaluation:
    """Run every enabled rule over every applicable artifact exactly once.

    A rule's hits never influence another rule. The same (rule, file, line,
    evidence) is reported once even when a file is extracted under several
    kinds. Finding ids are ``<rule id>-<n>`` numbered in final sort order.
    """
    disabled = set(disabled)
    severity_overrides = severity_overrides or {}
    raw: list[Finding] = []
    unevaluated: list[str] = []
    seen: set[tuple[str, str, int, str]] = set()

    for rule in checklist.rules:
        if rule.id in disabled:
            unevaluated.append(f"{rule.id} {rule.title}: disabled in configuration")
            continue
        if not rule.enabled(hints):
            logger.debug("Rule %s does not apply under the given context", rule.id)
            continue

        if isinstance(rule, JudgmentRule):
            if judge is None:
                unevaluated.append(f"{rule.id} {rule.title}: needs a judge (--judge anthropic|openai)")
                continue
            hits, failed = _judge_hits(rule, artifacts, hints, judge)
            if failed:
                unevaluated.append(f"{rule.id} {rule.title}: judge gave no usable answer for {failed} file(s)")
        else:
            hits = _hits_for(rule, artifacts, hints)

        severity = severity_overrides.get(rule.id) or rule.severity_for(hints)
        for hit in hits:
            key = (rule.id, hit.file, hit.line, hit.evidence)
            if key in seen:
                continue
            seen.add(key)
            raw.append(
                Finding(
                    id="",
                    rule_id=rule.id,
                    title=rule.title,
                    severity=severity,
                    confidence=rule.confidence,
                    location=Location(hit.file, hit.line),
                    evidence=hit.evidence,
                    remediation=rule.remediation,
                    category=rule.category,
                )
            )
        if hits:
            logger.debug("Rule %s matched %d time(s)", rule.id, len(hits))

    numbered = []
    counters: dict[str, int] = {}
    for finding in sort_findings(raw, checklist):
        counters[finding.rule_id] = counters.get(finding.rule_id, 0) + 1
        numbered.append(replace(finding, id=f"{finding.rule_id}-{counters[finding.rule_id]}"))

    logger.info("%s: %d finding(s) from %d artifact(s)", checklist.domain, len(numbered), len(artifacts))
    return Evaluation(findings=tuple(numbered), unevaluated=tuple(unevaluated))
