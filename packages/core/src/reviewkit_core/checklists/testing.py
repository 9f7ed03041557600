"""Test-suite review: focus/skip markers, assertion quality, flakiness and coverage of changes."""

from __future__ import annotations

import re

from reviewkit_core.checklists.base import (
    AggregateRule,
    ArtifactSelector,
    Checklist,
    Hit,
    JudgmentRule,
    PatternRule,
    PredicateRule,
    clip,
)
from reviewkit_core.checklists.reliability import TEST_PATTERNS
from reviewkit_core.models import Confidence, Severity

SOURCE_PATTERNS = ("*.py", "*.js", "*.mjs", "*.ts", "*.jsx", "*.tsx", "*.go", "*.rb", "*.java", "*.kt", "*.rs")

SELECTORS = (
    ArtifactSelector("test", TEST_PATTERNS, exclude=("*.md", "*.snap", "fixtures/", "__snapshots__/")),
    ArtifactSelector(
        "source",
        SOURCE_PATTERNS,
        exclude=TEST_PATTERNS + ("setup.py", "*.config.js", "*.config.ts", "*.d.ts", "migrations/", "docs/"),
    ),
)

_PY_TEST = re.compile(r"^(\s*)(?:async\s+)?def\s+(test_\w+)\s*\(")
_JS_TEST = re.compile(r"^\s*(?:it|test)\s*\(\s*['\"`]")
_ASSERTION = re.compile(
    r"\bassert\w*\b|\braises\b|\bexpect\s*\(|\.should\b|\bverify\w*\(|\bfail\(|\bsnapshot|assert_\w+\("
    r"|\.assert\w+\(|\bt\.(?:Error|Fatal|Fail)"
)


def _python_tests(lines) -> list[tuple[int, str, list[str]]]:
    """(line, header, body lines) for every test function in a run of added lines."""
    tests = []
    for index, (line_no, text) in enumerate(lines):
        match = _PY_TEST.match(text)
        if not match:
            continue
        indent = len(match.group(1))
        body, prev = [], line_no
        for next_no, next_text in lines[index + 1 :]:
            if next_no != prev + 1:
                break
            if next_text.strip() and len(next_text) - len(next_text.lstrip()) <= indent:
                break
            body.append(next_text)
            prev = next_no
        if body:
            tests.append((line_no, text, body))
    return tests


def _js_tests(lines) -> list[tuple[int, str, list[str]]]:
    tests = []
    for index, (line_no, text) in enumerate(lines):
        if not _JS_TEST.match(text):
            continue
        depth = text.count("{") - text.count("}")
        body, prev = [], line_no
        for next_no, next_text in lines[index + 1 :]:
            if depth <= 0 or next_no != prev + 1:
                break
            body.append(next_text)
            depth += next_text.count("{") - next_text.count("}")
            prev = next_no
        if depth <= 0:
            tests.append((line_no, text, body))
    return tests


def _tests_without_assertions(artifact, hints) -> list[Hit]:
    lines = list(artifact.lines)
    found = _python_tests(lines) if artifact.file.endswith(".py") else _js_tests(lines)
    hits = []
    for line_no, header, body in found:
        if not _ASSERTION.search("\n".join([header, *body])):
            hits.append(Hit(artifact.file, line_no, clip(header)))
    return hits


def _coverage_target(hints) -> bool:
    return hints.coverage_target is not None


def _source_without_tests(artifacts, hints) -> list[Hit]:
    changed_sources = [a for a in artifacts if a.kind == "source" and a.status in ("added", "modified") and a.lines]
    if not changed_sources:
        return []
    if any(a.kind == "test" and a.status != "unchanged" for a in artifacts):
        return []
    first = changed_sources[0]
    names = ", ".join(a.file for a in changed_sources[:3])
    more = f" (+{len(changed_sources) - 3} more)" if len(changed_sources) > 3 else ""
    return [Hit(first.file, first.line, f"changed without test changes: {names}{more}")]


FOCUSED_TEST = PatternRule(
    id="TST-001",
    title="Focused test committed",
    category="Suite integrity",
    severity=Severity.HIGH,
    kinds=("test",),
    pattern=re.compile(r"\b(?:it|describe|test|context)\.only\s*\(|^\s*f(?:it|describe)\s*\("),
    remediation="Remove `.only` / `fit` / `fdescribe`; they silently disable the rest of the suite.",
)

SKIPPED_TEST = PatternRule(
    id="TST-002",
    title="Test skipped",
    category="Suite integrity",
    severity=Severity.MED,
    kinds=("test",),
    pattern=re.compile(
        r"@pytest\.mark\.skip\b|@unittest\.skip\b|\bpytest\.skip\(|\b(?:it|describe|test)\.skip\s*\("
        r"|^\s*x(?:it|describe)\s*\(|\bt\.Skip\(|@Disabled\b|@Ignore\b"
    ),
    remediation="Fix the test, or link the tracking issue in the skip reason.",
)

TEST_WITHOUT_ASSERTION = PredicateRule(
    id="TST-003",
    title="Test without assertions",
    category="Assertions",
    severity=Severity.MED,
    confidence=Confidence.MED,
    kinds=("test",),
    predicate=_tests_without_assertions,
    remediation="Assert on the behaviour under test; a test that cannot fail proves nothing.",
)

SLEEP_IN_TEST = PatternRule(
    id="TST-004",
    title="Fixed sleep in test",
    category="Flakiness",
    severity=Severity.MED,
    kinds=("test",),
    pattern=re.compile(r"\btime\.sleep\(|\bsetTimeout\(|\bThread\.sleep\(|\bawait\s+sleep\(|\btime\.Sleep\("),
    remediation="Wait on the condition (polling with a deadline, fake timers) instead of a fixed delay.",
)

TAUTOLOGICAL_ASSERTION = PatternRule(
    id="TST-005",
    title="Assertion that cannot fail",
    category="Assertions",
    severity=Severity.LOW,
    kinds=("test",),
    pattern=re.compile(
        r"\bassert\s+(?:True|1|not\s+False)\s*(?:#.*)?$|expect\(\s*true\s*\)\.toBe\(\s*true\s*\)"
        r"|assertTrue\(\s*True\s*\)|assertEqual\(\s*(\w+)\s*,\s*\1\s*\)"
    ),
    remediation="Assert on a value produced by the code under test.",
)

SOURCE_WITHOUT_TESTS = AggregateRule(
    id="TST-006",
    title="Source changed without accompanying tests",
    category="Coverage",
    severity=Severity.MED,
    confidence=Confidence.MED,
    escalate_when=_coverage_target,
    escalated=Severity.HIGH,
    predicate=_source_without_tests,
    remediation="Add or update tests that exercise the changed code.",
)

PRINT_IN_TEST = PatternRule(
    id="TST-007",
    title="Debug output left in test",
    category="Hygiene",
    severity=Severity.NIT,
    kinds=("test",),
    pattern=re.compile(r"^\s*print\(|\bconsole\.log\("),
    remediation="Remove debug output; use assertion messages instead.",
)

NETWORK_IN_TEST = PatternRule(
    id="TST-008",
    title="Real network access in test",
    category="Flakiness",
    severity=Severity.LOW,
    confidence=Confidence.MED,
    kinds=("test",),
    pattern=re.compile(r"\brequests\.(?:get|post|put|delete)\(\s*['\"]https?://|\bfetch\(\s*['\"]https?://"),
    unless=re.compile(r"localhost|127\.0\.0\.1"),
    remediation="Stub the HTTP layer (responses, respx, msw) so tests do not depend on the network.",
)

BEHAVIOUR_COVERED = JudgmentRule(
    id="TST-J01",
    title="Changed behaviour not exercised by tests",
    category="Coverage",
    severity=Severity.MED,
    kinds=("test", "source"),
    question=(
        "Do the tests exercise the behaviour that changed, including error paths and edge cases, "
        "rather than only the happy path?"
    ),
)

CHECKLIST = Checklist(
    domain="testing",
    title="Testing",
    selectors=SELECTORS,
    rules=(
        FOCUSED_TEST,
        SKIPPED_TEST,
        TEST_WITHOUT_ASSERTION,
        SLEEP_IN_TEST,
        TAUTOLOGICAL_ASSERTION,
        SOURCE_WITHOUT_TESTS,
        PRINT_IN_TEST,
        NETWORK_IN_TEST,
        BEHAVIOUR_COVERED,
    ),
    categories=("Suite integrity", "Assertions", "Flakiness", "Coverage", "Hygiene"),
)
