"""Reliability review: timeouts, error handling and retry behaviour."""

from __future__ import annotations

import re

from reviewkit_core.checklists.base import (
    ArtifactSelector,
    Checklist,
    Hit,
    JudgmentRule,
    PatternRule,
    PredicateRule,
    clip,
)
from reviewkit_core.models import Confidence, Severity

TEST_PATTERNS = (
    "test_*.py",
    "*_test.py",
    "*_test.go",
    "conftest.py",
    "*.test.*",
    "*.spec.*",
    "tests/",
    "test/",
    "__tests__/",
    "spec/",
)

SELECTORS = (
    ArtifactSelector(
        "code",
        ("*.py", "*.js", "*.mjs", "*.ts", "*.jsx", "*.tsx", "*.go", "*.rb", "*.java", "*.kt"),
        exclude=TEST_PATTERNS,
    ),
)


def _strict_slo(hints) -> bool:
    return hints.slo is not None and hints.slo >= 99.9


_EXCEPT = re.compile(r"^(\s*)except\b[^:]*:\s*(?:#.*)?$")
_SWALLOW = re.compile(r"^\s*(?:pass|\.\.\.|continue)\s*(?:#.*)?$")


def _swallowed_exceptions(artifact, hints) -> list[Hit]:
    hits = []
    lines = list(artifact.lines)
    for (line_no, text), (next_no, next_text) in zip(lines, lines[1:]):
        if next_no == line_no + 1 and _EXCEPT.match(text) and _SWALLOW.match(next_text):
            hits.append(Hit(artifact.file, line_no, clip(f"{text.strip()} {next_text.strip()}")))
    return hits


_LOOP = re.compile(r"^(\s*)(?:while\s+True\s*:|for\s+\w+\s+in\s+range\(.*\)\s*:)")
_RETRY_WORDS = re.compile(r"retr(?:y|ies)|attempt", re.I)
_HANDLER = re.compile(r"\bexcept\b|\bcatch\b")
_BACKOFF = re.compile(r"sleep|backoff|wait|jitter", re.I)


def _retry_without_backoff(artifact, hints) -> list[Hit]:
    hits = []
    lines = list(artifact.lines)
    for index, (line_no, text) in enumerate(lines):
        loop = _LOOP.match(text)
        if not loop:
            continue
        indent = len(loop.group(1))
        body = []
        prev = line_no
        for next_no, next_text in lines[index + 1 : index + 40]:
            if next_no != prev + 1:
                break
            if next_text.strip() and len(next_text) - len(next_text.lstrip()) <= indent:
                break
            body.append(next_text)
            prev = next_no
        block = "\n".join([text, *body])
        if _HANDLER.search(block) and _RETRY_WORDS.search(block) and not _BACKOFF.search(block):
            hits.append(Hit(artifact.file, line_no, clip(text)))
    return hits


HTTP_WITHOUT_TIMEOUT = PatternRule(
    id="RLB-001",
    title="Outbound HTTP call without a timeout",
    category="Timeouts",
    severity=Severity.HIGH,
    confidence=Confidence.MED,
    kinds=("code",),
    pattern=re.compile(
        r"\brequests\.(?:get|post|put|patch|delete|head|request)\(|\bhttpx\.(?:get|post|put|patch|delete|request)\("
        r"|\burlopen\(|\bhttp\.(?:Get|Post)\("
    ),
    unless=re.compile(r"\btimeout\s*="),
    remediation="Pass an explicit timeout; the default is to wait forever.",
)

BARE_EXCEPT = PatternRule(
    id="RLB-002",
    title="Bare except clause",
    category="Error handling",
    severity=Severity.HIGH,
    kinds=("code",),
    pattern=re.compile(r"^\s*except\s*:"),
    remediation="Catch the specific exceptions you expect; a bare except also traps KeyboardInterrupt and SystemExit.",
)

SWALLOWED_EXCEPTION = PredicateRule(
    id="RLB-003",
    title="Exception swallowed silently",
    category="Error handling",
    severity=Severity.MED,
    kinds=("code",),
    predicate=_swallowed_exceptions,
    remediation="Log the exception (with traceback) or re-raise; silent failures are invisible in production.",
)

EMPTY_CATCH = PatternRule(
    id="RLB-004",
    title="Empty catch block",
    category="Error handling",
    severity=Severity.MED,
    kinds=("code",),
    pattern=re.compile(r"\bcatch\s*(?:\([^)]*\))?\s*\{\s*\}|\.catch\(\s*\(\s*\w*\s*\)\s*=>\s*\{\s*\}\s*\)"),
    remediation="Handle or log the error; an empty catch hides failures.",
)

SUBPROCESS_WITHOUT_TIMEOUT = PatternRule(
    id="RLB-005",
    title="Subprocess call without a timeout",
    category="Timeouts",
    severity=Severity.MED,
    confidence=Confidence.MED,
    kinds=("code",),
    pattern=re.compile(r"\bsubprocess\.(?:run|call|check_call|check_output)\("),
    unless=re.compile(r"\btimeout\s*="),
    remediation="Bound the child process with `timeout=`; a hung child blocks the caller forever.",
)

TLS_VERIFICATION_DISABLED = PatternRule(
    id="RLB-006",
    title="TLS certificate verification disabled",
    category="Security",
    severity=Severity.HIGH,
    escalate_when=_strict_slo,
    escalated=Severity.BLOCKER,
    kinds=("code",),
    pattern=re.compile(
        r"\bverify\s*=\s*False\b|rejectUnauthorized\s*:\s*false|InsecureSkipVerify\s*:\s*true"
        r"|NODE_TLS_REJECT_UNAUTHORIZED|ssl\._create_unverified_context|CERT_NONE"
    ),
    remediation="Keep verification on; point the client at the right CA bundle instead.",
)

LOCALHOST_ENDPOINT = PatternRule(
    id="RLB-007",
    title="Hard-coded localhost endpoint",
    category="Configuration",
    severity=Severity.MED,
    confidence=Confidence.MED,
    kinds=("code",),
    pattern=re.compile(r"https?://(?:localhost|127\.0\.0\.1|0\.0\.0\.0)(?::\d+)?"),
    remediation="Read the endpoint from configuration or the environment.",
)

PRINT_LOGGING = PatternRule(
    id="RLB-008",
    title="print() used instead of logging",
    category="Observability",
    severity=Severity.LOW,
    kinds=("code",),
    pattern=re.compile(r"^\s*print\("),
    remediation="Use the module logger so output carries level, timestamp and routing.",
)

RETRY_WITHOUT_BACKOFF = PredicateRule(
    id="RLB-009",
    title="Retry loop without backoff",
    category="Retries",
    severity=Severity.MED,
    confidence=Confidence.LOW,
    escalate_when=_strict_slo,
    escalated=Severity.HIGH,
    kinds=("code",),
    predicate=_retry_without_backoff,
    remediation="Sleep with exponential backoff and jitter between attempts, and cap the attempt count.",
)

FAILURE_MODES = JudgmentRule(
    id="RLB-J01",
    title="New failure mode under load or partial failure",
    category="Error handling",
    severity=Severity.HIGH,
    kinds=("code",),
    question=(
        "Does this change introduce a failure mode (partial writes, unbounded queues or caches, "
        "non-idempotent retried operations, missing circuit breaking) that would threaten the "
        "service's availability target?"
    ),
)

CHECKLIST = Checklist(
    domain="reliability",
    title="Reliability",
    selectors=SELECTORS,
    rules=(
        HTTP_WITHOUT_TIMEOUT,
        BARE_EXCEPT,
        SWALLOWED_EXCEPTION,
        EMPTY_CATCH,
        SUBPROCESS_WITHOUT_TIMEOUT,
        TLS_VERIFICATION_DISABLED,
        LOCALHOST_ENDPOINT,
        PRINT_LOGGING,
        RETRY_WITHOUT_BACKOFF,
        FAILURE_MODES,
    ),
    categories=("Timeouts", "Error handling", "Retries", "Security", "Configuration", "Observability"),
)
