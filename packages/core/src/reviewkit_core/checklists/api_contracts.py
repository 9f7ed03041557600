"""API contract review: schema, route and wire-format compatibility."""

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
from reviewkit_core.checklists.versions import MANIFEST_PATTERNS, bumped_versions
from reviewkit_core.models import Confidence, Severity

CODE_PATTERNS = ("*.py", "*.js", "*.mjs", "*.ts", "*.go", "*.rb", "*.java", "*.kt")

_ROUTE_CALL = (
    r"@(?:app|router|bp|api|blueprint|\w+_router)\.(?:get|post|put|patch|delete|route|api_route)\("
    r"|\b(?:app|router|server)\.(?:get|post|put|patch|delete)\(\s*['\"]"
    r"|@(?:Get|Post|Put|Patch|Delete|Request)Mapping\b"
    r"|\bHandleFunc\(|\bpath\(\s*['\"]"
)

SELECTORS = (
    ArtifactSelector(
        "openapi",
        ("*.yaml", "*.yml", "*.json"),
        content=re.compile(r"""^\s*["']?(?:openapi|swagger)["']?\s*:""", re.M),
        exclude=("package.json", "package-lock.json", "tsconfig*.json"),
    ),
    ArtifactSelector("graphql", ("*.graphql", "*.gql", "*.graphqls")),
    ArtifactSelector("protobuf", ("*.proto",)),
    ArtifactSelector("route", CODE_PATTERNS, content=re.compile(_ROUTE_CALL)),
    ArtifactSelector("manifest", MANIFEST_PATTERNS),
)

_SCHEMA_KEYWORDS = (
    r"type|format|description|example|examples|items|\$ref|required|nullable|enum|default|properties|"
    r"schema|schemas|content|title|minimum|maximum|pattern|oneOf|anyOf|allOf|not|additionalProperties|"
    r"deprecated|readOnly|writeOnly|minLength|maxLength|minItems|maxItems|summary|operationId|tags|"
    r"parameters|responses|requestBody|in|name|style|explode|discriminator|components|info|version|"
    r"servers|url|paths|get|post|put|patch|delete|head|options|security|headers|links|callbacks|"
    r"application/json|text/plain|\d{3}"
)

_SCHEMA_FIELD = re.compile(r"""^\s{2,}["']?([A-Za-z_][\w-]*)["']?\s*:""")
_SCHEMA_KEYWORD = re.compile(rf"""^\s*["']?(?:{_SCHEMA_KEYWORDS})["']?\s*:""")
_OPENAPI_PATH = re.compile(r"""^\s*["']?(/[\w/{}.\-]*)["']?\s*:\s*$""")
_ROUTE_PATH = re.compile(
    r"""(?:\.(?:get|post|put|patch|delete|route|api_route)|Mapping|HandleFunc|\bpath)\(\s*(?:value\s*=\s*)?['"]([^'"]+)['"]"""
)
_GRAPHQL_FIELD = re.compile(r"^\s+(\w+)\s*(?:\([^)]*\))?\s*:\s*\[?\w+")
_PROTO_FIELD = re.compile(r"^\s*(?:optional\s+|repeated\s+|required\s+)?[\w.<>, ]+?\s+(\w+)\s*=\s*(\d+)\s*[;\[]")
_PROTO_RESERVED = re.compile(r"^\s*reserved\s+([^;]+);")


def _strict(hints) -> bool:
    return hints.strict_compat


def _proto_fields(lines) -> dict[str, str]:
    """field number → field name"""
    fields = {}
    for text in lines:
        match = _PROTO_FIELD.match(text)
        if match and not text.lstrip().startswith(("reserved", "option", "//")):
            fields[match.group(2)] = match.group(1)
    return fields


def _reserved_numbers(lines) -> set[str]:
    numbers: set[str] = set()
    for text in lines:
        match = _PROTO_RESERVED.match(text)
        if not match:
            continue
        for part in match.group(1).split(","):
            part = part.strip()
            if " to " in part:
                low, _, high = part.partition(" to ")
                if low.strip().isdigit() and high.strip().isdigit():
                    numbers.update(str(n) for n in range(int(low), int(high) + 1))
            elif part.isdigit():
                numbers.add(part)
    return numbers


def _proto_number_reused(artifact, hints) -> list[Hit]:
    removed = _proto_fields(artifact.removed)
    hits = []
    for line_no, text in artifact.lines:
        match = _PROTO_FIELD.match(text)
        if not match:
            continue
        name, number = match.group(1), match.group(2)
        old_name = removed.get(number)
        if old_name is not None and old_name != name:
            hits.append(Hit(artifact.file, line_no, clip(f"{text.strip()}  (was: {old_name} = {number})")))
    return hits


def _proto_removed_unreserved(artifact, hints) -> list[Hit]:
    removed = _proto_fields(artifact.removed)
    if not removed:
        return []
    added_numbers = set(_proto_fields(text for _, text in artifact.lines))
    reserved = _reserved_numbers(text for _, text in artifact.lines) | _reserved_numbers(
        artifact.content.splitlines()
    )
    hits = []
    for number, name in sorted(removed.items(), key=lambda kv: int(kv[0])):
        if number in added_numbers or number in reserved:
            continue
        hits.append(Hit(artifact.file, artifact.line, f"{name} = {number}"))
    return hits


_NON_NULL = re.compile(r"^\s+(\w+)\s*(?:\([^)]*\))?\s*:\s*(\[?\w+\]?!?)")


def _graphql_tightened(artifact, hints) -> list[Hit]:
    before = {}
    for text in artifact.removed:
        match = _NON_NULL.match(text)
        if match:
            before[match.group(1)] = match.group(2)
    hits = []
    for line_no, text in artifact.lines:
        match = _NON_NULL.match(text)
        if not match:
            continue
        old = before.get(match.group(1))
        if old is not None and not old.endswith("!") and match.group(2).endswith("!"):
            hits.append(Hit(artifact.file, line_no, clip(text)))
    return hits


FIELD_REMOVED = PatternRule(
    id="API-001",
    title="Schema field removed",
    category="Breaking changes",
    severity=Severity.HIGH,
    escalate_when=_strict,
    escalated=Severity.BLOCKER,
    kinds=("openapi",),
    on="removed",
    pattern=_SCHEMA_FIELD,
    unless=_SCHEMA_KEYWORD,
    readded=True,
    remediation="Keep the field and mark it `deprecated: true`; remove it only in the next major API version.",
)

ENDPOINT_REMOVED = PatternRule(
    id="API-002",
    title="Endpoint removed from API description",
    category="Breaking changes",
    severity=Severity.HIGH,
    escalate_when=_strict,
    escalated=Severity.BLOCKER,
    kinds=("openapi",),
    on="removed",
    pattern=_OPENAPI_PATH,
    readded=True,
    remediation="Deprecate the operation and announce a sunset date before deleting the path.",
)

ROUTE_REMOVED = PatternRule(
    id="API-003",
    title="Route handler removed",
    category="Breaking changes",
    severity=Severity.HIGH,
    confidence=Confidence.MED,
    escalate_when=_strict,
    escalated=Severity.BLOCKER,
    kinds=("route",),
    on="removed",
    pattern=_ROUTE_PATH,
    readded=True,
    remediation="Keep the route answering (or redirecting) until clients have migrated.",
)

PROTO_NUMBER_REUSED = PredicateRule(
    id="API-004",
    title="Protobuf field number reused",
    category="Wire compatibility",
    severity=Severity.BLOCKER,
    kinds=("protobuf",),
    predicate=_proto_number_reused,
    remediation="Never reuse a field number; give the new field a fresh number and reserve the old one.",
)

PROTO_FIELD_NOT_RESERVED = PredicateRule(
    id="API-005",
    title="Protobuf field removed without reserving its number",
    category="Wire compatibility",
    severity=Severity.HIGH,
    kinds=("protobuf",),
    predicate=_proto_removed_unreserved,
    remediation="Add `reserved <number>;` and `reserved \"<name>\";` for every removed field.",
)

GRAPHQL_FIELD_REMOVED = PatternRule(
    id="API-006",
    title="GraphQL field removed",
    category="Breaking changes",
    severity=Severity.HIGH,
    escalate_when=_strict,
    escalated=Severity.BLOCKER,
    kinds=("graphql",),
    on="removed",
    pattern=_GRAPHQL_FIELD,
    readded=True,
    remediation='Mark the field `@deprecated(reason: "...")` and keep resolving it.',
)

GRAPHQL_NON_NULL = PredicateRule(
    id="API-007",
    title="GraphQL type tightened to non-null",
    category="Breaking changes",
    severity=Severity.MED,
    confidence=Confidence.MED,
    kinds=("graphql",),
    predicate=_graphql_tightened,
    remediation="Non-null arguments break existing queries; add a new optional argument instead.",
)

UNVERSIONED_ROUTE = PatternRule(
    id="API-008",
    title="New route outside the versioned URL space",
    category="Versioning",
    severity=Severity.MED,
    confidence=Confidence.MED,
    kinds=("openapi", "route"),
    when=lambda h: h.versioning == "url",
    pattern=re.compile(rf"{_OPENAPI_PATH.pattern}|{_ROUTE_PATH.pattern}"),
    unless=re.compile(r"/v\d+(?:[/'\"]|\s*:|$)"),
    remediation="Mount the route under the current version prefix (e.g. `/v1/...`).",
)

_BREAKING_RULES = (FIELD_REMOVED, ENDPOINT_REMOVED, ROUTE_REMOVED, GRAPHQL_FIELD_REMOVED)


def _breaking_without_bump(artifacts, hints) -> list[Hit]:
    breaking: list[Hit] = []
    for artifact in artifacts:
        for rule in _BREAKING_RULES:
            if rule.applies_to(artifact):
                breaking.extend(rule.check(artifact, hints))
        if artifact.kind == "protobuf":
            breaking.extend(_proto_number_reused(artifact, hints))
    if not breaking:
        return []

    manifests = [a for a in artifacts if a.kind in ("manifest", "openapi")]
    if bumped_versions(manifests):
        return []
    first = breaking[0]
    return [Hit(first.file, first.line, clip(f"{len(breaking)} breaking change(s), no version change; first: {first.evidence}"))]


BREAKING_WITHOUT_BUMP = AggregateRule(
    id="API-009",
    title="Breaking change shipped without a version bump",
    category="Versioning",
    severity=Severity.HIGH,
    confidence=Confidence.MED,
    escalate_when=_strict,
    escalated=Severity.BLOCKER,
    predicate=_breaking_without_bump,
    remediation="Bump the API (or package) major version alongside the breaking change.",
)

BEHAVIOUR_CHANGE = JudgmentRule(
    id="API-J01",
    title="Observable behaviour change in an existing endpoint",
    category="Breaking changes",
    severity=Severity.HIGH,
    kinds=("route", "openapi"),
    question=(
        "Does this change alter the observable behaviour of an existing endpoint (status codes, defaults, "
        "error shapes, pagination, or semantics) in a way that existing clients would notice?"
    ),
)

CHECKLIST = Checklist(
    domain="api-contracts",
    title="API Contracts",
    selectors=SELECTORS,
    rules=(
        FIELD_REMOVED,
        ENDPOINT_REMOVED,
        ROUTE_REMOVED,
        PROTO_NUMBER_REUSED,
        PROTO_FIELD_NOT_RESERVED,
        GRAPHQL_FIELD_REMOVED,
        GRAPHQL_NON_NULL,
        UNVERSIONED_ROUTE,
        BREAKING_WITHOUT_BUMP,
        BEHAVIOUR_CHANGE,
    ),
    categories=("Breaking changes", "Wire compatibility", "Versioning"),
)
