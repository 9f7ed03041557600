"""Release review: version numbers, changelog and dependency pins."""

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
    first_line,
)
from reviewkit_core.checklists.versions import MANIFEST_PATTERNS, bump_kind, bumped_versions, version_change
from reviewkit_core.models import Confidence, Severity

CHANGELOG_PATTERNS = (
    "CHANGELOG*",
    "Changelog*",
    "changelog*",
    "CHANGES*",
    "HISTORY*",
    "NEWS*",
    "RELEASE_NOTES*",
    "RELEASES*",
)

DEPENDENCY_PATTERNS = (
    "requirements*.txt",
    "requirements/*.txt",
    "package.json",
    "pyproject.toml",
    "setup.cfg",
    "Cargo.toml",
    "go.mod",
    "Gemfile",
    "Pipfile",
)

SELECTORS = (
    ArtifactSelector("changelog", CHANGELOG_PATTERNS),
    ArtifactSelector("manifest", MANIFEST_PATTERNS),
    ArtifactSelector("dependency", DEPENDENCY_PATTERNS),
)

_BREAKING = re.compile(r"BREAKING[\s_-]CHANGE|\bbreaking\b|\bbackwards?[\s-]incompatible\b", re.I)
_UNRELEASED = re.compile(r"^#+\s*\[?unreleased\]?", re.I)


def _changelog_touched(artifacts) -> bool:
    return any(a.kind == "changelog" and a.status != "unchanged" and a.lines for a in artifacts)


def _breaking_without_major(artifacts, hints) -> list[Hit]:
    breaking = None
    for artifact in artifacts:
        if artifact.kind != "changelog" or artifact.status == "unchanged":
            continue
        found = first_line(artifact, _BREAKING)
        if found:
            breaking = (artifact, found)
            break
    if breaking is None:
        return []
    bumps = bumped_versions([a for a in artifacts if a.kind == "manifest"])
    if any(bump_kind(old, new) == "major" for _, old, new, _ in bumps):
        return []
    artifact, (line_no, text) = breaking
    return [Hit(artifact.file, line_no, clip(text))]


def _bump_without_changelog(artifacts, hints) -> list[Hit]:
    if _changelog_touched(artifacts):
        return []
    return [
        Hit(artifact.file, line, f"version {old or '?'} → {new}")
        for artifact, old, new, line in bumped_versions([a for a in artifacts if a.kind == "manifest"])
    ]


def _downgrade(artifact, hints) -> list[Hit]:
    old, new, line = version_change(artifact)
    if bump_kind(old, new) == "downgrade":
        return [Hit(artifact.file, line, f"version {old} → {new}")]
    return []


def _bump_mismatch(artifact, hints) -> list[Hit]:
    old, new, line = version_change(artifact)
    kind = bump_kind(old, new)
    if kind in (None, "downgrade") or kind == hints.release_type:
        return []
    return [Hit(artifact.file, line, f"{kind} bump {old} → {new} for a {hints.release_type} release")]


def _unreleased_left_behind(artifacts, hints) -> list[Hit]:
    new_versions = [new for _, _, new, _ in bumped_versions([a for a in artifacts if a.kind == "manifest"])]
    if not new_versions:
        return []
    hits = []
    for artifact in artifacts:
        if artifact.kind != "changelog":
            continue
        headings = [(n, text) for n, text in enumerate(artifact.content.splitlines(), 1) if text.startswith("#")]
        if any(version in text for _, text in headings for version in new_versions):
            continue
        unreleased = next(((n, text) for n, text in headings if _UNRELEASED.match(text)), None)
        if unreleased:
            hits.append(Hit(artifact.file, unreleased[0], clip(unreleased[1])))
    return hits


BREAKING_WITHOUT_MAJOR = AggregateRule(
    id="REL-001",
    title="Breaking change released without a major version bump",
    category="Versioning",
    severity=Severity.BLOCKER,
    confidence=Confidence.MED,
    predicate=_breaking_without_major,
    remediation="Bump the major version (or the minor version while still on 0.x).",
)

BUMP_WITHOUT_CHANGELOG = AggregateRule(
    id="REL-002",
    title="Version bumped without a changelog entry",
    category="Release notes",
    severity=Severity.HIGH,
    predicate=_bump_without_changelog,
    remediation="Describe the user-visible changes of this version in the changelog.",
)

VERSION_DOWNGRADE = PredicateRule(
    id="REL-003",
    title="Version number goes backwards",
    category="Versioning",
    severity=Severity.HIGH,
    kinds=("manifest",),
    predicate=_downgrade,
    remediation="Versions must increase monotonically; package indexes reject re-used or lower versions.",
)

BUMP_MISMATCH = PredicateRule(
    id="REL-004",
    title="Version bump does not match the declared release type",
    category="Versioning",
    severity=Severity.MED,
    kinds=("manifest",),
    when=lambda hints: hints.release_type is not None,
    predicate=_bump_mismatch,
    remediation="Align the version number with the kind of release being cut.",
)

UNSTABLE_PIN = PatternRule(
    id="REL-005",
    title="Dependency pinned to a pre-release or VCS reference",
    category="Dependencies",
    severity=Severity.MED,
    kinds=("dependency",),
    pattern=re.compile(
        r"git\+(?:https?|ssh)://|\bgithub:[\w-]+/|[=@^~]\s*v?\d+(?:\.\d+)*[-.]?(?:a|b|alpha|beta|rc|dev|pre)\.?\d*\b"
        r"|@(?:next|canary|beta)\b|\breplace\s+\S+\s+=>\s+\.\.?/"
    ),
    remediation="Release against published, stable versions only.",
)

UNRELEASED_HEADING = AggregateRule(
    id="REL-006",
    title="New version has no changelog heading; entries left under Unreleased",
    category="Release notes",
    severity=Severity.LOW,
    predicate=_unreleased_left_behind,
    remediation="Rename the Unreleased heading to the new version and date.",
)

RELEASE_NOTES_ACCURATE = JudgmentRule(
    id="REL-J01",
    title="Release notes incomplete for user-visible changes",
    category="Release notes",
    severity=Severity.MED,
    kinds=("changelog",),
    question=(
        "Do the release notes accurately describe every user-visible change in this release, including "
        "upgrade steps for anything breaking or deprecated?"
    ),
)

CHECKLIST = Checklist(
    domain="release",
    title="Release Readiness",
    selectors=SELECTORS,
    rules=(
        BREAKING_WITHOUT_MAJOR,
        BUMP_WITHOUT_CHANGELOG,
        VERSION_DOWNGRADE,
        BUMP_MISMATCH,
        UNSTABLE_PIN,
        UNRELEASED_HEADING,
        RELEASE_NOTES_ACCURATE,
    ),
    categories=("Versioning", "Release notes", "Dependencies"),
)
