"""Version strings in package manifests, as seen through an artifact's diff."""

from __future__ import annotations

import re

from reviewkit_core.models import Artifact

MANIFEST_PATTERNS = (
    "package.json",
    "pyproject.toml",
    "setup.cfg",
    "setup.py",
    "Cargo.toml",
    "VERSION",
    "version.txt",
    "Chart.yaml",
    "*.gemspec",
    "_version.py",
    "__version__.py",
    "__about__.py",
)

_VERSION_LINE_RES = (
    re.compile(r'^\s*"version"\s*:\s*"([^"]+)"'),  # package.json
    re.compile(r"""^\s*version\s*=\s*["']?([\w.+-]+)["']?\s*,?\s*$"""),  # pyproject / Cargo / setup.cfg / setup.py
    re.compile(r"""^\s*__version__\s*=\s*["']([^"']+)["']"""),
    re.compile(r"^\s*(?:app)?[vV]ersion:\s*['\"]?([\w.+-]+)['\"]?\s*$"),  # Chart.yaml / openapi info
    re.compile(r"^\s*v?(\d+\.\d+(?:\.\d+)?(?:[-+][\w.]+)?)\s*$"),  # bare VERSION file
)

_SEMVER_RE = re.compile(r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?")


def find_version(text: str) -> str | None:
    for pattern in _VERSION_LINE_RES:
        match = pattern.match(text)
        if match:
            return match.group(1)
    return None


def version_change(artifact: Artifact) -> tuple[str | None, str | None, int]:
    """Return (old, new, line) for the first version line the artifact's diff touches."""
    old = next((v for v in map(find_version, artifact.removed) if v), None)
    for line_no, text in artifact.lines:
        new = find_version(text)
        if new:
            return old, new, line_no
    return old, None, artifact.line


def parse_semver(version: str | None) -> tuple[int, int, int] | None:
    if not version:
        return None
    match = _SEMVER_RE.match(version.strip())
    if not match:
        return None
    return tuple(int(g or 0) for g in match.groups())  # type: ignore[return-value]


def bump_kind(old: str | None, new: str | None) -> str | None:
    """Classify old → new as "major" / "minor" / "patch" / "downgrade" / None (unchanged or unparsable)."""
    a, b = parse_semver(old), parse_semver(new)
    if a is None or b is None or a == b:
        return None
    if b < a:
        return "downgrade"
    if b[0] != a[0]:
        return "major"
    if b[1] != a[1]:
        # 0.x releases treat a minor bump as breaking
        return "major" if a[0] == 0 else "minor"
    return "patch"


def bumped_versions(artifacts: list[Artifact]) -> list[tuple[Artifact, str | None, str, int]]:
    """Every manifest artifact whose diff changes its version: (artifact, old, new, line)."""
    result = []
    for artifact in artifacts:
        if artifact.status == "unchanged":
            continue
        old, new, line = version_change(artifact)
        if new and new != old:
            result.append((artifact, old, new, line))
    return result
