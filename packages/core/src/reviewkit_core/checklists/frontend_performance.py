"""Frontend performance review: bundle weight, loading and rendering costs."""

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

_TEST_FILES = ("*.test.*", "*.spec.*", "__tests__/", "*.stories.*", "cypress/", "e2e/")

SELECTORS = (
    ArtifactSelector(
        "script",
        ("*.js", "*.jsx", "*.ts", "*.tsx", "*.mjs", "*.vue", "*.svelte"),
        exclude=_TEST_FILES + ("*.config.js", "*.config.ts", "*.d.ts"),
    ),
    ArtifactSelector("markup", ("*.html", "*.htm", "*.vue", "*.svelte", "*.jsx", "*.tsx"), exclude=_TEST_FILES),
    ArtifactSelector("style", ("*.css", "*.scss", "*.sass", "*.less")),
    ArtifactSelector("manifest", ("package.json",)),
)

_HEAVY_LIBS = r"lodash|moment|rxjs|date-fns|ramda|antd|@mui/material|@mui/icons-material|@material-ui/core|rxjs/operators"


def _budget_set(hints) -> bool:
    return hints.bundle_budget_kb is not None


def _react(hints) -> bool:
    return hints.framework in (None, "react", "next.js", "nextjs")


_USE_EFFECT = re.compile(r"\buse(?:Layout)?Effect\s*\(")
_OPEN, _CLOSE = "([{", ")]}"


def _effect_call(text: str, start: int) -> tuple[bool, bool]:
    """Scan one hook call from its opening paren: (closed, has_second_argument)."""
    depth = 0
    quote = None
    for i in range(start, len(text)):
        ch = text[i]
        if quote:
            if ch == quote and text[i - 1] != "\\":
                quote = None
            continue
        if ch in "'\"`":
            quote = ch
        elif ch in _OPEN:
            depth += 1
        elif ch in _CLOSE:
            depth -= 1
            if depth == 0:
                return True, False
        elif ch == "," and depth == 1:
            rest = text[i + 1 :].lstrip()
            # a trailing comma before the closing paren is not an argument
            return True, not rest.startswith(")")
    return False, False


def _effect_without_deps(artifact, hints) -> list[Hit]:
    hits = []
    lines = list(artifact.lines)
    for index, (line_no, text) in enumerate(lines):
        match = _USE_EFFECT.search(text)
        if not match:
            continue
        # Join the contiguous added lines that follow; a hook call rarely spans more than 60.
        block = [text[match.end() - 1 :]]
        prev = line_no
        for next_no, next_text in lines[index + 1 : index + 60]:
            if next_no != prev + 1:
                break
            block.append(next_text)
            prev = next_no
        closed, has_deps = _effect_call("\n".join(block), 0)
        if closed and not has_deps:
            hits.append(Hit(artifact.file, line_no, clip(text)))
    return hits


WHOLE_LIBRARY_IMPORT = PatternRule(
    id="FE-001",
    title="Whole-library import of a heavy dependency",
    category="Bundle size",
    severity=Severity.HIGH,
    kinds=("script",),
    pattern=re.compile(
        rf"""^\s*import\s+(?:\*\s+as\s+\w+|\w+)\s+from\s+['"](?:{_HEAVY_LIBS})['"]"""
        rf"""|\brequire\(\s*['"](?:{_HEAVY_LIBS})['"]\s*\)"""
    ),
    remediation="Import the specific function (`lodash/debounce`, `date-fns/format`) so the bundler can tree-shake.",
)

HEAVY_DEPENDENCY_ADDED = PatternRule(
    id="FE-002",
    title="Heavy date/time library added as a dependency",
    category="Bundle size",
    severity=Severity.MED,
    escalate_when=_budget_set,
    escalated=Severity.HIGH,
    kinds=("manifest",),
    pattern=re.compile(r'^\s*"(moment|moment-timezone|jquery)"\s*:'),
    remediation="Prefer the platform `Intl` APIs or a modular library such as `date-fns` / `dayjs`.",
)

EFFECT_WITHOUT_DEPS = PredicateRule(
    id="FE-003",
    title="Effect hook without a dependency array",
    category="Rendering",
    severity=Severity.HIGH,
    confidence=Confidence.MED,
    kinds=("script",),
    when=_react,
    predicate=_effect_without_deps,
    remediation="Pass a dependency array; without one the effect re-runs after every render.",
)

RENDER_BLOCKING_SCRIPT = PatternRule(
    id="FE-004",
    title="Render-blocking external script",
    category="Loading",
    severity=Severity.MED,
    kinds=("markup",),
    pattern=re.compile(r"<script\b[^>]*\bsrc\s*=", re.I),
    unless=re.compile(r"""\b(?:async|defer)\b|type\s*=\s*["']module["']""", re.I),
    remediation="Add `defer` (or `async` for independent scripts) so parsing is not blocked.",
)

IMAGE_WITHOUT_DIMENSIONS = PatternRule(
    id="FE-005",
    title="Image without explicit dimensions",
    category="Layout stability",
    severity=Severity.LOW,
    confidence=Confidence.MED,
    kinds=("markup",),
    pattern=re.compile(r"<img\b", re.I),
    unless=re.compile(r"\b(?:width|height)\s*=|\bfill\b", re.I),
    remediation="Set `width` and `height` (or an aspect-ratio box) to avoid layout shift.",
)

INLINE_BASE64 = PatternRule(
    id="FE-006",
    title="Large inline base64 asset",
    category="Bundle size",
    severity=Severity.MED,
    kinds=("script", "markup", "style"),
    pattern=re.compile(r"data:(?:image|font|application)/[\w+.-]+;base64,[A-Za-z0-9+/=]{1000,}"),
    remediation="Serve the asset as a separate, cacheable file.",
)

CONSOLE_LOG = PatternRule(
    id="FE-007",
    title="Console logging left in production code",
    category="Runtime",
    severity=Severity.LOW,
    kinds=("script",),
    pattern=re.compile(r"\bconsole\.(?:log|debug|trace)\s*\("),
    remediation="Remove the call or route it through the app's logger.",
)

INDEX_AS_KEY = PatternRule(
    id="FE-008",
    title="Array index used as list key",
    category="Rendering",
    severity=Severity.LOW,
    confidence=Confidence.MED,
    kinds=("markup",),
    pattern=re.compile(r"\bkey\s*=\s*\{\s*(?:index|idx|i)\s*\}|:key\s*=\s*[\"'](?:index|idx|i)[\"']"),
    remediation="Key list items by a stable id so reordering does not remount them.",
)

HOT_PATH_WORK = JudgmentRule(
    id="FE-J01",
    title="Extra work on a hot rendering path",
    category="Rendering",
    severity=Severity.MED,
    kinds=("script",),
    question=(
        "Does this change add significant work to a hot path (per-frame, per-keystroke, per-scroll or "
        "per-list-item rendering) without memoisation, virtualisation or debouncing?"
    ),
)

CHECKLIST = Checklist(
    domain="frontend-performance",
    title="Frontend Performance",
    selectors=SELECTORS,
    rules=(
        WHOLE_LIBRARY_IMPORT,
        HEAVY_DEPENDENCY_ADDED,
        EFFECT_WITHOUT_DEPS,
        RENDER_BLOCKING_SCRIPT,
        IMAGE_WITHOUT_DIMENSIONS,
        INLINE_BASE64,
        CONSOLE_LOG,
        INDEX_AS_KEY,
        HOT_PATH_WORK,
    ),
    categories=("Bundle size", "Loading", "Rendering", "Layout stability", "Runtime"),
)
