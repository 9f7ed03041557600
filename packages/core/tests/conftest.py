"""Shared fixtures: build scopes from literal files and diffs, then run a domain checklist."""

from __future__ import annotations

import pytest

from reviewkit_core.checklists.registry import get_checklist
from reviewkit_core.context import parse_context
from reviewkit_core.diffparse import parse_unified_diff
from reviewkit_core.evaluator import evaluate
from reviewkit_core.extract import extract_artifacts
from reviewkit_core.models import ResolvedScope


def file_diff(path: str, added=(), removed=(), status: str = "modified", start: int = 1) -> str:
    """One file's unified diff with a single hunk."""
    lines = [f"diff --git a/{path} b/{path}"]
    if status == "added":
        lines += ["new file mode 100644", "--- /dev/null", f"+++ b/{path}"]
    elif status == "deleted":
        lines += ["deleted file mode 100644", f"--- a/{path}", "+++ /dev/null"]
    else:
        lines += [f"--- a/{path}", f"+++ b/{path}"]
    old_start = 0 if status == "added" else start
    new_start = 0 if status == "deleted" else start
    lines.append(f"@@ -{old_start},{len(removed)} +{new_start},{len(added)} @@")
    lines += [f"-{text}" for text in removed]
    lines += [f"+{text}" for text in added]
    return "\n".join(lines)


def scope_of(files: dict | None = None, diffs=()) -> ResolvedScope:
    """A ResolvedScope; changed files without explicit content get their added lines as content."""
    diff = "\n".join(diffs) or None
    changes = tuple(sorted(parse_unified_diff(diff), key=lambda c: c.path)) if diff else ()
    contents = dict(files or {})
    for change in changes:
        if change.status != "deleted" and change.path not in contents:
            contents[change.path] = "\n".join(
                line[1:] for line in change.patch.splitlines() if line.startswith("+")
            )
    return ResolvedScope(files=tuple(sorted(contents.items())), diff=diff, changes=changes)


@pytest.fixture
def run_checklist():
    """run_checklist(domain, files=..., diffs=..., context=..., **evaluate_kwargs) -> Evaluation"""

    def run(domain, files=None, diffs=(), context=None, **kwargs):
        checklist = get_checklist(domain)
        artifacts = extract_artifacts(scope_of(files, diffs), checklist)
        return evaluate(checklist, artifacts, parse_context(context), **kwargs)

    return run


def rule_ids(evaluation) -> list[str]:
    return [f.rule_id for f in evaluation.findings]


@pytest.fixture
def ids():
    return rule_ids


@pytest.fixture
def make_diff():
    return file_diff


@pytest.fixture
def make_scope():
    return scope_of
