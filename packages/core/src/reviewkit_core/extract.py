"""Artifact extraction: the slice of a resolved scope one review domain looks at."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from reviewkit_core.diffparse import added_lines, removed_lines
from reviewkit_core.models import Artifact, ResolvedScope
from reviewkit_core.utils.paths import matches_any

if TYPE_CHECKING:
    from reviewkit_core.checklists.base import ArtifactSelector, Checklist

logger = logging.getLogger(__name__)


def _selected(selector: ArtifactSelector, path: str, searchable: str) -> bool:
    if not matches_any(path, selector.patterns):
        return False
    if selector.exclude and matches_any(path, selector.exclude):
        return False
    if selector.content is not None and not selector.content.search(searchable):
        return False
    return True


def extract_artifacts(scope: ResolvedScope, checklist: Checklist) -> list[Artifact]:
    """Build one artifact per (file, selector kind) match, ordered by file then selector.

    Files changed in the scope's diff contribute their added lines (with new-file
    line numbers) and removed lines; other files contribute every line.
    """
    contents = dict(scope.files)
    paths = sorted(set(contents) | {c.path for c in scope.changes if c.status == "deleted"})

    artifacts: list[Artifact] = []
    for path in paths:
        content = contents.get(path, "")
        change = scope.change_for(path)

        if change is not None and change.patch:
            lines = tuple(added_lines(change.patch))
            removed = tuple(removed_lines(change.patch))
            status = change.status
        elif change is not None:
            # Mode-only or binary change: nothing textual to look at.
            lines, removed, status = (), (), change.status
        else:
            lines = tuple(enumerate(content.splitlines(), 1))
            removed = ()
            status = "unchanged"

        searchable = content or "\n".join(removed)
        snippet = "\n".join(text for _, text in lines)
        for selector in checklist.selectors:
            if not _selected(selector, path, searchable):
                continue
            artifacts.append(
                Artifact(
                    file=path,
                    kind=selector.kind,
                    snippet=snippet,
                    line=lines[0][0] if lines else 1,
                    lines=lines,
                    removed=removed,
                    status=status,
                    content=content,
                )
            )

    logger.debug("Extracted %d %s artifact(s) from %d file(s)", len(artifacts), checklist.domain, len(paths))
    return artifacts
