"""Scope resolution: turn a ReviewRequest into the files (and diff) under review."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from reviewkit_core import vcs
from reviewkit_core.diffparse import added_file_patch, parse_unified_diff, render_patch
from reviewkit_core.errors import EmptyScopeResult, FileNotFound, VersionControlError
from reviewkit_core.gh.pull_request import get_file_content, get_files, get_pull, get_repo
from reviewkit_core.models import FileChange, ResolvedScope, ReviewRequest, Scope
from reviewkit_core.utils.paths import is_text_file, matches_any

logger = logging.getLogger(__name__)

MAX_FILE_BYTES = 1_000_000

# GitHub file statuses → FileChange statuses
_PR_STATUS = {
    "added": "added",
    "removed": "deleted",
    "modified": "modified",
    "changed": "modified",
    "renamed": "renamed",
    "copied": "added",
}


def describe_request(request: ReviewRequest) -> str:
    text = request.scope.value
    if request.target:
        text += f" {request.target}"
    if request.paths:
        text += f" (paths: {', '.join(request.paths)})"
    return text


def ensure_non_empty(scope: ResolvedScope, request: ReviewRequest) -> ResolvedScope:
    if scope.is_empty:
        raise EmptyScopeResult(f"Scope {describe_request(request)} resolved to no reviewable files.")
    return scope


class ScopeResolver:
    """Resolve requests relative to a repository root.

    ``github_repo`` may be a ready PyGithub Repository (tests inject a mock);
    otherwise one is opened from config ``github_repo`` / the git remote and
    ``github_token``.
    """

    def __init__(self, root: str | Path, config: dict, github_repo=None):
        self.root = Path(root)
        self.config = config
        self._github_repo = github_repo
        self._session_prefix = str(config.get("session_root") or ".claude").strip("/") + "/"

    def resolve(self, request: ReviewRequest) -> ResolvedScope:
        handler = {
            Scope.PR: self._resolve_pr,
            Scope.WORKTREE: self._resolve_worktree,
            Scope.DIFF: self._resolve_diff,
            Scope.FILE: self._resolve_file,
            Scope.REPO: self._resolve_repo,
        }[request.scope]
        resolved = handler(request)
        logger.info(
            "Scope %s: %d file(s), %d change(s)",
            describe_request(request),
            len(resolved.files),
            len(resolved.changes),
        )
        return resolved

    # ------------------------------------------------------------------ #
    # Filtering                                                            #
    # ------------------------------------------------------------------ #

    def _keep(self, path: str, request: ReviewRequest) -> bool:
        if path.startswith(self._session_prefix) or path.startswith(".git/"):
            return False
        if not is_text_file(path):
            logger.debug("Skipping binary file %s", path)
            return False
        if self.config.get("exclude") and matches_any(path, self.config["exclude"]):
            logger.debug("Skipping excluded file %s", path)
            return False
        if request.paths and not matches_any(path, request.paths):
            return False
        return True

    def _read(self, rel_path: str) -> str | None:
        path = self.root / rel_path
        try:
            if path.stat().st_size > MAX_FILE_BYTES:
                logger.warning("Skipping %s: larger than %d bytes", rel_path, MAX_FILE_BYTES)
                return None
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning("Could not read %s: %s", rel_path, e)
            return None

    def _build(self, changes: list[FileChange], contents: dict[str, str], diff: str | None) -> ResolvedScope:
        return ResolvedScope(
            files=tuple(sorted(contents.items())),
            diff=diff,
            changes=tuple(sorted(changes, key=lambda c: c.path)),
        )

    # ------------------------------------------------------------------ #
    # Scopes                                                               #
    # ------------------------------------------------------------------ #

    def _require_work_tree(self) -> None:
        if not vcs.is_work_tree(self.root):
            raise VersionControlError(f"{self.root} is not inside a git work tree.")

    def _resolve_worktree(self, request: ReviewRequest) -> ResolvedScope:
        self._require_work_tree()
        diff = vcs.worktree_diff(self.root)
        changes = [c for c in parse_unified_diff(diff) if self._keep(c.path, request)]
        contents: dict[str, str] = {}
        for change in changes:
            if change.status != "deleted":
                content = self._read(change.path)
                if content is not None:
                    contents[change.path] = content

        extra_patches = []
        for path in vcs.untracked_files(self.root):
            if not self._keep(path, request):
                continue
            content = self._read(path)
            if content is None:
                continue
            patch = added_file_patch(content)
            contents[path] = content
            changes.append(FileChange(path=path, status="added", patch=patch))
            extra_patches.append(render_patch(path, patch, "added"))

        full_diff = "\n".join(p for p in [diff.rstrip("\n"), *extra_patches] if p)
        return self._build(changes, contents, full_diff)

    def _resolve_diff(self, request: ReviewRequest) -> ResolvedScope:
        self._require_work_tree()
        base, head = request.diff_refs()
        diff = vcs.range_diff(base, head, self.root, merge_base="..." in (request.target or ""))
        changes = [c for c in parse_unified_diff(diff) if self._keep(c.path, request)]
        contents = {}
        for change in changes:
            if change.status != "deleted":
                contents[change.path] = vcs.show_file(head, change.path, self.root)
        return self._build(changes, contents, diff)

    def _resolve_file(self, request: ReviewRequest) -> ResolvedScope:
        contents: dict[str, str] = {}
        for target in request.target_paths():
            path = self.root / target
            if path.is_dir():
                for child in sorted(path.rglob("*")):
                    rel = child.relative_to(self.root).as_posix()
                    if child.is_file() and self._keep(rel, request):
                        content = self._read(rel)
                        if content is not None:
                            contents[rel] = content
                continue
            if not path.is_file():
                raise FileNotFound(target)
            try:
                rel = path.resolve().relative_to(self.root.resolve()).as_posix()
            except ValueError:
                rel = Path(target).as_posix()
            if not self._keep(rel, request):
                continue
            content = self._read(rel)
            if content is not None:
                contents[rel] = content
        return self._build([], contents, None)

    def _walk(self) -> list[str]:
        found = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            rel_dir = Path(dirpath).relative_to(self.root).as_posix()
            dirnames[:] = sorted(
                d for d in dirnames if d != ".git" and (Path(rel_dir) / d).as_posix() + "/" != self._session_prefix
            )
            for name in filenames:
                found.append(name if rel_dir == "." else f"{rel_dir}/{name}")
        return sorted(found)

    def _resolve_repo(self, request: ReviewRequest) -> ResolvedScope:
        if vcs.is_work_tree(self.root):
            paths = vcs.tracked_files(self.root)
        else:
            logger.info("%s is not a git work tree; walking the directory instead", self.root)
            paths = self._walk()
        contents = {}
        for path in paths:
            if not self._keep(path, request):
                continue
            content = self._read(path)
            if content is not None:
                contents[path] = content
        return self._build([], contents, None)

    def _open_github_repo(self):
        if self._github_repo is not None:
            return self._github_repo
        token = self.config.get("github_token")
        if not token:
            raise VersionControlError(
                "A GitHub token is required for the 'pr' scope. Set GITHUB_TOKEN or run `gh auth login`."
            )
        slug = self.config.get("github_repo") or vcs.detect_github_repo(self.root)
        if not slug:
            raise VersionControlError(
                "Could not determine the GitHub repository. Set github_repo in .reviewkit.yml (owner/name)."
            )
        self._github_repo = get_repo(slug, token=token)
        return self._github_repo

    def _resolve_pr(self, request: ReviewRequest) -> ResolvedScope:
        repo = self._open_github_repo()
        pr = get_pull(repo, int(request.target))
        head_sha = pr.head.sha
        logger.debug("PR #%s head %s", request.target, head_sha[:7])

        changes = []
        contents = {}
        patches = []
        for f in get_files(pr):
            if not self._keep(f.filename, request):
                continue
            status = _PR_STATUS.get(f.status, "modified")
            patch = f.patch or ""
            changes.append(
                FileChange(
                    path=f.filename,
                    status=status,
                    patch=patch,
                    old_path=getattr(f, "previous_filename", None) if status == "renamed" else None,
                )
            )
            if patch:
                patches.append(render_patch(f.filename, patch, status))
            if status != "deleted":
                contents[f.filename] = get_file_content(repo, f.filename, head_sha)
        return self._build(changes, contents, "\n".join(patches) or None)
