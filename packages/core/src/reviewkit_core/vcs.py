"""Thin wrappers over the git binary.

Every call runs to completion and either returns full output or raises
VersionControlError; there are no retries.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from reviewkit_core.errors import VersionControlError

logger = logging.getLogger(__name__)


def run_git(args: list[str], cwd: str | Path | None = None) -> str:
    cmd = ["git", *args]
    logger.debug("Running %s in %s", " ".join(cmd), cwd or ".")
    try:
        result = subprocess.run(cmd, cwd=cwd, capture_output=True, text=True)
    except FileNotFoundError:
        raise VersionControlError("git is not installed or not on PATH.") from None
    if result.returncode != 0:
        detail = (result.stderr or result.stdout or "").strip() or f"exit status {result.returncode}"
        raise VersionControlError(f"`git {' '.join(args)}` failed: {detail}")
    return result.stdout


def is_work_tree(cwd: str | Path | None = None) -> bool:
    try:
        return run_git(["rev-parse", "--is-inside-work-tree"], cwd=cwd).strip() == "true"
    except VersionControlError:
        return False


def worktree_diff(cwd: str | Path | None = None) -> str:
    """Working copy (staged and unstaged) against the last commit."""
    return run_git(["diff", "HEAD", "--no-color", "--no-ext-diff"], cwd=cwd)


def range_diff(base: str, head: str, cwd: str | Path | None = None, merge_base: bool = False) -> str:
    sep = "..." if merge_base else ".."
    return run_git(["diff", "--no-color", "--no-ext-diff", f"{base}{sep}{head}"], cwd=cwd)


def untracked_files(cwd: str | Path | None = None) -> list[str]:
    out = run_git(["ls-files", "--others", "--exclude-standard"], cwd=cwd)
    return [line for line in out.splitlines() if line]


def tracked_files(cwd: str | Path | None = None) -> list[str]:
    out = run_git(["ls-files", "--cached", "--others", "--exclude-standard"], cwd=cwd)
    return sorted({line for line in out.splitlines() if line})


def show_file(ref: str, path: str, cwd: str | Path | None = None) -> str:
    return run_git(["show", f"{ref}:{path}"], cwd=cwd)


def detect_github_repo(cwd: str | Path | None = None) -> str | None:
    """Try to detect the GitHub repo slug from the git remote URL."""
    try:
        url = run_git(["remote", "get-url", "origin"], cwd=cwd).strip()
    except VersionControlError:
        return None
    # https://github.com/owner/repo.git  →  owner/repo
    # git@github.com:owner/repo.git      →  owner/repo
    if "github.com" not in url:
        return None
    slug = url.split("github.com")[-1].lstrip("/:").removesuffix(".git")
    return slug if "/" in slug else None
