"""Splitting and walking git unified diffs.

git produces the diffs; this module only reads them back into per-file
slices and line lists with new-file line numbers.
"""

from __future__ import annotations

import re

from reviewkit_core.models import FileChange

_DIFF_HEADER_RE = re.compile(r"^diff --git a/(.+?) b/(.+)$")
_HUNK_RE = re.compile(r"^@@ -\d+(?:,\d+)? \+(\d+)(?:,\d+)? @@")


def parse_unified_diff(text: str) -> list[FileChange]:
    """Split ``git diff`` output into one FileChange per file, in diff order."""
    changes: list[FileChange] = []
    current: dict | None = None

    def flush():
        if current is not None:
            changes.append(
                FileChange(
                    path=current["path"],
                    status=current["status"],
                    patch="\n".join(current["lines"]),
                    old_path=current["old_path"],
                )
            )

    for line in text.splitlines():
        header = _DIFF_HEADER_RE.match(line)
        if header:
            flush()
            old, new = header.group(1), header.group(2)
            current = {
                "path": new,
                "old_path": old if old != new else None,
                "status": "renamed" if old != new else "modified",
                "lines": [],
                "in_hunk": False,
            }
            continue
        if current is None:
            continue
        if not current["in_hunk"]:
            if line.startswith("new file mode"):
                current["status"] = "added"
            elif line.startswith("deleted file mode"):
                current["status"] = "deleted"
            elif line.startswith("rename to "):
                current["path"] = line[len("rename to ") :]
            elif line.startswith("+++ b/"):
                current["path"] = line[len("+++ b/") :]
        if line.startswith("@@"):
            current["in_hunk"] = True
        if current["in_hunk"]:
            current["lines"].append(line)

    flush()
    return changes


def added_lines(patch: str) -> list[tuple[int, str]]:
    """Return (new-file line number, text) for every added line of a patch.

    Lines before the first hunk header are skipped. Inside a hunk only the
    first character classifies a line, so removed SQL comments (``--- note``)
    are still removed lines.
    """
    result: list[tuple[int, str]] = []
    file_line: int | None = None

    for line in patch.splitlines():
        hunk = _HUNK_RE.match(line)
        if hunk:
            file_line = int(hunk.group(1))
            continue
        if file_line is None:
            continue
        marker = line[:1]
        if marker == "+":
            result.append((file_line, line[1:]))
            file_line += 1
        elif marker in ("-", "\\"):
            continue
        else:
            file_line += 1

    return result


def removed_lines(patch: str) -> list[str]:
    in_hunk = False
    result = []
    for line in patch.splitlines():
        if _HUNK_RE.match(line):
            in_hunk = True
            continue
        if in_hunk and line.startswith("-"):
            result.append(line[1:])
    return result


def render_patch(path: str, patch: str, status: str = "modified") -> str:
    """Rebuild a per-file unified diff around a bare hunk patch (GitHub file patches)."""
    old = "/dev/null" if status == "added" else f"a/{path}"
    new = "/dev/null" if status in ("removed", "deleted") else f"b/{path}"
    return f"diff --git a/{path} b/{path}\n--- {old}\n+++ {new}\n{patch}"


def added_file_patch(content: str) -> str:
    """Hunk text for a file that does not exist in the base (untracked files)."""
    lines = content.splitlines()
    body = "\n".join(f"+{line}" for line in lines)
    return f"@@ -0,0 +1,{len(lines)} @@\n{body}" if lines else ""
