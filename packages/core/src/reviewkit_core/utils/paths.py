from __future__ import annotations

import fnmatch

BINARY_EXTENSIONS = {
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".ico",
    ".webp",
    ".bmp",
    ".pdf",
    ".woff",
    ".woff2",
    ".ttf",
    ".eot",
    ".otf",
    ".mp4",
    ".mp3",
    ".wav",
    ".ogg",
    ".zip",
    ".tar",
    ".gz",
    ".rar",
    ".7z",
    ".jar",
    ".pyc",
    ".so",
    ".dylib",
    ".exe",
}


def is_text_file(file_name: str) -> bool:
    return not any(file_name.lower().endswith(ext) for ext in BINARY_EXTENSIONS)


def matches_any(filename: str, patterns: list[str] | tuple[str, ...]) -> bool:
    """Return True if filename matches any pattern.

    Supports:
    - fnmatch globs on the full path: "src/generated/*.py", "api/**"
    - fnmatch globs on the basename: "*.sql", "*.min.js"
    - Directory names/prefixes: "migrations/", "tests" (matches any file within that tree)
    """
    for pattern in patterns:
        if fnmatch.fnmatch(filename, pattern):
            return True
        if "/" not in pattern.rstrip("/") and fnmatch.fnmatch(filename.rsplit("/", 1)[-1], pattern):
            return True
        if any(ch in pattern for ch in "*?["):
            continue
        prefix = pattern.rstrip("/") + "/"
        if filename.startswith(prefix) or ("/" + prefix) in filename:
            return True
    return False
