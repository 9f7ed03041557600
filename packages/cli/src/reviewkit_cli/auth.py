"""GitHub token resolution with gh CLI fallback.

Resolution order (stops at first success):
  1. GITHUB_TOKEN environment variable
  2. `gh auth token` (GitHub CLI session, works after `gh auth login`)
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)


def resolve_github_token() -> str | None:
    """Return a GitHub token or None if no source is available. Never raises."""
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        logger.debug("gh CLI unavailable; no GitHub token resolved.")
        return None

    if result.returncode == 0 and result.stdout.strip():
        logger.debug("Resolved GitHub token via gh CLI session.")
        return result.stdout.strip()
    return None
