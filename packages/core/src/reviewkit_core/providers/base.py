"""Base judge implementing the Template Method pattern.

Judgment rules ask a question no regex can answer ("is this rollout
compatible with both schemas?"). A judge answers it for one artifact:

    evaluate() → _build_system_prompt() + _build_user_prompt()
               → _call_with_retry() → _call_api()   ← only this differs per provider
               → _parse()

Subclasses implement __init__ (validate and store the SDK client) and
_call_api (one raw call returning text). The verdict schema, retry policy
and parsing are shared.
"""

from __future__ import annotations

import json
import logging
import re
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from reviewkit_core.checklists.base import Hit, clip

if TYPE_CHECKING:
    from reviewkit_core.checklists.base import JudgmentRule
    from reviewkit_core.context import ContextHints
    from reviewkit_core.models import Artifact

logger = logging.getLogger(__name__)

_MAX_RETRIES = 3
_MAX_TOKENS = 1024
_MAX_LINES = 400


class BaseJudge(ABC):
    MAX_RETRIES: int = _MAX_RETRIES
    MAX_TOKENS: int = _MAX_TOKENS

    def evaluate(self, rule: JudgmentRule, artifact: Artifact, hints: ContextHints) -> list[Hit] | None:
        """Answer ``rule.question`` for one artifact.

        Returns the violations found (possibly none), or None when the provider
        could not produce a usable verdict; the evaluator then lists the rule
        as not evaluated instead of silently passing it.
        """
        system = self._build_system_prompt(rule)
        user = self._build_user_prompt(rule, artifact, hints)
        raw = self._call_with_retry(system, user)
        if raw is None:
            return None
        return self._parse(raw, artifact)

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        """Make a single API call and return the raw text response. Raise on failure."""

    def _call_with_retry(self, system_prompt: str, user_prompt: str) -> str | None:
        """Try _call_api up to MAX_RETRIES times, sleeping 1s, 2s, ... between attempts."""
        last_error: Exception | None = None
        for attempt in range(self.MAX_RETRIES):
            if attempt:
                delay = 2 ** (attempt - 1)
                logger.warning(
                    "%s call failed (attempt %d/%d): %s; retrying in %ds",
                    self.__class__.__name__,
                    attempt,
                    self.MAX_RETRIES,
                    last_error,
                    delay,
                )
                time.sleep(delay)
            try:
                return self._call_api(system_prompt, user_prompt)
            except Exception as e:
                last_error = e
        logger.error("%s gave up after %d attempts: %s", self.__class__.__name__, self.MAX_RETRIES, last_error)
        return None

    def _build_system_prompt(self, rule: JudgmentRule) -> str:
        return f"""You are a strict and precise senior reviewer checking one item of a {rule.category} checklist.

Checklist item {rule.id}: {rule.title}
Question: {rule.question}

Rules:
- Answer only this question; ignore every other kind of issue.
- Added lines are what the change introduces; removed lines are what it takes away.
- Report a violation only when the code shown supports it. When unsure, answer no."""

    def _build_user_prompt(self, rule: JudgmentRule, artifact: Artifact, hints: ContextHints) -> str:
        numbered = "\n".join(f"{n:>5}  {text}" for n, text in artifact.lines[:_MAX_LINES])
        removed = "\n".join(artifact.removed[:_MAX_LINES]) or "(none)"
        notes = ", ".join(hints.describe()) or "(none)"
        return f"""File: `{artifact.file}` ({artifact.kind}, {artifact.status})
Review context: {hints.raw or "(none)"}
Parameters in effect: {notes}

## Added / current lines (new-file line numbers)
{numbered or "(none)"}

## Removed lines
{removed}

### Output Format:
Respond with **only** a valid JSON list of violations:

[
  {{"line": <line number in the new file (integer)>, "evidence": "<one sentence naming the problem>"}}
]

If the answer to the question is no, return: []
Do not return any text outside the JSON block."""

    def _parse(self, raw: str, artifact: Artifact) -> list[Hit] | None:
        try:
            cleaned = re.sub(r"^```(?:json)?\s*", "", raw.strip())
            cleaned = re.sub(r"\s*```$", "", cleaned.strip())
            data = json.loads(cleaned)
        except json.JSONDecodeError:
            logger.warning("%s: failed to parse response as JSON: %s", self.__class__.__name__, raw[:200])
            return None
        if not isinstance(data, list):
            logger.warning("%s: expected a JSON list, got %s", self.__class__.__name__, type(data).__name__)
            return None

        hits = []
        for item in data:
            if not isinstance(item, dict) or not item.get("evidence"):
                continue
            line = item.get("line")
            if not isinstance(line, int) or line < 1:
                line = artifact.line
            hits.append(Hit(artifact.file, line, clip(str(item["evidence"]))))
        return hits
