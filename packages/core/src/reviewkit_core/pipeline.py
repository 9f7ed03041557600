"""Core review orchestration: scope → artifacts → findings → report."""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

from reviewkit_core.checklists.registry import get_checklist
from reviewkit_core.context import merge_context, parse_context
from reviewkit_core.errors import ConfigError, EmptyScopeResult
from reviewkit_core.evaluator import evaluate
from reviewkit_core.extract import extract_artifacts
from reviewkit_core.models import ReviewReport, ReviewRequest, Session
from reviewkit_core.providers.base import BaseJudge
from reviewkit_core.report import compose_report
from reviewkit_core.scope import ScopeResolver, ensure_non_empty

logger = logging.getLogger(__name__)


def get_judge(config: dict) -> BaseJudge | None:
    name = config.get("judge")
    if name is None:
        return None
    if name == "anthropic":
        if not config.get("anthropic_api_key"):
            raise ConfigError("The anthropic judge needs ANTHROPIC_API_KEY to be set.")
        from reviewkit_core.providers.anthropic import AnthropicJudge

        return AnthropicJudge(api_key=config["anthropic_api_key"], model=config.get("judge_model"))
    if name == "openai":
        if not config.get("openai_api_key"):
            raise ConfigError("The openai judge needs OPENAI_API_KEY to be set.")
        from reviewkit_core.providers.openai import OpenAIJudge

        return OpenAIJudge(api_key=config["openai_api_key"], model=config.get("judge_model"))
    raise ConfigError(f"Unknown judge: {name!r}. Choose 'anthropic' or 'openai'.")


def run_review(
    domain: str,
    request: ReviewRequest,
    root: str | Path,
    config: dict,
    session: Session,
    judge: BaseJudge | None = None,
    github_repo=None,
    today: date | None = None,
) -> ReviewReport:
    """Run one domain review and return the report. Nothing is written here.

    Resolution errors (FileNotFound, VersionControlError, ...) propagate. An
    empty scope is logged as a warning and produces an APPROVE report.
    """
    checklist = get_checklist(domain)
    hints = parse_context(merge_context(config.get("context"), request.context))
    if hints.unrecognized:
        logger.debug("Context text not mapped to any parameter: %r", hints.unrecognized)

    scope = ScopeResolver(root, config, github_repo=github_repo).resolve(request)
    try:
        ensure_non_empty(scope, request)
    except EmptyScopeResult as e:
        logger.warning("%s", e)

    artifacts = extract_artifacts(scope, checklist)
    evaluation = evaluate(
        checklist,
        artifacts,
        hints,
        judge=judge,
        disabled=config.get("disabled_rules") or (),
        severity_overrides=config.get("severity_overrides") or {},
    )

    reviewed = set(scope.paths) | {c.path for c in scope.changes}
    return compose_report(
        session,
        request,
        domain,
        evaluation.findings,
        completed=today,
        files_reviewed=len(reviewed),
        unevaluated=evaluation.unevaluated,
        context_notes=hints.describe(),
    )
