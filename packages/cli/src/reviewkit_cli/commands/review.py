"""review command: the /review:<domain> workflow."""

from __future__ import annotations

from datetime import date

import click
from rich.console import Console
from rich.markdown import Markdown

from reviewkit_cli.helpers import current_session, get_store, review_errors
from reviewkit_core.errors import NoSessionFound
from reviewkit_core.models import Scope, Session, build_request
from reviewkit_core.pipeline import get_judge, run_review
from reviewkit_core.report import print_console_summary, render_markdown
from reviewkit_store.noop import NoOpStore

console = Console()

_SCOPES = {s.value for s in Scope}


def _split_scope(scope: str | None, target: tuple[str, ...], default_scope: str) -> tuple[str, str | None]:
    """SCOPE is optional: a first positional that is not a scope name starts the target."""
    parts = list(target)
    if scope is not None and scope not in _SCOPES:
        parts.insert(0, scope)
        scope = None
    return scope or default_scope, " ".join(parts) or None


@click.command("review")
@click.argument("domain")
@click.argument("scope", required=False)
@click.argument("target", nargs=-1)
@click.option("--path", "-p", "paths", multiple=True, help="Glob restricting the reviewed files. Repeatable.")
@click.option("--context", "-c", "context", default=None, help="Free-text context, e.g. 'postgres, zero downtime'.")
@click.option("--session", "-s", "session_slug", default=None, help="Session to file the report under.")
@click.option(
    "--judge",
    type=click.Choice(["anthropic", "openai"]),
    default=None,
    help="Reasoning engine for judgment rules. Overrides config file.",
)
@click.option("--dry-run", is_flag=True, help="Print the report instead of filing it.")
@click.pass_context
def review_cmd(
    ctx,
    domain: str,
    scope: str | None,
    target: tuple[str, ...],
    paths: tuple[str, ...],
    context: str | None,
    session_slug: str | None,
    judge: str | None,
    dry_run: bool,
):
    """Review SCOPE against the DOMAIN checklist and file the report.

    \b
    DOMAIN  api-contracts | frontend-performance | migrations |
            release | reliability | testing
    SCOPE   pr | worktree | diff | repo | file (default from config)
    TARGET  PR number, ref1..ref2, or file paths

    \b
    Environment variables:
      GITHUB_TOKEN         needed for the pr scope (or use gh CLI)
      ANTHROPIC_API_KEY    needed with --judge anthropic
      OPENAI_API_KEY       needed with --judge openai
    """
    config = dict(ctx.obj["config"])
    if judge:
        config["judge"] = judge
    store = get_store(ctx)

    with review_errors():
        scope_name, target_text = _split_scope(scope, target, config["default_scope"])
        request = build_request(scope_name, target_text, paths=paths, context=context)

        try:
            session = current_session(store, session_slug)
        except NoSessionFound:
            if not dry_run:
                raise
            session = Session(slug=session_slug or "unfiled", created_at=date.today())

        report = run_review(
            domain,
            request,
            root=ctx.obj["root"],
            config=config,
            session=session,
            judge=get_judge(config),
        )
        markdown = render_markdown(report)

        target_store = NoOpStore() if dry_run else store
        report_path = target_store.save(report, markdown)

    if dry_run:
        console.print(Markdown(markdown))
    if report.files_reviewed == 0:
        console.print("[yellow]Warning: the scope resolved to no reviewable files.[/yellow]")
    print_console_summary(report, console, report_path=str(report_path) if report_path else None)
