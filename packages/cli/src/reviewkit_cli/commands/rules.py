"""rules command: print the rule tables."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from reviewkit_cli.helpers import review_errors
from reviewkit_core.checklists.base import AggregateRule, JudgmentRule, PredicateRule
from reviewkit_core.checklists.registry import DOMAINS, get_checklist
from reviewkit_core.report import SEVERITY_STYLE

console = Console()


def _kind(rule) -> str:
    if isinstance(rule, JudgmentRule):
        return "judgment"
    if isinstance(rule, AggregateRule):
        return "aggregate"
    if isinstance(rule, PredicateRule):
        return "predicate"
    return "pattern"


@click.command("rules")
@click.argument("domain", required=False)
@click.pass_context
def rules_cmd(ctx, domain: str | None):
    """Print the checklist rules for DOMAIN, or for every domain."""
    with review_errors():
        checklists = [get_checklist(domain)] if domain else [get_checklist(d) for d in DOMAINS]

    config = ctx.obj.get("config", {}) if ctx.obj else {}
    disabled = set(config.get("disabled_rules") or [])
    overrides = config.get("severity_overrides") or {}

    for checklist in checklists:
        title = f"/review:{checklist.domain} — {checklist.title}"
        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("ID", style="bold", width=8)
        table.add_column("Title")
        table.add_column("Severity", width=9)
        table.add_column("Confidence", width=10)
        table.add_column("Type", width=9)
        for rule in checklist.rules:
            severity = overrides.get(rule.id, rule.severity)
            style = SEVERITY_STYLE[severity]
            rule_title = f"[dim]{rule.title} (disabled)[/dim]" if rule.id in disabled else rule.title
            table.add_row(
                rule.id,
                rule_title,
                f"[{style}]{severity.value}[/{style}]",
                rule.confidence.value,
                _kind(rule),
            )
        console.print(table)
