"""stats command: aggregate findings across a session's reports."""

from __future__ import annotations

from collections import Counter

import click
from rich.console import Console
from rich.table import Table

from reviewkit_cli.helpers import current_session, get_store, review_errors
from reviewkit_core.models import SEVERITY_ORDER
from reviewkit_core.report import SEVERITY_STYLE

console = Console()


@click.command("stats")
@click.option("--session", "-s", "session_slug", default=None, help="Session to summarise. Defaults to the latest.")
@click.option("--top", default=10, show_default=True, help="Number of rules to show.")
@click.pass_context
def stats_cmd(ctx, session_slug: str | None, top: int):
    """Show severity and rule frequency across a session's reports.

    Useful for spotting which checks a change keeps tripping before it is
    merged.
    """
    store = get_store(ctx)
    with review_errors():
        session = current_session(store, session_slug)

    records = store.list_reports(session.slug)
    if not records:
        console.print(f"[yellow]No reports filed in session {session.slug}.[/yellow]")
        return

    total_reports = len(records)
    total_findings = sum(r.total_findings for r in records)
    severity_counter: Counter[str] = Counter()
    rule_counter: Counter[str] = Counter()
    recommendation_counter: Counter[str] = Counter()

    for record in records:
        severity_counter.update(record.summary)
        rule_counter.update(record.rules)
        recommendation_counter[record.recommendation] += 1

    console.print(f"\n[bold]Review stats for session [cyan]{session.slug}[/cyan][/bold]")
    console.print(f"  Total reports:  {total_reports}")
    console.print(f"  Total findings: {total_findings}")
    console.print(f"  Avg per report: {total_findings / total_reports:.1f}")
    for recommendation, count in recommendation_counter.most_common():
        console.print(f"  {recommendation}: {count}")

    if total_findings:
        sev_table = Table(title="Severity Breakdown", show_header=True)
        sev_table.add_column("Severity", style="bold")
        sev_table.add_column("Count", justify="right")
        sev_table.add_column("% of total", justify="right")
        for severity in SEVERITY_ORDER:
            count = severity_counter.get(severity.value, 0)
            style = SEVERITY_STYLE[severity]
            sev_table.add_row(
                f"[{style}]{severity.value}[/{style}]", str(count), f"{count / total_findings * 100:.1f}%"
            )
        console.print(sev_table)

    if rule_counter:
        rule_table = Table(title=f"Top {top} Rules", show_header=True)
        rule_table.add_column("Rule")
        rule_table.add_column("Findings", justify="right")
        for rule_id, count in rule_counter.most_common(top):
            rule_table.add_row(rule_id, str(count))
        console.print(rule_table)
