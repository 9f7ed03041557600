"""history command: list the reports filed in a session."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from reviewkit_cli.helpers import current_session, get_store, review_errors
from reviewkit_core.models import Recommendation
from reviewkit_core.report import RECOMMENDATION_STYLE

console = Console()


@click.command("history")
@click.option("--session", "-s", "session_slug", default=None, help="Session to show. Defaults to the latest.")
@click.option("--limit", default=20, show_default=True, help="Maximum number of reports to show.")
@click.pass_context
def history_cmd(ctx, session_slug: str | None, limit: int):
    """Show the reports filed in a session, most recent first."""
    store = get_store(ctx)
    with review_errors():
        session = current_session(store, session_slug)

    records = store.list_reports(session.slug)
    if not records:
        console.print(f"[yellow]No reports filed in session {session.slug}.[/yellow]")
        return

    records = list(reversed(records))[:limit]

    table = Table(title=f"Review History — {session.slug}", show_header=True, header_style="bold cyan")
    table.add_column("Report", style="bold")
    table.add_column("Command")
    table.add_column("Scope")
    table.add_column("Recommendation", width=22)
    table.add_column("Findings", justify="right", width=9)
    table.add_column("Completed", width=12)

    for r in records:
        try:
            style = RECOMMENDATION_STYLE[Recommendation(r.recommendation)]
        except ValueError:
            style = "white"
        scope = f"{r.scope} {r.target}" if r.target else r.scope
        table.add_row(
            r.path.rsplit("/", 1)[-1],
            r.command,
            scope,
            f"[{style}]{r.recommendation}[/{style}]",
            str(r.total_findings),
            r.completed.isoformat() if r.completed else "",
        )

    console.print(table)
