"""session commands: new, list, current."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from reviewkit_cli.helpers import current_session, get_store, review_errors
from reviewkit_core.errors import NoSessionFound
from reviewkit_core.session import latest_session

console = Console()


@click.group("session")
def session_cmd():
    """Manage review sessions."""


@session_cmd.command("new")
@click.argument("slug")
@click.pass_context
def new_cmd(ctx, slug: str):
    """Register a session and create its directory."""
    store = get_store(ctx)
    with review_errors():
        session = store.create_session(slug)
    console.print(f"[green]Created session {session.slug}[/green] [dim]({store.session_dir(session.slug)})[/dim]")


@session_cmd.command("list")
@click.pass_context
def list_cmd(ctx):
    """List registered sessions, newest last."""
    store = get_store(ctx)
    sessions = store.registry.snapshot()
    if not sessions:
        console.print("[yellow]No sessions registered. Create one with `reviewkit session new <slug>`.[/yellow]")
        return

    current = latest_session(sessions)
    table = Table(title=f"Sessions — {store.registry.path}", show_header=True, header_style="bold cyan")
    table.add_column("Session", style="bold")
    table.add_column("Created", width=12)
    table.add_column("Status", width=8)
    table.add_column("Reports", justify="right", width=8)

    for s in sessions:
        marker = " [green]*[/green]" if s.slug == current else ""
        status_style = "green" if s.status.value == "open" else "dim"
        table.add_row(
            f"{s.slug}{marker}",
            s.created_at.isoformat(),
            f"[{status_style}]{s.status.value}[/{status_style}]",
            str(len(store.list_reports(s.slug))),
        )
    console.print(table)


@session_cmd.command("current")
@click.pass_context
def current_cmd(ctx):
    """Print the session new reports are filed under."""
    store = get_store(ctx)
    try:
        session = current_session(store)
    except NoSessionFound as e:
        raise click.ClickException(str(e)) from e
    click.echo(session.slug)
