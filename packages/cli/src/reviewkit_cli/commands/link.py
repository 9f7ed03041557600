"""link command: add an already-written report to its session index."""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console

from reviewkit_cli.helpers import get_store, review_errors
from reviewkit_core.report import parse_front_matter

console = Console()


@click.command("link")
@click.argument("report", required=False, type=click.Path(dir_okay=False, path_type=Path))
@click.option("--session", "-s", "session_slug", default=None, help="Link every unlinked report in this session.")
@click.pass_context
def link_cmd(ctx, report: Path | None, session_slug: str | None):
    """Append REPORT to its session index, after a partial write.

    With --session and no REPORT, every report missing from that session's
    index is linked. Reports that are already linked are left alone.
    """
    store = get_store(ctx)
    if report is None and session_slug is None:
        raise click.UsageError("Give a REPORT path or --session.")

    with review_errors():
        if report is None:
            store.require_session_dir(session_slug)
            reports = store.unlinked_reports(session_slug)
            if not reports:
                console.print(f"[green]Every report in {session_slug} is already linked.[/green]")
                return
            targets = [(session_slug, p) for p in reports]
        else:
            if not report.is_file():
                raise click.BadParameter(f"{report} does not exist.", param_hint="REPORT")
            meta = parse_front_matter(report.read_text(encoding="utf-8"))
            slug = session_slug or meta.get("session_slug") or report.resolve().parent.parent.name
            targets = [(str(slug), report)]

        for slug, path in targets:
            try:
                linked = store.link(slug, path)
            except (OSError, ValueError) as e:
                raise click.ClickException(f"Could not link {path}: {e}") from e
            if linked:
                console.print(f"[green]Linked {path.name} in {slug}[/green]")
            else:
                console.print(f"[dim]{path.name} is already linked in {slug}[/dim]")
