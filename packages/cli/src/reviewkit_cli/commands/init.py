"""init command: setup wizard for a repository.

Writes .reviewkit.yml and the session registry, and optionally opens the
first session so `reviewkit review` works straight away.
"""

from __future__ import annotations

from pathlib import Path

import click
import yaml
from rich.console import Console

from reviewkit_cli.helpers import review_errors
from reviewkit_core.models import Scope
from reviewkit_core.vcs import detect_github_repo
from reviewkit_store.session_dir import SessionDirStore

console = Console()


@click.command("init")
@click.option("--yes", "-y", is_flag=True, help="Accept the defaults without prompting.")
@click.option("--session", "-s", "first_session", default=None, help="Also create this session.")
@click.pass_context
def init_cmd(ctx, yes: bool, first_session: str | None):
    """Set up reviewkit in the current repository."""
    console.print("\n[bold cyan]reviewkit init[/bold cyan] — repository setup\n")
    root = ctx.obj["root"] if ctx.obj else Path.cwd()
    config_path = Path(ctx.obj.get("config_path", ".reviewkit.yml") if ctx.obj else ".reviewkit.yml")

    config: dict = {}
    if yes:
        session_root = ".claude"
        default_scope = Scope.PR.value
        judge = "none"
    else:
        session_root = click.prompt("Session root directory", default=".claude")
        default_scope = click.prompt(
            "Default review scope",
            type=click.Choice([s.value for s in Scope]),
            default=Scope.PR.value,
        )
        judge = click.prompt(
            "Judge for judgment rules",
            type=click.Choice(["none", "anthropic", "openai"]),
            default="none",
        )

    config["session_root"] = session_root
    config["default_scope"] = default_scope
    if judge != "none":
        config["judge"] = judge

    repo = detect_github_repo(root)
    if repo:
        console.print(f"[dim]Detected repository: {repo}[/dim]")
        config["github_repo"] = repo

    _write_config(root / config_path, config)
    console.print(f"[green]Wrote {config_path}[/green]")

    store = SessionDirStore(root / session_root)
    if store.registry.ensure():
        console.print(f"[green]Created session registry {store.registry.path}[/green]")
    else:
        console.print(f"[dim]Session registry {store.registry.path} already exists[/dim]")

    if first_session:
        with review_errors():
            store.create_session(first_session)
        console.print(f"[green]Created session {first_session}[/green]")

    if judge != "none":
        key = "ANTHROPIC_API_KEY" if judge == "anthropic" else "OPENAI_API_KEY"
        console.print(f"\n[yellow]Set [bold]{key}[/bold] before running reviews with the {judge} judge.[/yellow]")

    console.print("\n[bold green]Setup complete![/bold green]")
    console.print("Run a review with: [bold]reviewkit review <domain> [scope] [target][/bold]")


def _write_config(path: Path, config: dict) -> None:
    """Write or update the config file, preserving any existing keys."""
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    existing.update(config)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))
