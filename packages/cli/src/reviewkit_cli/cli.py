"""CLI entry point for reviewkit.

Commands:
  review   run a /review:<domain> checklist review and file the report
  session  create, list and show review sessions
  history  list the reports filed in a session
  stats    severity and rule frequency across a session's reports
  rules    print the rule tables
  link     add a written report to its session index
  init     write .reviewkit.yml and the session registry
"""

from __future__ import annotations

import importlib.metadata
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from reviewkit_cli.commands.history import history_cmd
from reviewkit_cli.commands.init import init_cmd
from reviewkit_cli.commands.link import link_cmd
from reviewkit_cli.commands.review import review_cmd
from reviewkit_cli.commands.rules import rules_cmd
from reviewkit_cli.commands.session import session_cmd
from reviewkit_cli.commands.stats import stats_cmd

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _build_store(config: dict, root: Path):
    """Instantiate the session-directory store rooted at ``session_root``.

    This factory lives in cli.py so neither reviewkit_core nor reviewkit_store
    know about the CLI config format.
    """
    from reviewkit_store.session_dir import SessionDirStore

    return SessionDirStore(root / config["session_root"])


@click.group()
@click.version_option(
    version=importlib.metadata.version("reviewkit"),
    prog_name="reviewkit",
)
@click.option(
    "--config",
    "config_path",
    default=".reviewkit.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="REVIEWKIT_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Checklist-driven code reviews filed into session directories."""
    from reviewkit_cli.auth import resolve_github_token
    from reviewkit_core.config import load_config
    from reviewkit_core.errors import ReviewError

    _setup_logging(verbose)
    ctx.ensure_object(dict)

    try:
        config = load_config(config_path)
    except ReviewError as e:
        raise click.ClickException(str(e)) from e

    # Only the pr scope needs a token; a missing one is reported there.
    if not config.get("github_token"):
        config["github_token"] = resolve_github_token()

    root = Path.cwd()
    store = _build_store(config, root)
    ctx.obj["config"] = config
    ctx.obj["config_path"] = config_path
    ctx.obj["root"] = root
    ctx.obj["store"] = store
    ctx.call_on_close(store.close)


main.add_command(review_cmd)
main.add_command(session_cmd)
main.add_command(history_cmd)
main.add_command(stats_cmd)
main.add_command(rules_cmd)
main.add_command(link_cmd)
main.add_command(init_cmd)
