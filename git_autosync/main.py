"""
CLI entry point for git_autosync.

Runs one sync session against the repository containing the current working
directory.
"""

from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from yaml import YAMLError

from .config import load_config
from .syncer import AutoSyncer

console = Console(stderr=True)


@click.command()
@click.version_option(package_name="git-autosync")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Optional YAML file overriding remote, branch, message prefix or hostname",
)
def cli(config_path: Path | None):
    """Sync the current repository with origin/master.

    Stashes local edits, rebases onto upstream, reapplies the edits, commits
    them and pushes. Exits with status 1 on any failure.
    """
    try:
        config = load_config(config_path)
    except (OSError, YAMLError, ValidationError) as e:
        console.print(f"[red]Error loading config: {escape(str(e))}[/red]")
        raise SystemExit(1)

    syncer = AutoSyncer(config, Path.cwd())
    session = syncer.run()

    if not session.success:
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
