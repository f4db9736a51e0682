"""Click CLI definitions for celeris.

The ``cli`` Click group and the ``main`` entry point live here; shared
helpers (HelpGroup, error reporting) are in ``cli.helpers``.
"""

import sys
from pathlib import Path

import click

from celeris_core import config as config_mod
from celeris_core import scanner
from celeris_core.cli.helpers import (
    CONTEXT_SETTINGS,
    HelpGroup,
    load_registry,
    reports_errors,
)
from celeris_core.paths import set_dir_overrides, shorten_path
from celeris_core.registry import SwitchResult, format_entries


@click.group(cls=HelpGroup, context_settings=CONTEXT_SETTINGS)
@click.option("--config-dir", default=None, type=click.Path(file_okay=False, path_type=Path),
              help="Config directory (default: $CELERIS_CONFIG_DIR or ~/.config/celeris)")
@click.option("--cache-dir", default=None, type=click.Path(file_okay=False, path_type=Path),
              help="Cache directory (default: $CELERIS_CACHE_DIR or ~/.cache/celeris)")
def cli(config_dir: Path | None, cache_dir: Path | None):
    """celeris: tmux sessions from Python layout scripts."""
    set_dir_overrides(config_dir, cache_dir)


@cli.command()
@reports_errors
def search():
    """Print the git repositories under the configured search roots."""
    for path in scanner.scan(config_mod.load()):
        click.echo(str(path))


@cli.command("list")
@click.option("--tmux-format", is_flag=True, default=False,
              help="Print all names on one line, marking the active session with *")
@click.option("--include-active", is_flag=True, default=False,
              help="Include the session this command runs in")
@click.option("--exclude-running", is_flag=True, default=False,
              help="Only list layouts that are not running")
@click.option("--running-only", is_flag=True, default=False,
              help="Only list running sessions")
@click.option("--recent", is_flag=True, default=False,
              help="List recently used names first")
@reports_errors
def list_cmd(tmux_format: bool, include_active: bool, exclude_running: bool,
             running_only: bool, recent: bool):
    """List running sessions and saved layouts."""
    if exclude_running and running_only:
        raise click.UsageError("--exclude-running and --running-only are mutually exclusive")
    entries = load_registry().entries(running_only=running_only,
                                      exclude_running=exclude_running,
                                      include_active=include_active,
                                      recent=recent)
    output = format_entries(entries, tmux_format=tmux_format)
    if output:
        click.echo(output)


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.option("-n", "--name", default=None, help="Layout name (deduced from PATH if omitted)")
@click.option("--no-edit", is_flag=True, default=False,
              help="Don't open the new layout in the editor")
@reports_errors
def create(path: str, name: str | None, no_edit: bool):
    """Create a layout for the directory PATH."""
    name = load_registry().create(path, name=name, edit=not no_edit)
    click.echo(f"Created layout {name}")


@cli.command("create-all")
@reports_errors
def create_all():
    """Create layouts for the directories read from stdin, one per line.

    Pairs with search: ``celeris search | celeris create-all``.
    """
    paths = [line.strip() for line in sys.stdin if line.strip()]
    created, skipped = load_registry().create_all(paths)
    for name in created:
        click.echo(f"Created layout {name}")
    for path, reason in skipped:
        click.echo(f"Skipped {shorten_path(path)}: {reason}", err=True)


@cli.command()
@click.argument("name")
@reports_errors
def edit(name: str):
    """Open the layout NAME in the editor."""
    load_registry().edit(name)


@cli.command()
@click.argument("name", required=False)
@click.option("-l", "--last-session", is_flag=True, default=False,
              help="Switch to the last used session")
@reports_errors
def switch(name: str | None, last_session: bool):
    """Switch to session NAME, loading its layout if it isn't running."""
    if bool(name) == last_session:
        raise click.UsageError("give either NAME or --last-session")
    registry = load_registry()
    if last_session:
        name = registry.last_used()
    if registry.switch(name) is SwitchResult.ALREADY_ACTIVE:
        click.echo(f"Already in session {name}")


@cli.command()
@click.argument("names", nargs=-1, required=True)
@reports_errors
def remove(names: tuple[str, ...]):
    """Delete the layouts NAMES."""
    load_registry().remove(list(names))
    for name in names:
        click.echo(f"Removed layout {name}")


def main():
    cli()


if __name__ == "__main__":
    main()
