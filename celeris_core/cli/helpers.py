"""Shared helpers for the celeris CLI: HelpGroup, error reporting, registry setup."""

import functools

import click

from celeris_core import config as config_mod
from celeris_core.errors import CelerisError
from celeris_core.paths import configure_logger
from celeris_core.registry import Registry

_log = configure_logger("celeris.cli")

# Shared Click settings: make -h and --help both work everywhere
CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])


class HelpGroup(click.Group):
    """Click Group that treats 'help' as an alias for --help.

    ``celeris help`` and ``celeris list help`` both show help.  A command
    that takes positional arguments keeps a trailing ``help`` as its
    argument, so ``celeris switch help`` switches to a session named help.
    """

    def resolve_command(self, ctx, args):
        if args and args[0] == "help":
            if super().get_command(ctx, "help") is not None:
                return super().resolve_command(ctx, args)
            args = ["--help"] + args[1:]
        cmd_name, cmd, remaining = super().resolve_command(ctx, args)
        if (remaining and remaining[0] == "help" and cmd is not None
                and not any(isinstance(p, click.Argument) for p in cmd.params)):
            remaining = ["--help"] + remaining[1:]
        return cmd_name, cmd, remaining


def reports_errors(func):
    """Print expected failures as ``error: <message>`` and exit 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except CelerisError as e:
            _log.warning("%s failed: %s", func.__name__, e)
            click.echo(f"error: {e}", err=True)
            raise SystemExit(1)

    return wrapper


def load_registry() -> Registry:
    return Registry(config=config_mod.load())
