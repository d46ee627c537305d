"""fly CLI - Database migration runner command line interface

Command groups are organized into separate modules:
- migrate.py: init, status, new, up, down
- common.py: shared utilities
"""
import click

from .. import __version__
from ..config import resolve_config
from ..errors import FlyError

# Local imports
from .common import (
    VERBOSITY_NORMAL,
    VERBOSITY_QUIET,
    VERBOSITY_VERBOSE,
    configure_logging,
    fail,
)
from .migrate import migrate_group


@click.group()
@click.version_option(version=__version__, prog_name="fly")
@click.option('--sourcedir', type=click.Path(file_okay=False), default=None, envvar='FLY_SOURCEDIR',
              help='Directory that contains migration files (default: migrations)')
@click.option('--database', type=click.Path(dir_okay=False), default=None, envvar='FLY_DATABASE',
              help='SQLite database to migrate (default: fly.sqlite)')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), default=None, envvar='FLY_CONFIG',
              help='YAML config file (default: fly.yaml if present)')
@click.option('--verbose', '-v', is_flag=True, default=False,
              help='Enable verbose output')
@click.option('--quiet', '-q', is_flag=True, default=False,
              help='Suppress non-essential output')
@click.pass_context
def cli(ctx, sourcedir, database, config_path, verbose, quiet):
    """fly - Minimal database migration runner

    \b
    Commands:
        init      Create the migration ledger table
        status    Show applied migrations
        new       Scaffold the next migration pair
        up        Apply pending migrations
        down      Revert the last applied migrations

    \b
    Examples:
        fly init
        fly new create users
        fly up
        fly status
        fly down 2
    """
    ctx.ensure_object(dict)

    # Validate mutually exclusive flags
    if verbose and quiet:
        raise click.UsageError("--verbose and --quiet are mutually exclusive")

    if quiet:
        ctx.obj['verbosity'] = VERBOSITY_QUIET
    elif verbose:
        ctx.obj['verbosity'] = VERBOSITY_VERBOSE
    else:
        ctx.obj['verbosity'] = VERBOSITY_NORMAL

    configure_logging(ctx.obj['verbosity'])

    try:
        ctx.obj['config'] = resolve_config(
            sourcedir=sourcedir, database=database, config_path=config_path
        )
    except FlyError as e:
        fail(str(e))


# Register migration commands (init, status, new, up, down)
for _name in ('init', 'status', 'new', 'up', 'down'):
    cli.add_command(migrate_group.commands[_name])


def main():
    """Entry point for the CLI."""
    cli()


__all__ = [
    '__version__',
    'cli',
    'main',
]
