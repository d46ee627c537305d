"""Migration commands for fly CLI."""
import json
from contextlib import closing
from typing import Tuple

import click

from ..database import connect
from ..errors import FlyError
from ..migrations import LedgerStore, Reconciler, create_next, render_status

# Local CLI imports
from .common import (
    VERBOSITY_NORMAL,
    echo_normal,
    echo_quiet,
    echo_verbose,
    fail,
    get_config,
    get_verbosity,
    should_print,
)


@click.group()
@click.pass_context
def migrate_group(ctx):
    """Migration commands."""
    ctx.ensure_object(dict)


@migrate_group.command("init")
@click.pass_context
def init(ctx) -> None:
    """Create the migration ledger table if it is missing."""
    config = get_config(ctx)
    verbosity = get_verbosity(ctx)

    try:
        with closing(connect(config.database)) as conn:
            LedgerStore(conn).ensure_schema()
    except FlyError as e:
        fail(str(e))

    echo_verbose(f"Ledger ready in {config.database}", verbosity)


@migrate_group.command("status")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def status(ctx, json_output: bool) -> None:
    """Show applied migrations.

    \b
    Options:
        --json: Output as JSON (for scripts)
    """
    config = get_config(ctx)
    verbosity = get_verbosity(ctx)

    try:
        with closing(connect(config.database)) as conn:
            records = LedgerStore(conn).list_applied()
    except FlyError as e:
        fail(str(e))

    if json_output:
        echo_quiet(json.dumps([record.to_dict() for record in records], indent=2), verbosity)
    else:
        echo_quiet(render_status(records), verbosity)


@migrate_group.command("new")
@click.argument("label", nargs=-1)
@click.pass_context
def new(ctx, label: Tuple[str, ...]) -> None:
    """Create the next pair of empty migration scripts.

    \b
    Examples:
        fly new
        fly new create users
        fly --sourcedir db/migrations new "add email index"
    """
    config = get_config(ctx)
    verbosity = get_verbosity(ctx)

    try:
        up_path, down_path = create_next(config.sourcedir, " ".join(label))
    except FlyError as e:
        fail(str(e))

    echo_normal(str(up_path), verbosity)
    echo_normal(str(down_path), verbosity)


@migrate_group.command("up")
@click.option("--dry-run", is_flag=True, help="List pending migrations without applying them")
@click.pass_context
def up(ctx, dry_run: bool) -> None:
    """Apply all pending migrations.

    All pending migrations run in one transaction; if any of them fails,
    none of them is applied.
    """
    config = get_config(ctx)
    verbosity = get_verbosity(ctx)
    echo = click.echo if should_print(verbosity, VERBOSITY_NORMAL) else None

    try:
        with closing(connect(config.database)) as conn:
            reconciler = Reconciler(conn, LedgerStore(conn), config.sourcedir, echo=echo)
            applied = reconciler.apply_pending(dry_run=dry_run)
    except FlyError as e:
        fail(str(e))

    if not applied:
        echo_verbose("Nothing to apply", verbosity)


@migrate_group.command("down")
@click.argument("count", type=click.IntRange(min=1), default=1, required=False)
@click.pass_context
def down(ctx, count: int) -> None:
    """Revert the last COUNT applied migrations (default 1).

    Reverting more migrations than are applied reverts all of them.
    """
    config = get_config(ctx)
    verbosity = get_verbosity(ctx)
    echo = click.echo if should_print(verbosity, VERBOSITY_NORMAL) else None

    try:
        with closing(connect(config.database)) as conn:
            reconciler = Reconciler(conn, LedgerStore(conn), config.sourcedir, echo=echo)
            reverted = reconciler.revert_last(count)
    except FlyError as e:
        fail(str(e))

    if not reverted:
        echo_verbose("Nothing to revert", verbosity)
