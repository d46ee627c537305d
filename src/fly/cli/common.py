"""Shared utilities for fly CLI commands."""
import logging
import sys
from typing import NoReturn

import click

from ..config import FlyConfig

# Verbosity levels
VERBOSITY_QUIET = 0
VERBOSITY_NORMAL = 1
VERBOSITY_VERBOSE = 2

LOG_FORMAT = "fly: %(levelname)s %(message)s"

_LOG_LEVELS = {
    VERBOSITY_QUIET: logging.ERROR,
    VERBOSITY_NORMAL: logging.WARNING,
    VERBOSITY_VERBOSE: logging.DEBUG,
}


class ClickHandler(logging.Handler):
    """Logging handler that writes records to stderr through click."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


def configure_logging(verbosity: int) -> None:
    """Route the fly logger to stderr at a level matching verbosity.

    Args:
        verbosity: Current verbosity level (0=quiet, 1=normal, 2=verbose).
    """
    logger = logging.getLogger("fly")
    logger.setLevel(_LOG_LEVELS.get(verbosity, logging.WARNING))
    for handler in [h for h in logger.handlers if isinstance(h, ClickHandler)]:
        logger.removeHandler(handler)
    handler = ClickHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)


def get_config(ctx: click.Context) -> FlyConfig:
    """Return the FlyConfig resolved by the root command."""
    return ctx.obj['config']


def get_verbosity(ctx: click.Context) -> int:
    """Return the verbosity level chosen on the root command."""
    return ctx.obj.get('verbosity', VERBOSITY_NORMAL)


def should_print(verbosity: int, message_level: int) -> bool:
    """Determine if a message should be printed based on verbosity settings.

    Args:
        verbosity: Current verbosity level (0=quiet, 1=normal, 2=verbose).
        message_level: Minimum verbosity level required for this message.

    Returns:
        True if the message should be printed, False otherwise.
    """
    return verbosity >= message_level


def echo_verbose(message: str, verbosity: int) -> None:
    """Print a message only in verbose mode."""
    if should_print(verbosity, VERBOSITY_VERBOSE):
        click.echo(message)


def echo_normal(message: str, verbosity: int) -> None:
    """Print a message in normal and verbose modes."""
    if should_print(verbosity, VERBOSITY_NORMAL):
        click.echo(message)


def echo_quiet(message: str, verbosity: int) -> None:
    """Print a message that is always shown, even in quiet mode."""
    click.echo(message)


def fail(message: str) -> NoReturn:
    """Print an error to stderr and exit with status 1."""
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)
