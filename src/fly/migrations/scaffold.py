"""
Migration scaffolding

Creates the next pair of empty up/down scripts in a migration directory.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

from ..errors import MigrationFileError, MigrationFilenameError
from .scanner import down_script, up_script

logger = logging.getLogger(__name__)

SERIAL_WIDTH = 4
DEFAULT_LABEL = "unnamed"
EMPTY_SENTINEL = "0000_unnamed.up.sql"


def parse_serial(filename: str) -> int:
    """
    Extract the serial from a migration filename.

    Args:
        filename: Name such as "0003_add_users.up.sql"

    Returns:
        The integer serial (3 for the example above)

    Raises:
        MigrationFilenameError: If the name has no "_" separator or the
                                prefix is not numeric
    """
    serial, sep, _ = filename.partition("_")
    if not sep:
        raise MigrationFilenameError(f"invalid filename {filename}: missing counter")
    if not (serial.isascii() and serial.isdigit()):
        raise MigrationFilenameError(f"invalid filename {filename}: counter {serial!r} is not a number")
    return int(serial)


def normalize_label(label: Optional[str]) -> str:
    """Replace spaces with underscores; fall back to the default label."""
    if not label:
        return DEFAULT_LABEL
    return label.replace(" ", "_")


def next_migration_id(directory: Union[str, Path], label: Optional[str] = None) -> str:
    """
    Compute the id of the next migration.

    The highest entry name in sorted order determines the previous serial.
    """
    directory = Path(directory)
    try:
        names = sorted(entry.name for entry in directory.iterdir())
    except OSError as e:
        raise MigrationFileError(f"could not list {directory}: {e}") from e

    last = names[-1] if names else EMPTY_SENTINEL
    serial = parse_serial(last) + 1
    return f"{serial:0{SERIAL_WIDTH}d}_{normalize_label(label)}"


def create_next(directory: Union[str, Path], label: Optional[str] = None) -> Tuple[Path, Path]:
    """
    Create the next migration file pair.

    Both files are created empty. If the down-script cannot be created the
    up-script is removed again, so a failed call leaves no files behind.

    Args:
        directory: Migration script directory
        label: Optional label; spaces become underscores

    Returns:
        (up_path, down_path)

    Raises:
        MigrationFilenameError: If an existing filename is malformed
        MigrationFileError: If either file cannot be created
    """
    migration_id = next_migration_id(directory, label)
    up_path = up_script(directory, migration_id)
    down_path = down_script(directory, migration_id)

    try:
        up_path.touch(exist_ok=False)
    except OSError as e:
        raise MigrationFileError(f"could not create {up_path}: {e}") from e

    try:
        down_path.touch(exist_ok=False)
    except OSError as e:
        up_path.unlink(missing_ok=True)
        raise MigrationFileError(f"could not create {down_path}: {e}") from e

    logger.info(f"Created migration {migration_id}")
    return up_path, down_path
