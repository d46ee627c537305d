"""
Migration directory scanning

Discovers migration ids from the up-scripts present in a directory.
"""

import logging
from pathlib import Path
from typing import List, Union

from ..errors import MigrationFileError

logger = logging.getLogger(__name__)

UP_SUFFIX = ".up.sql"
DOWN_SUFFIX = ".down.sql"


def list_migrations(directory: Union[str, Path]) -> List[str]:
    """
    List migration ids found in a directory.

    Only files ending in .up.sql are considered; the suffix is stripped to
    obtain the id. Ids are sorted ascending, which is serial order because
    serials are zero-padded to a fixed width.

    Args:
        directory: Migration script directory

    Returns:
        Sorted list of migration ids (empty for an empty directory)

    Raises:
        MigrationFileError: If the directory cannot be listed
    """
    directory = Path(directory)
    try:
        names = [entry.name for entry in directory.iterdir()]
    except OSError as e:
        raise MigrationFileError(f"could not list migrations in {directory}: {e}") from e

    migrations = sorted(
        name[:-len(UP_SUFFIX)] for name in names if name.endswith(UP_SUFFIX)
    )
    logger.debug(f"Found {len(migrations)} migrations in {directory}")
    return migrations


def up_script(directory: Union[str, Path], migration_id: str) -> Path:
    """Path of the up-script for a migration."""
    return Path(directory) / f"{migration_id}{UP_SUFFIX}"


def down_script(directory: Union[str, Path], migration_id: str) -> Path:
    """Path of the down-script for a migration."""
    return Path(directory) / f"{migration_id}{DOWN_SUFFIX}"
