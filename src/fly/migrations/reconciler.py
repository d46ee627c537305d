"""
Migration Reconciler for fly

Brings the database in line with the migration directory.

Pattern:
- "up" applies every directory migration missing from the ledger, in id order
- "down" reverts the most recently applied migrations, newest first
- Each run is one batch in one transaction: all of it commits or none of it
"""

import logging
import sqlite3
from pathlib import Path
from typing import Callable, List, Optional, Union

from ..database import run_script, transaction
from .ledger import LedgerStore
from .scanner import down_script, list_migrations, up_script

logger = logging.getLogger(__name__)


class Reconciler:
    """
    Reconciler - Applies and reverts migrations against the ledger

    Example:
        conn = connect("app.sqlite")
        reconciler = Reconciler(conn, LedgerStore(conn), Path("migrations"))
        for migration_id in reconciler.apply_pending():
            print(f"applied {migration_id}")
    """

    def __init__(self,
                 conn: sqlite3.Connection,
                 ledger: LedgerStore,
                 sourcedir: Union[str, Path],
                 echo: Optional[Callable[[str], None]] = None):
        """
        Initialize Reconciler.

        Args:
            conn: Open database connection shared with the ledger
            ledger: Ledger store bound to the same connection
            sourcedir: Directory holding the migration scripts
            echo: Optional callback receiving one progress line per migration
        """
        self.conn = conn
        self.ledger = ledger
        self.sourcedir = Path(sourcedir)
        self._echo = echo

    def _emit(self, line: str) -> None:
        if self._echo is not None:
            self._echo(line)

    def pending(self) -> List[str]:
        """
        Get migrations present in the directory but not in the ledger.

        Returns:
            Pending migration ids in ascending order
        """
        available = list_migrations(self.sourcedir)
        applied = set(self.ledger.applied_ids())
        return [migration_id for migration_id in available if migration_id not in applied]

    def apply_pending(self, dry_run: bool = False) -> List[str]:
        """
        Apply all pending migrations in one transaction.

        Args:
            dry_run: If True, only report what would be applied

        Returns:
            Ids applied (or that would be applied) in order

        Raises:
            FlyError: If any script or ledger write fails; the whole batch
                      is rolled back
        """
        pending = self.pending()

        if dry_run:
            for migration_id in pending:
                self._emit(f"pending {migration_id}")
            return pending

        if not pending:
            logger.info("No pending migrations")
            return []

        applied = []
        with transaction(self.conn):
            for migration_id in pending:
                run_script(self.conn, up_script(self.sourcedir, migration_id))
                self.ledger.register(migration_id)
                applied.append(migration_id)
                self._emit(f"up {migration_id}")

        logger.info(f"Applied {len(applied)} migrations")
        return applied

    def revert_last(self, count: int = 1) -> List[str]:
        """
        Revert the most recently applied migrations in one transaction.

        Asking for more migrations than are applied reverts all of them.

        Args:
            count: Number of migrations to revert (>= 1)

        Returns:
            Ids reverted, most recent first

        Raises:
            ValueError: If count is less than 1
            FlyError: If any script or ledger write fails; the whole batch
                      is rolled back
        """
        if count < 1:
            raise ValueError(f"Revert count must be >= 1, got {count}")

        records = self.ledger.list_applied()
        selected = [record.id for record in reversed(records[-count:])]

        if not selected:
            logger.info("No applied migrations to revert")
            return []

        with transaction(self.conn):
            for migration_id in selected:
                run_script(self.conn, down_script(self.sourcedir, migration_id))
                self.ledger.unregister(migration_id)
                self._emit(f"down {migration_id}")

        logger.info(f"Reverted {len(selected)} migrations")
        return selected
