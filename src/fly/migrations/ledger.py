"""
Migration Ledger for fly
Tracks which migrations have been applied and when.

This module provides ledger capabilities:
- Create the migration table on demand
- List applied migrations in application order
- Check whether a migration has been applied
- Register and unregister migrations within the caller's transaction
"""

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..errors import LedgerError

logger = logging.getLogger(__name__)

LEDGER_TABLE = "migration"


@dataclass
class AppliedRecord:
    """A migration recorded in the ledger."""
    id: str
    applied_at: Optional[datetime]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "applied_at": self.applied_at.isoformat() if self.applied_at else None,
        }


def _parse_timestamp(value) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


class LedgerStore:
    """
    Ledger Store - Persists the set of applied migration ids

    Pattern: One row per applied migration in the migration table
    Lifetime: Bound to a single connection for one invocation

    Reads run on the connection directly. register() and unregister() never
    commit: they join whatever transaction the caller has open so that a
    ledger row is written together with the script it records.
    """

    def __init__(self, conn: sqlite3.Connection):
        """
        Initialize Ledger Store.

        Args:
            conn: Open database connection (see fly.database.connect)
        """
        self.conn = conn

    def _fail(self, operation: str, error: sqlite3.Error,
              migration_id: Optional[str] = None) -> LedgerError:
        message = str(error)
        if "no such table" in message:
            message = f"{message} (run 'fly init' first)"
        return LedgerError(operation, message, migration_id)

    def ensure_schema(self) -> None:
        """
        Create the migration table if it does not exist.

        Safe to call repeatedly.

        Raises:
            LedgerError: If the table cannot be created
        """
        try:
            self.conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {LEDGER_TABLE} (
                    id TEXT PRIMARY KEY,
                    applied TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            raise self._fail("create migration table", e) from e

        logger.info(f"Ledger table '{LEDGER_TABLE}' is ready")

    def list_applied(self) -> List[AppliedRecord]:
        """
        Get all applied migrations.

        Returns:
            List of AppliedRecord objects ordered by (applied, id) ascending
        """
        try:
            cursor = self.conn.execute(f"""
                SELECT id, applied FROM {LEDGER_TABLE}
                ORDER BY applied, id
            """)
            rows = cursor.fetchall()
        except sqlite3.Error as e:
            raise self._fail("list applied migrations", e) from e

        records = []
        for migration_id, applied in rows:
            try:
                applied_at = _parse_timestamp(applied)
            except ValueError as e:
                raise LedgerError(
                    "list applied migrations",
                    f"invalid applied timestamp {applied!r} for {migration_id}: {e}",
                ) from e
            records.append(AppliedRecord(id=migration_id, applied_at=applied_at))
        return records

    def is_applied(self, migration_id: str) -> bool:
        """
        Check if a migration has been applied.

        Args:
            migration_id: Migration identifier

        Returns:
            True if the migration is recorded, False otherwise
        """
        try:
            cursor = self.conn.execute(
                f"SELECT 1 FROM {LEDGER_TABLE} WHERE id = ?", (migration_id,)
            )
            row = cursor.fetchone()
        except sqlite3.Error as e:
            raise self._fail("check", e, migration_id) from e
        return row is not None

    def applied_ids(self) -> List[str]:
        """Get applied migration ids in application order."""
        return [record.id for record in self.list_applied()]

    def register(self, migration_id: str) -> None:
        """
        Record a migration as applied in the open transaction.

        Raises:
            LedgerError: If the row cannot be inserted (e.g. already applied)
        """
        try:
            self.conn.execute(
                f"INSERT INTO {LEDGER_TABLE} (id) VALUES (?)", (migration_id,)
            )
        except sqlite3.Error as e:
            raise self._fail("register", e, migration_id) from e
        logger.debug(f"Registered {migration_id}")

    def unregister(self, migration_id: str) -> None:
        """
        Remove a migration from the ledger in the open transaction.

        Raises:
            LedgerError: If the row cannot be deleted
        """
        try:
            self.conn.execute(
                f"DELETE FROM {LEDGER_TABLE} WHERE id = ?", (migration_id,)
            )
        except sqlite3.Error as e:
            raise self._fail("unregister", e, migration_id) from e
        logger.debug(f"Unregistered {migration_id}")
