"""Pytest fixtures for fly tests"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fly.database import connect
from fly.migrations.ledger import LedgerStore


@pytest.fixture
def db_path(tmp_path):
    """Path to a fresh SQLite database file."""
    return tmp_path / "fly.sqlite"


@pytest.fixture
def conn(db_path):
    """Open connection to the test database, closed after the test."""
    connection = connect(db_path)
    yield connection
    connection.close()


@pytest.fixture
def ledger(conn):
    """Ledger store with its table already created."""
    store = LedgerStore(conn)
    store.ensure_schema()
    return store


@pytest.fixture
def migrations_dir(tmp_path):
    """Empty migration script directory."""
    path = tmp_path / "migrations"
    path.mkdir()
    return path


@pytest.fixture
def write_migration(migrations_dir):
    """Write an up/down script pair into the migration directory.

    Usage:
        write_migration("0001_users", "CREATE TABLE users (id INTEGER);", "DROP TABLE users;")
    """
    def _write(migration_id: str, up_sql: str = "", down_sql: str = "") -> str:
        (migrations_dir / f"{migration_id}.up.sql").write_text(up_sql)
        (migrations_dir / f"{migration_id}.down.sql").write_text(down_sql)
        return migration_id

    return _write


@pytest.fixture
def table_names():
    """Return a function listing user tables of a connection, sorted."""
    def _names(connection):
        rows = connection.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name"
        ).fetchall()
        return [row[0] for row in rows]

    return _names
