"""
Database access for fly

Connections run in autocommit mode; writes that must succeed or fail
together are wrapped in an explicit transaction() so that migration scripts
and ledger writes of one batch commit or roll back as a unit.
"""

import logging
import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Union

from .errors import ConnectivityError, LedgerError, MigrationFileError, ScriptError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0

_COMMENT = re.compile(r"--[^\n]*|/\*.*?\*/", re.DOTALL)


def connect(database: Union[str, Path], timeout: float = DEFAULT_TIMEOUT) -> sqlite3.Connection:
    """
    Open the target database.

    Args:
        database: Path to the SQLite database file (":memory:" is accepted)
        timeout: Seconds to wait for a lock held by another connection

    Returns:
        Connection in autocommit mode; use transaction() to group writes

    Raises:
        ConnectivityError: If the database cannot be opened
    """
    try:
        conn = sqlite3.connect(str(database), timeout=timeout, isolation_level=None)
    except sqlite3.Error as e:
        raise ConnectivityError(f"could not open database {database}: {e}") from e

    logger.debug(f"Connected to {database}")
    return conn


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """
    Scope a transaction on the connection.

    Commits when the block finishes; rolls back and re-raises on any
    exception, leaving the database as it was before the block.

    Raises:
        LedgerError: If the transaction cannot be started or committed
    """
    try:
        conn.execute("BEGIN")
    except sqlite3.Error as e:
        raise LedgerError("begin transaction", str(e)) from e

    try:
        yield conn
    except BaseException:
        conn.rollback()
        logger.info("Transaction rolled back")
        raise

    try:
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        logger.info("Transaction rolled back after failed commit")
        raise LedgerError("commit transaction", str(e)) from e
    logger.debug("Transaction committed")


def split_statements(script: str) -> List[str]:
    """
    Split an SQL script into complete statements.

    Semicolons inside literals, comments and trigger bodies do not end a
    statement; completeness is decided by sqlite3.complete_statement().
    Chunks holding only comments are dropped.
    """
    statements = []
    buffer = ""
    pieces = script.split(";")
    for piece in pieces[:-1]:
        buffer += piece + ";"
        if sqlite3.complete_statement(buffer):
            if _has_sql(buffer):
                statements.append(buffer.strip())
            buffer = ""
    buffer += pieces[-1]
    if _has_sql(buffer):
        statements.append(buffer.strip())
    return statements


def _has_sql(chunk: str) -> bool:
    return bool(_COMMENT.sub("", chunk).replace(";", "").strip())


def run_script(conn: sqlite3.Connection, path: Union[str, Path]) -> None:
    """
    Execute an SQL script inside the open transaction.

    The whole file is run as a single batch, statement by statement, without
    committing.

    Raises:
        MigrationFileError: If the script cannot be read
        ScriptError: If the SQL fails
    """
    path = Path(path)
    try:
        script = path.read_text()
    except OSError as e:
        raise MigrationFileError(f"could not read {path}: {e}") from e

    logger.debug(f"Running {path}")
    try:
        for statement in split_statements(script):
            conn.execute(statement)
    except sqlite3.Error as e:
        raise ScriptError(path, str(e)) from e
