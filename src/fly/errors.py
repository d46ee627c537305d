"""
Error types for fly

Every failure surfaced by the migration runner derives from FlyError so the
CLI can report it uniformly and exit non-zero.
"""

from pathlib import Path
from typing import Optional


class FlyError(Exception):
    """Base exception for migration runner errors"""
    pass


class ConfigError(FlyError):
    """Raised when the configuration file cannot be read or is malformed"""
    pass


class ConnectivityError(FlyError):
    """Raised when the target database cannot be opened"""
    pass


class LedgerError(FlyError):
    """Raised when a query against the migration ledger fails"""

    def __init__(self, operation: str, message: str, migration_id: Optional[str] = None):
        self.operation = operation
        self.migration_id = migration_id
        if migration_id:
            super().__init__(f"could not {operation} migration {migration_id}: {message}")
        else:
            super().__init__(f"could not {operation}: {message}")


class ScriptError(FlyError):
    """Raised when a migration script fails to execute"""

    def __init__(self, path: Path, message: str):
        self.path = Path(path)
        super().__init__(f"could not run {self.path}: {message}")


class MigrationFileError(FlyError):
    """Raised for filesystem failures on migration scripts or directories"""
    pass


class MigrationFilenameError(MigrationFileError):
    """Raised when a migration filename has a malformed serial prefix"""
    pass


__all__ = [
    "FlyError",
    "ConfigError",
    "ConnectivityError",
    "LedgerError",
    "ScriptError",
    "MigrationFileError",
    "MigrationFilenameError",
]
