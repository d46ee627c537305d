"""
fly - Minimal database schema-migration runner

Tracks applied SQL migrations, applies pending ones in order, rolls back the
most recent ones, and scaffolds new migration file pairs.
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .config import FlyConfig, resolve_config
from .database import connect, transaction
from .errors import (
    ConfigError,
    ConnectivityError,
    FlyError,
    LedgerError,
    MigrationFileError,
    MigrationFilenameError,
    ScriptError,
)
from .migrations import (
    AppliedRecord,
    LedgerStore,
    Reconciler,
    create_next,
    list_migrations,
    render_status,
)

__all__ = [
    "__version__",
    "FlyConfig",
    "resolve_config",
    "connect",
    "transaction",
    "FlyError",
    "ConfigError",
    "ConnectivityError",
    "LedgerError",
    "MigrationFileError",
    "MigrationFilenameError",
    "ScriptError",
    "AppliedRecord",
    "LedgerStore",
    "Reconciler",
    "create_next",
    "list_migrations",
    "render_status",
]
