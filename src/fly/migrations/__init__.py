"""
fly Migration System

Applies versioned SQL scripts to a database and tracks them in a ledger.

Key Features:
- Ledger of applied migrations in the migration table
- Directory discovery of <serial>_<label>.up.sql / .down.sql pairs
- All-or-nothing batches for up and down
- Scaffolding of the next migration pair
- Status table of applied migrations
"""

from .ledger import AppliedRecord, LedgerStore
from .reconciler import Reconciler
from .scaffold import create_next
from .scanner import list_migrations
from .status import render_status

__all__ = [
    "AppliedRecord",
    "LedgerStore",
    "Reconciler",
    "create_next",
    "list_migrations",
    "render_status",
]
