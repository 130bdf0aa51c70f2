"""Database utilities - engine, session, migrations."""

from src.inbox_admin.core.db.engine import Database
from src.inbox_admin.core.db.migrations import run_migrations_async, run_migrations_sync

__all__ = [
    "Database",
    "run_migrations_async",
    "run_migrations_sync",
]
