"""notesync relational store."""

from notesync.db.connection import Database
from notesync.db.migrations import MIGRATIONS, run_migrations
from notesync.db.repository import Repository
from notesync.db.schema import initialize

__all__ = [
    "Database",
    "Repository",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
]
