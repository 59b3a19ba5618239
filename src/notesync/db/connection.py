"""Open the two SQLite files a notesync project keeps.

``.notesync.db`` holds notes, attachments and per-parent index state;
``.notesync/index.db`` holds the vector records. Both are opened through
Database so they get the same setup: sqlite-vec loaded, rows as
``sqlite3.Row``, foreign keys on, WAL journaling.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import sqlite_vec


class Database:
    """One notesync SQLite file, note store or vector index.

    Args:
        db_path: File to open. Missing parent directories are created, so
            the index file under ``.notesync/`` needs no separate setup.
        check_same_thread: Passed to ``sqlite3.connect()``. IndexService
            shares each connection across threads and passes False; it then
            serializes writes itself.
    """

    def __init__(self, db_path: Path | str, *, check_same_thread: bool = True) -> None:
        self.db_path = Path(db_path)
        self.check_same_thread = check_same_thread
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> sqlite3.Connection:
        """Return a new connection. The caller owns it and must close it."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path, check_same_thread=self.check_same_thread)
        conn.row_factory = sqlite3.Row
        conn.enable_load_extension(True)
        sqlite_vec.load(conn)
        conn.enable_load_extension(False)
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    def __enter__(self) -> sqlite3.Connection:
        self._conn = self.connect()
        return self._conn

    def __exit__(self, *args: object) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None
