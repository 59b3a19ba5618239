"""Repository pattern for all note-store operations.

Single interface for: notes, attachments, indexed-flag metadata, and the
per-parent index state used by the sync engine.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator

from notesync.db.models import Attachment, IndexState, Note

_NOTE_COLUMNS = "id, content, metadata, created_at, updated_at"
_ATTACHMENT_COLUMNS = "id, note_id, name, path, created_at"


class Repository:
    """Data access layer for notes, attachments, and index state.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with the schema initialised
                (see notesync.db.schema.initialize).
        """
        self._conn = conn

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def add_note(self, content: str, metadata: dict | None = None) -> int:
        """Insert a note and return its id."""
        cur = self._conn.execute(
            "INSERT INTO notes (content, metadata) VALUES (?, ?)",
            (content, json.dumps(metadata or {})),
        )
        self._conn.commit()
        return cur.lastrowid

    def get_note(self, note_id: int, *, with_attachments: bool = False) -> Note | None:
        """Return a note by id, or None if not found."""
        row = self._conn.execute(
            f"SELECT {_NOTE_COLUMNS} FROM notes WHERE id = ?", (note_id,)
        ).fetchone()
        if row is None:
            return None
        note = _row_to_note(row)
        if with_attachments:
            note.attachments = self.list_attachments(note_id)
        return note

    def update_note_content(self, note_id: int, content: str) -> None:
        """Replace the content of a note and bump updated_at."""
        self._conn.execute(
            "UPDATE notes SET content = ?, updated_at = datetime('now') WHERE id = ?",
            (content, note_id),
        )
        self._conn.commit()

    def delete_note(self, note_id: int) -> None:
        """Delete a note. Its attachment rows cascade."""
        self._conn.execute("DELETE FROM notes WHERE id = ?", (note_id,))
        self._conn.commit()

    def count_notes(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM notes").fetchone()[0]

    def list_notes(self) -> list[Note]:
        """Return every note ordered by id (attachments not loaded)."""
        rows = self._conn.execute(
            f"SELECT {_NOTE_COLUMNS} FROM notes ORDER BY id"
        ).fetchall()
        return [_row_to_note(r) for r in rows]

    def iter_notes(self, batch_size: int = 5) -> Iterator[list[Note]]:
        """Yield notes (with attachments) in id order, *batch_size* at a time.

        Keyset pagination keeps at most one batch in memory and tolerates
        notes being inserted or deleted between batches.
        """
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        last_id = 0
        while True:
            rows = self._conn.execute(
                f"SELECT {_NOTE_COLUMNS} FROM notes WHERE id > ? ORDER BY id LIMIT ?",
                (last_id, batch_size),
            ).fetchall()
            if not rows:
                return
            notes = [_row_to_note(r) for r in rows]
            self._attach_all(notes)
            yield notes
            last_id = notes[-1].id

    def get_notes_by_ids(self, note_ids: list[int]) -> list[Note]:
        """Bulk-load notes with their attachments. Order is unspecified."""
        if not note_ids:
            return []
        placeholders = ",".join("?" * len(note_ids))
        rows = self._conn.execute(
            f"SELECT {_NOTE_COLUMNS} FROM notes WHERE id IN ({placeholders})",
            list(note_ids),
        ).fetchall()
        notes = [_row_to_note(r) for r in rows]
        self._attach_all(notes)
        return notes

    def update_note_flags(self, note_id: int, **flags: bool) -> None:
        """Merge *flags* into the note's metadata JSON.

        Raises:
            LookupError: If the note does not exist.
        """
        row = self._conn.execute(
            "SELECT metadata FROM notes WHERE id = ?", (note_id,)
        ).fetchone()
        if row is None:
            raise LookupError(f"note {note_id} not found")
        try:
            metadata = json.loads(row["metadata"] or "{}")
        except json.JSONDecodeError:
            metadata = {}
        if not isinstance(metadata, dict):
            metadata = {}
        metadata.update(flags)
        self._conn.execute(
            "UPDATE notes SET metadata = ? WHERE id = ?",
            (json.dumps(metadata), note_id),
        )
        self._conn.commit()

    def clear_index_flags(self) -> int:
        """Reset both indexed flags on every note. Returns the number of notes touched."""
        cur = self._conn.execute(
            "UPDATE notes SET metadata = json_remove(metadata, '$.isIndexed', '$.isAttachmentsIndexed')"
        )
        self._conn.commit()
        return cur.rowcount

    def count_indexed_notes(self) -> int:
        return self._conn.execute(
            "SELECT COUNT(*) FROM notes WHERE json_extract(metadata, '$.isIndexed') = 1"
        ).fetchone()[0]

    # ------------------------------------------------------------------
    # Attachments
    # ------------------------------------------------------------------

    def add_attachment(self, note_id: int, name: str, path: str) -> int:
        cur = self._conn.execute(
            "INSERT INTO attachments (note_id, name, path) VALUES (?, ?, ?)",
            (note_id, name, path),
        )
        self._conn.commit()
        return cur.lastrowid

    def list_attachments(self, note_id: int) -> list[Attachment]:
        rows = self._conn.execute(
            f"SELECT {_ATTACHMENT_COLUMNS} FROM attachments WHERE note_id = ? ORDER BY id",
            (note_id,),
        ).fetchall()
        return [_row_to_attachment(r) for r in rows]

    def get_attachment_by_path(self, path: str) -> Attachment | None:
        row = self._conn.execute(
            f"SELECT {_ATTACHMENT_COLUMNS} FROM attachments WHERE path = ?", (path,)
        ).fetchone()
        return _row_to_attachment(row) if row else None

    def delete_attachment(self, path: str) -> None:
        self._conn.execute("DELETE FROM attachments WHERE path = ?", (path,))
        self._conn.commit()

    # ------------------------------------------------------------------
    # Index state
    # ------------------------------------------------------------------

    def get_index_state(self, parent_key: str) -> IndexState | None:
        row = self._conn.execute(
            "SELECT parent_key, content_hash, chunk_count, indexed_at "
            "FROM index_state WHERE parent_key = ?",
            (parent_key,),
        ).fetchone()
        if row is None:
            return None
        return IndexState(
            parent_key=row["parent_key"],
            content_hash=row["content_hash"],
            chunk_count=row["chunk_count"],
            indexed_at=row["indexed_at"],
        )

    def set_index_state(self, parent_key: str, content_hash: str, chunk_count: int) -> None:
        """Upsert the index state for *parent_key* and reset indexed_at."""
        self._conn.execute(
            """
            INSERT INTO index_state (parent_key, content_hash, chunk_count)
            VALUES (?, ?, ?)
            ON CONFLICT(parent_key) DO UPDATE SET
                content_hash = excluded.content_hash,
                chunk_count = excluded.chunk_count,
                indexed_at = datetime('now')
            """,
            (parent_key, content_hash, chunk_count),
        )
        self._conn.commit()

    def delete_index_state(self, parent_key: str) -> None:
        self._conn.execute(
            "DELETE FROM index_state WHERE parent_key = ?", (parent_key,)
        )
        self._conn.commit()

    def total_indexed_chunks(self) -> int:
        row = self._conn.execute(
            "SELECT COALESCE(SUM(chunk_count), 0) FROM index_state"
        ).fetchone()
        return row[0]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _attach_all(self, notes: list[Note]) -> None:
        """Load attachments for *notes* with a single query."""
        if not notes:
            return
        by_id = {n.id: n for n in notes}
        placeholders = ",".join("?" * len(by_id))
        rows = self._conn.execute(
            f"SELECT {_ATTACHMENT_COLUMNS} FROM attachments "
            f"WHERE note_id IN ({placeholders}) ORDER BY id",
            list(by_id),
        ).fetchall()
        for r in rows:
            by_id[r["note_id"]].attachments.append(_row_to_attachment(r))


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------


def _row_to_note(row: sqlite3.Row) -> Note:
    return Note(
        id=row["id"],
        content=row["content"],
        metadata=row["metadata"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_attachment(row: sqlite3.Row) -> Attachment:
    return Attachment(
        id=row["id"],
        note_id=row["note_id"],
        name=row["name"],
        path=row["path"],
        created_at=row["created_at"],
    )
