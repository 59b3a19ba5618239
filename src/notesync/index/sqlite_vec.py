"""sqlite-vec implementation of the vector index gateway.

The index is its own SQLite file, separate from the note store. Per embedding
model it holds two tables, so switching models never mixes vector sizes:

  records_{slug}      id, doc_id (unique chunk id), text, metadata JSON
  vec_records_{slug}  vec0 virtual table, rowid = records id

Writes run inside SQLite's implicit transaction; ``persist()`` commits it and
``discard()`` rolls it back.
"""

from __future__ import annotations

import json
import logging
import re
import sqlite3
from collections.abc import Iterable, Sequence

from notesync.errors import IndexWriteError, RecordNotFoundError
from notesync.index.embeddings import Embedder
from notesync.index.gateway import IndexRecord, SearchHit, VectorIndexGateway

logger = logging.getLogger(__name__)


def model_to_slug(model: str) -> str:
    """Convert a provider/model string to a valid table name suffix.

    Examples:
        "openai/text-embedding-3-small" -> "openai_text_embedding_3_small"
    """
    return re.sub(r"[^a-z0-9]", "_", model.lower())


def records_table_name(model_slug: str) -> str:
    return f"records_{model_slug}"


def vec_table_name(model_slug: str) -> str:
    return f"vec_records_{model_slug}"


def ensure_tables(conn: sqlite3.Connection, model_slug: str, dimensions: int) -> tuple[str, str]:
    """Create the records + vec0 tables for *model_slug* if missing.

    Returns:
        ``(records_table, vec_table)``.
    """
    if not re.fullmatch(r"[a-z0-9_]+", model_slug):
        raise ValueError(
            f"Invalid model_slug '{model_slug}' — use model_to_slug() to sanitize."
        )
    if dimensions < 1:
        raise ValueError(f"dimensions must be >= 1, got {dimensions}")

    records = records_table_name(model_slug)
    vec = vec_table_name(model_slug)
    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS {records} (
            id          INTEGER PRIMARY KEY AUTOINCREMENT,
            doc_id      TEXT NOT NULL UNIQUE,
            text        TEXT NOT NULL,
            metadata    TEXT NOT NULL DEFAULT '{{}}',
            created_at  DATETIME NOT NULL DEFAULT (datetime('now'))
        )
        """
    )
    exists = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?", (vec,)
    ).fetchone()
    if exists is None:
        conn.execute(f"CREATE VIRTUAL TABLE {vec} USING vec0(embedding float[{dimensions}])")
    conn.commit()
    return records, vec


class SqliteVecIndex(VectorIndexGateway):
    """Vector index stored in SQLite via the sqlite-vec extension.

    Args:
        conn: Open connection to the index database with sqlite-vec loaded
            (see notesync.db.connection.Database).
        embedder: Embedding provider; its ``dimensions`` fixes the vec table shape.
        model: Embedding model name, used to derive table names.
        batch_size: Maximum records embedded per request inside ``add()``.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        embedder: Embedder,
        model: str,
        batch_size: int = 5,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._conn = conn
        self._embedder = embedder
        self._batch_size = batch_size
        self.model = model
        self._records, self._vec = ensure_tables(
            conn, model_to_slug(model), embedder.dimensions
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add(self, records: Sequence[IndexRecord]) -> None:
        for start in range(0, len(records), self._batch_size):
            batch = records[start : start + self._batch_size]
            try:
                vectors = self._embedder.embed_documents([r.text for r in batch])
            except Exception as exc:
                raise IndexWriteError(
                    f"embedding failed for {batch[0].id}..{batch[-1].id}: {exc}"
                ) from exc
            try:
                for record, vector in zip(batch, vectors):
                    self._write_one(record, vector)
            except sqlite3.Error as exc:
                raise IndexWriteError(f"write failed at {batch[0].id}: {exc}") from exc

    def _write_one(self, record: IndexRecord, vector: list[float]) -> None:
        existing = self._conn.execute(
            f"SELECT id FROM {self._records} WHERE doc_id = ?", (record.id,)
        ).fetchone()
        if existing is not None:
            self._remove_rowids([existing["id"]])
        cur = self._conn.execute(
            f"INSERT INTO {self._records} (doc_id, text, metadata) VALUES (?, ?, ?)",
            (record.id, record.text, json.dumps(record.metadata)),
        )
        self._conn.execute(
            f"INSERT INTO {self._vec}(rowid, embedding) VALUES (?, ?)",
            (cur.lastrowid, json.dumps(vector)),
        )

    def delete(self, ids: Iterable[str], *, missing_ok: bool = False) -> int:
        wanted = set(ids)
        if not wanted:
            return 0
        try:
            placeholders = ",".join("?" * len(wanted))
            rows = self._conn.execute(
                f"SELECT id, doc_id FROM {self._records} WHERE doc_id IN ({placeholders})",
                list(wanted),
            ).fetchall()
            missing = wanted - {r["doc_id"] for r in rows}
            if missing and not missing_ok:
                raise RecordNotFoundError(missing)
            self._remove_rowids([r["id"] for r in rows])
        except sqlite3.Error as exc:
            raise IndexWriteError(f"delete failed: {exc}") from exc
        return len(rows)

    def _remove_rowids(self, rowids: list[int]) -> None:
        if not rowids:
            return
        placeholders = ",".join("?" * len(rowids))
        self._conn.execute(f"DELETE FROM {self._vec} WHERE rowid IN ({placeholders})", rowids)
        self._conn.execute(f"DELETE FROM {self._records} WHERE id IN ({placeholders})", rowids)

    def persist(self) -> None:
        try:
            self._conn.commit()
        except sqlite3.Error as exc:
            raise IndexWriteError(f"persist failed: {exc}") from exc

    def discard(self) -> None:
        if self._conn.in_transaction:
            logger.debug("Discarding uncommitted index writes")
        self._conn.rollback()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def similarity_search(self, query: str, k: int = 2) -> list[SearchHit]:
        if k < 1 or self.count() == 0:
            return []
        embedding = self._embedder.embed_query(query)
        vec_rows = self._conn.execute(
            f"SELECT rowid, distance FROM {self._vec} "
            "WHERE embedding MATCH ? ORDER BY distance LIMIT ?",
            (json.dumps(embedding), k),
        ).fetchall()

        hits: list[SearchHit] = []
        for vec_row in vec_rows:
            row = self._conn.execute(
                f"SELECT doc_id, text, metadata FROM {self._records} WHERE id = ?",
                (vec_row["rowid"],),
            ).fetchone()
            if row is None:
                continue
            hits.append(
                SearchHit(
                    id=row["doc_id"],
                    text=row["text"],
                    metadata=json.loads(row["metadata"]),
                    score=1.0 / (1.0 + vec_row["distance"]),
                )
            )
        return hits

    def count(self) -> int:
        return self._conn.execute(f"SELECT COUNT(*) FROM {self._records}").fetchone()[0]

    def ids(self, prefix: str | None = None) -> list[str]:
        if prefix is None:
            rows = self._conn.execute(f"SELECT doc_id FROM {self._records}").fetchall()
        else:
            rows = self._conn.execute(
                f"SELECT doc_id FROM {self._records} WHERE substr(doc_id, 1, ?) = ?",
                (len(prefix), prefix),
            ).fetchall()
        return sorted(r["doc_id"] for r in rows)
