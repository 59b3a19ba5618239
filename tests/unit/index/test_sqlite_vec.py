"""Tests for SqliteVecIndex."""

from __future__ import annotations

import pytest

from notesync.errors import IndexWriteError, RecordNotFoundError
from notesync.index.gateway import IndexRecord
from notesync.index.sqlite_vec import (
    SqliteVecIndex,
    ensure_tables,
    model_to_slug,
    records_table_name,
    vec_table_name,
)


def _records(parent, texts):
    return [
        IndexRecord(id=f"{parent}-{i}", text=t, metadata={"note_id": parent, "ordinal": i})
        for i, t in enumerate(texts)
    ]


# ------------------------------------------------------------------
# Tables
# ------------------------------------------------------------------


def test_model_to_slug():
    assert model_to_slug("openai/text-embedding-3-small") == "openai_text_embedding_3_small"


def test_ensure_tables_creates_both(index_conn):
    records, vec = ensure_tables(index_conn, "m", 4)
    assert (records, vec) == (records_table_name("m"), vec_table_name("m"))
    names = {
        r[0] for r in index_conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    }
    assert {records, vec} <= names


def test_ensure_tables_idempotent(index_conn):
    ensure_tables(index_conn, "m", 4)
    ensure_tables(index_conn, "m", 4)


def test_ensure_tables_rejects_unsafe_slug(index_conn):
    with pytest.raises(ValueError):
        ensure_tables(index_conn, "bad; DROP TABLE x", 4)


# ------------------------------------------------------------------
# add / persist / discard
# ------------------------------------------------------------------


def test_add_then_persist(index):
    index.add(_records(1, ["alpha", "beta", "gamma"]))
    index.persist()
    assert index.count() == 3
    assert index.ids() == ["1-0", "1-1", "1-2"]


def test_add_existing_id_replaces(index):
    index.add(_records(1, ["old text"]))
    index.add(_records(1, ["new text"]))
    index.persist()
    assert index.count() == 1
    (hit,) = index.similarity_search("new text", k=5)
    assert hit.text == "new text"


def test_add_batches_embedding_calls(index_conn, embedder):
    idx = SqliteVecIndex(index_conn, embedder, "fake/model", batch_size=2)
    idx.add(_records(1, ["a", "b", "c", "d", "e"]))
    assert [len(call) for call in embedder.calls] == [2, 2, 1]


def test_add_embedding_failure_raises_index_write_error(index, embedder, monkeypatch):
    def boom(texts):
        raise RuntimeError("provider down")

    monkeypatch.setattr(embedder, "embed_documents", boom)
    with pytest.raises(IndexWriteError, match="provider down"):
        index.add(_records(1, ["a"]))


def test_discard_drops_unpersisted_writes(index):
    index.add(_records(1, ["kept"]))
    index.persist()
    index.add(_records(2, ["dropped", "also dropped"]))
    index.discard()
    assert index.ids() == ["1-0"]


def test_invalid_batch_size(index_conn, embedder):
    with pytest.raises(ValueError):
        SqliteVecIndex(index_conn, embedder, "fake/model", batch_size=0)


# ------------------------------------------------------------------
# delete
# ------------------------------------------------------------------


def test_delete_removes_records(index):
    index.add(_records(1, ["a", "b"]))
    index.persist()
    assert index.delete(["1-0"]) == 1
    index.persist()
    assert index.ids() == ["1-1"]


def test_delete_missing_id_raises_not_found(index):
    with pytest.raises(RecordNotFoundError) as excinfo:
        index.delete(["9-0"])
    assert excinfo.value.ids == ["9-0"]
    assert isinstance(excinfo.value, IndexWriteError)


def test_delete_partial_missing_removes_nothing(index):
    index.add(_records(1, ["a"]))
    index.persist()
    with pytest.raises(RecordNotFoundError):
        index.delete(["1-0", "1-1"])
    assert index.ids() == ["1-0"]


def test_delete_missing_ok(index):
    index.add(_records(1, ["a"]))
    assert index.delete(["1-0", "1-1", "1-2"], missing_ok=True) == 1
    assert index.count() == 0


def test_delete_empty_is_noop(index):
    assert index.delete([]) == 0


# ------------------------------------------------------------------
# search / inspection
# ------------------------------------------------------------------


def test_search_empty_index_returns_empty(index):
    assert index.similarity_search("anything", k=2) == []


def test_search_k_zero_returns_empty(index):
    index.add(_records(1, ["a"]))
    assert index.similarity_search("a", k=0) == []


def test_search_best_first(index):
    index.add(_records(1, ["apples and pears", "engine oil change", "pears in syrup"]))
    index.persist()
    hits = index.similarity_search("engine oil", k=3)
    assert hits[0].id == "1-1"
    assert [h.score for h in hits] == sorted((h.score for h in hits), reverse=True)
    assert hits[0].metadata == {"note_id": 1, "ordinal": 1}


def test_search_respects_k(index):
    index.add(_records(1, ["a", "b", "c", "d"]))
    assert len(index.similarity_search("a", k=2)) == 2


def test_ids_prefix(index):
    index.add(_records(1, ["a", "b"]) + _records(12, ["c"]))
    assert index.ids(prefix="1-") == ["1-0", "1-1"]
