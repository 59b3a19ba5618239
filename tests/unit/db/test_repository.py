"""Tests for Repository — notes, attachments, flags, and index state."""

from __future__ import annotations

import json

import pytest

from notesync.db.models import IS_ATTACHMENTS_INDEXED, IS_INDEXED


# ------------------------------------------------------------------
# Notes
# ------------------------------------------------------------------


def test_add_and_get_note(repo):
    note_id = repo.add_note("# Title\n\nBody")
    note = repo.get_note(note_id)
    assert note is not None
    assert note.content == "# Title\n\nBody"
    assert note.metadata_dict == {}
    assert not note.is_indexed


def test_get_missing_note_returns_none(repo):
    assert repo.get_note(999) is None


def test_update_note_content(repo):
    note_id = repo.add_note("old")
    repo.update_note_content(note_id, "new")
    assert repo.get_note(note_id).content == "new"


def test_delete_note_cascades_attachments(repo):
    note_id = repo.add_note("n")
    repo.add_attachment(note_id, "a.pdf", "1/a.pdf")
    repo.delete_note(note_id)
    assert repo.get_note(note_id) is None
    assert repo.get_attachment_by_path("1/a.pdf") is None


def test_preview_is_first_30_chars(repo):
    note_id = repo.add_note("x" * 40)
    assert repo.get_note(note_id).preview == "x" * 30


def test_iter_notes_pages_in_id_order(repo):
    ids = [repo.add_note(f"note {i}") for i in range(7)]
    batches = list(repo.iter_notes(batch_size=5))
    assert [len(b) for b in batches] == [5, 2]
    assert [n.id for b in batches for n in b] == ids


def test_iter_notes_loads_attachments(repo):
    note_id = repo.add_note("n")
    repo.add_attachment(note_id, "a.txt", "1/a.txt")
    (batch,) = list(repo.iter_notes())
    assert [a.path for a in batch[0].attachments] == ["1/a.txt"]


def test_iter_notes_rejects_zero_batch(repo):
    with pytest.raises(ValueError):
        next(repo.iter_notes(batch_size=0))


def test_get_notes_by_ids(repo):
    a = repo.add_note("a")
    repo.add_note("b")
    c = repo.add_note("c")
    notes = repo.get_notes_by_ids([c, a, 12345])
    assert sorted(n.id for n in notes) == [a, c]


def test_get_notes_by_ids_empty(repo):
    assert repo.get_notes_by_ids([]) == []


# ------------------------------------------------------------------
# Flags
# ------------------------------------------------------------------


def test_update_note_flags_merges(repo):
    note_id = repo.add_note("n", metadata={"color": "red"})
    repo.update_note_flags(note_id, **{IS_INDEXED: True})
    repo.update_note_flags(note_id, **{IS_ATTACHMENTS_INDEXED: True})
    note = repo.get_note(note_id)
    assert note.metadata_dict == {
        "color": "red",
        IS_INDEXED: True,
        IS_ATTACHMENTS_INDEXED: True,
    }
    assert note.is_indexed and note.is_attachments_indexed


def test_update_note_flags_missing_note_raises(repo):
    with pytest.raises(LookupError):
        repo.update_note_flags(42, **{IS_INDEXED: True})


def test_update_note_flags_repairs_bad_metadata(repo, tmp_db):
    note_id = repo.add_note("n")
    tmp_db.execute("UPDATE notes SET metadata = 'not json' WHERE id = ?", (note_id,))
    repo.update_note_flags(note_id, **{IS_INDEXED: True})
    assert json.loads(repo.get_note(note_id).metadata) == {IS_INDEXED: True}


def test_clear_index_flags(repo):
    a = repo.add_note("a", metadata={IS_INDEXED: True, "keep": 1})
    repo.add_note("b", metadata={IS_ATTACHMENTS_INDEXED: True})
    assert repo.count_indexed_notes() == 1
    repo.clear_index_flags()
    assert repo.count_indexed_notes() == 0
    assert repo.get_note(a).metadata_dict == {"keep": 1}


# ------------------------------------------------------------------
# Attachments
# ------------------------------------------------------------------


def test_list_attachments_in_insert_order(repo):
    note_id = repo.add_note("n")
    repo.add_attachment(note_id, "b.pdf", "1/b.pdf")
    repo.add_attachment(note_id, "a.pdf", "1/a.pdf")
    assert [a.path for a in repo.list_attachments(note_id)] == ["1/b.pdf", "1/a.pdf"]


def test_get_attachment_by_path(repo):
    note_id = repo.add_note("n")
    repo.add_attachment(note_id, "a.pdf", "1/a.pdf")
    att = repo.get_attachment_by_path("1/a.pdf")
    assert att.note_id == note_id
    assert att.name == "a.pdf"


def test_delete_attachment(repo):
    note_id = repo.add_note("n")
    repo.add_attachment(note_id, "a.pdf", "1/a.pdf")
    repo.delete_attachment("1/a.pdf")
    assert repo.list_attachments(note_id) == []


# ------------------------------------------------------------------
# Index state
# ------------------------------------------------------------------


def test_index_state_roundtrip(repo):
    assert repo.get_index_state("1") is None
    repo.set_index_state("1", "hash-a", 3)
    state = repo.get_index_state("1")
    assert (state.content_hash, state.chunk_count) == ("hash-a", 3)


def test_set_index_state_overwrites(repo):
    repo.set_index_state("1", "hash-a", 3)
    repo.set_index_state("1", "hash-b", 1)
    state = repo.get_index_state("1")
    assert (state.content_hash, state.chunk_count) == ("hash-b", 1)


def test_delete_index_state(repo):
    repo.set_index_state("1", "h", 2)
    repo.delete_index_state("1")
    assert repo.get_index_state("1") is None


def test_total_indexed_chunks(repo):
    assert repo.total_indexed_chunks() == 0
    repo.set_index_state("1", "h", 2)
    repo.set_index_state("doc.pdf", "h", 5)
    assert repo.total_indexed_chunks() == 7
