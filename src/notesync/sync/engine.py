"""Index synchronization engine.

Keeps the vector index in step with the note store:

  upsert         chunk → id → batched add → persist → record state + flag
  sweep          remove every chunk of a parent key
  delete_entity  sweep a note and all of its attachments
  rebuild_all    lazily walk every note, skipping what is already indexed

Chunk ids are ``"{parent_key}-{ordinal}"`` (see notesync.chunking.identity).
Note keys are ints, attachment keys are their stored paths.

The engine is synchronous and takes no locks; callers serialize mutating
calls per parent key (see notesync.sync.service).
"""

from __future__ import annotations

import hashlib
import logging
import sqlite3
from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, nullcontext

from notesync.chunking.base import BaseChunker
from notesync.chunking.identity import chunk_id, chunk_ids
from notesync.chunking.markdown import MarkdownChunker
from notesync.chunking.token import TokenChunker
from notesync.db.models import IS_ATTACHMENTS_INDEXED, IS_INDEXED, Note
from notesync.db.repository import Repository
from notesync.errors import (
    ChunkError,
    FlagUpdateError,
    IndexWriteError,
    RecordNotFoundError,
)
from notesync.index.gateway import IndexRecord, VectorIndexGateway
from notesync.loaders import ContentLoader
from notesync.sync.events import ProgressEvent, ProgressStatus
from notesync.sync.results import OperationResult

logger = logging.getLogger(__name__)

ParentKey = int | str
KeyGuard = Callable[[ParentKey], AbstractContextManager]

INSERT = "insert"
UPDATE = "update"
_MODES = (INSERT, UPDATE)


def content_hash(content: str) -> str:
    """SHA-256 of *content*, used to tell whether a parent needs re-embedding."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class IndexSyncEngine:
    """Orchestrates chunking and vector writes for notes and attachments.

    Args:
        repo: Note store.
        index: Vector index gateway.
        loader: Turns attachment paths into text.
        note_chunker: Splitter for note bodies (structural, Markdown-aware).
        attachment_chunker: Splitter for attachment text (fixed token window).
        write_batch_size: Records per ``index.add()`` call.
        rebuild_batch_size: Notes read from the store per page during rebuild.
        max_sweep_ordinals: Upper bound on ordinals probed by a deletion sweep.
    """

    def __init__(
        self,
        repo: Repository,
        index: VectorIndexGateway,
        loader: ContentLoader | None = None,
        *,
        note_chunker: BaseChunker | None = None,
        attachment_chunker: BaseChunker | None = None,
        write_batch_size: int = 5,
        rebuild_batch_size: int = 5,
        max_sweep_ordinals: int = 10_000,
    ) -> None:
        if write_batch_size < 1 or rebuild_batch_size < 1 or max_sweep_ordinals < 1:
            raise ValueError("batch sizes and max_sweep_ordinals must be >= 1")
        self._repo = repo
        self._index = index
        self._loader = loader or ContentLoader()
        self.note_chunker = note_chunker or MarkdownChunker()
        self.attachment_chunker = attachment_chunker or TokenChunker()
        self.write_batch_size = write_batch_size
        self.rebuild_batch_size = rebuild_batch_size
        self.max_sweep_ordinals = max_sweep_ordinals

    # ------------------------------------------------------------------
    # Upsert
    # ------------------------------------------------------------------

    def upsert(self, parent_key: ParentKey, content: str, mode: str = INSERT) -> OperationResult:
        """Chunk *content* and write it to the index under *parent_key*.

        ``mode="update"`` sweeps the parent's existing chunks first, so a
        shorter new version leaves no stale ordinals behind. Note keys (int)
        use the note chunker; attachment keys (str) the attachment chunker.

        Never raises; failures come back as ``OperationResult(ok=False)``.
        """
        try:
            count = self._index_content(parent_key, content, mode, self._owner_of(parent_key))
        except Exception as exc:
            logger.error("Upsert of %r failed: %s", parent_key, exc)
            return OperationResult.failure(exc)
        return OperationResult.success(chunk_count=count)

    def _index_content(
        self, parent_key: ParentKey, content: str, mode: str, note_id: int | None
    ) -> int:
        if mode not in _MODES:
            raise ValueError(f"mode must be one of {_MODES}, got {mode!r}")
        if mode == UPDATE:
            self.sweep(parent_key)

        chunker = self.note_chunker if isinstance(parent_key, int) else self.attachment_chunker
        try:
            chunks = chunker.chunk(parent_key, content)
        except Exception as exc:
            raise ChunkError(f"cannot split content of {parent_key!r}: {exc}") from exc

        ids = chunk_ids(parent_key, len(chunks))
        records = [
            IndexRecord(
                id=cid,
                text=c.text,
                metadata={"parent_key": parent_key, "ordinal": c.ordinal, "note_id": note_id},
            )
            for cid, c in zip(ids, chunks)
        ]

        try:
            self._write_batches(parent_key, records)
            self._index.persist()
        except Exception:
            self._index.discard()
            raise

        logger.info("Indexed %r: %d chunks", parent_key, len(records))
        self._record_state(parent_key, content, len(records))
        if isinstance(parent_key, int):
            self._set_flags(parent_key, **{IS_INDEXED: True})
        return len(records)

    def _write_batches(self, parent_key: ParentKey, records: list[IndexRecord]) -> None:
        size = self.write_batch_size
        for number, start in enumerate(range(0, len(records), size), start=1):
            batch = records[start : start + size]
            try:
                self._index.add(batch)
            except Exception as exc:
                raise IndexWriteError(
                    f"batch {number} of {parent_key!r} "
                    f"({batch[0].id}..{batch[-1].id}) failed: {exc}"
                ) from exc
            logger.debug("Wrote batch %d of %r (%d records)", number, parent_key, len(batch))

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def sweep(self, parent_key: ParentKey) -> int:
        """Remove every chunk of *parent_key* from the index. Returns the count.

        When the note store knows the parent's chunk count, that id range is
        deleted in one call. Ordinals above it (or from 0, when the count is
        unknown) are then probed one at a time until the index reports an id
        as absent, persisting after each delete. Probing stops at
        ``max_sweep_ordinals``.

        Raises:
            IndexWriteError: On a storage failure other than "not found".
        """
        removed = 0
        start = 0
        state = self._repo.get_index_state(str(parent_key))
        if state is not None and state.chunk_count > 0:
            removed += self._index.delete(
                chunk_ids(parent_key, state.chunk_count), missing_ok=True
            )
            self._index.persist()
            start = state.chunk_count

        ordinal = start
        while ordinal < self.max_sweep_ordinals:
            try:
                self._index.delete([chunk_id(parent_key, ordinal)])
            except RecordNotFoundError:
                break
            self._index.persist()
            removed += 1
            ordinal += 1
        else:
            logger.warning(
                "Sweep of %r reached the %d-ordinal limit; later chunks may remain",
                parent_key,
                self.max_sweep_ordinals,
            )

        self._clear_state(parent_key)
        if removed:
            logger.info("Removed %d chunks of %r", removed, parent_key)
        return removed

    def delete_entity(self, note_id: int) -> OperationResult:
        """Remove a note's chunks and those of all its attachments.

        Call before deleting the note row, so its attachments can be found.
        Deleting a note that was never indexed is a successful no-op.
        """
        removed = 0
        try:
            removed += self.sweep(note_id)
            for attachment in self._repo.list_attachments(note_id):
                removed += self.sweep(attachment.path)
        except Exception as exc:
            logger.error("Delete of note %s failed: %s", note_id, exc)
            return OperationResult.failure(exc)

        if self._repo.get_note(note_id) is not None:
            self._set_flags(note_id, **{IS_INDEXED: False, IS_ATTACHMENTS_INDEXED: False})
        return OperationResult.success(chunk_count=removed)

    # ------------------------------------------------------------------
    # Attachments
    # ------------------------------------------------------------------

    def index_attachment(self, note_id: int, path: str, mode: str = INSERT) -> OperationResult:
        """Load the file at *path* and upsert its text under the path key."""
        try:
            text = self._loader.load_text(path)
            count = self._index_content(path, text, mode, note_id)
        except Exception as exc:
            logger.error("Indexing attachment %s failed: %s", path, exc)
            self._set_flags(note_id, **{IS_ATTACHMENTS_INDEXED: False})
            return OperationResult.failure(exc)
        return OperationResult.success(chunk_count=count)

    def index_attachments(self, note_id: int) -> OperationResult:
        """Index every attachment of a note unless its attachments flag is set."""
        note = self._repo.get_note(note_id, with_attachments=True)
        if note is None:
            return OperationResult.failure(LookupError(f"note {note_id} not found"))
        if note.is_attachments_indexed:
            return OperationResult.success(message="already indexed")
        return self._index_note_attachments(note)

    def remove_attachment(self, path: str) -> OperationResult:
        """Remove the chunks of one attachment."""
        try:
            removed = self.sweep(path)
        except Exception as exc:
            logger.error("Removing attachment %s failed: %s", path, exc)
            return OperationResult.failure(exc)
        return OperationResult.success(chunk_count=removed)

    def _index_note_attachments(self, note: Note) -> OperationResult:
        """Index each attachment; the flag is set only if all of them succeed."""
        total = 0
        first_failure: OperationResult | None = None
        for attachment in note.attachments:
            known = self._repo.get_index_state(attachment.path) is not None
            result = self.index_attachment(note.id, attachment.path, UPDATE if known else INSERT)
            if result.ok:
                total += result.chunk_count or 0
            elif first_failure is None:
                first_failure = result
        if first_failure is not None:
            return first_failure
        self._set_flags(note.id, **{IS_ATTACHMENTS_INDEXED: True})
        return OperationResult.success(chunk_count=total)

    # ------------------------------------------------------------------
    # Rebuild
    # ------------------------------------------------------------------

    def rebuild_all(self, key_guard: KeyGuard | None = None) -> Iterator[ProgressEvent]:
        """Walk every note and make sure its chunks are in the index.

        Lazy and single-pass: work happens as the caller iterates, so breaking
        out of the loop stops the rebuild. Notes already processed stay
        indexed. One failing note yields an ``error`` event and the walk
        continues.

        Args:
            key_guard: Optional factory returning a context manager held
                while one note is processed (e.g. a per-key lock). It is
                released before the event is yielded.
        """
        guard = key_guard or (lambda key: nullcontext())
        total = self._repo.count_notes()
        current = 0
        logger.info("Rebuilding index for %d notes", total)

        for batch in self._repo.iter_notes(self.rebuild_batch_size):
            for listed in batch:
                current += 1
                total = max(total, current)
                note = listed
                try:
                    with guard(listed.id):
                        note = self._repo.get_note(listed.id, with_attachments=True)
                        if note is None:
                            logger.debug("Note %s was deleted during rebuild", listed.id)
                            note, status = listed, ProgressStatus.SKIP
                        else:
                            status = self._rebuild_note(note)
                except Exception as exc:
                    logger.error("Rebuild failed for note %s: %s", listed.id, exc)
                    yield ProgressEvent(
                        ProgressStatus.ERROR, note.preview, current, total, listed.id, exc
                    )
                    continue
                yield ProgressEvent(status, note.preview, current, total, note.id)

    def _rebuild_note(self, note: Note) -> ProgressStatus:
        state = self._repo.get_index_state(str(note.id))
        if note.is_indexed and (
            state is None or state.content_hash == content_hash(note.content)
        ):
            logger.debug("Skipping note %s (already indexed)", note.id)
            return ProgressStatus.SKIP

        mode = UPDATE if note.is_indexed or state is not None else INSERT
        self._index_content(note.id, note.content, mode, note.id)

        if note.attachments and not note.is_attachments_indexed:
            result = self._index_note_attachments(note)
            if not result.ok:
                raise result.error
        return ProgressStatus.SUCCESS

    # ------------------------------------------------------------------
    # Note store bookkeeping (best-effort)
    # ------------------------------------------------------------------

    def _owner_of(self, parent_key: ParentKey) -> int | None:
        if isinstance(parent_key, int):
            return parent_key
        attachment = self._repo.get_attachment_by_path(parent_key)
        return attachment.note_id if attachment else None

    def _set_flags(self, note_id: int, **flags: bool) -> None:
        try:
            self._repo.update_note_flags(note_id, **flags)
        except (sqlite3.Error, LookupError) as exc:
            logger.warning("%s", FlagUpdateError(f"note {note_id}: cannot set {flags}: {exc}"))

    def _record_state(self, parent_key: ParentKey, content: str, count: int) -> None:
        try:
            self._repo.set_index_state(str(parent_key), content_hash(content), count)
        except sqlite3.Error as exc:
            logger.warning("%s", FlagUpdateError(f"{parent_key!r}: cannot record index state: {exc}"))

    def _clear_state(self, parent_key: ParentKey) -> None:
        try:
            self._repo.delete_index_state(str(parent_key))
        except sqlite3.Error as exc:
            logger.warning("%s", FlagUpdateError(f"{parent_key!r}: cannot clear index state: {exc}"))
