"""Integration layer: config → components, plus per-key serialization.

IndexService is what the CLI (or any embedding application) talks to. It
owns both SQLite connections, builds the engine and retriever from a
NotesyncConfig, and wraps every mutating call in the lock for the note it
touches. Attachments are serialized under their owning note's key.

Both connections are shared between threads, so a single writer lock is also
held for the duration of each mutation. Locks are always taken in the order
note key → writer.
"""

from __future__ import annotations

import logging
import shutil
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from notesync.chunking.markdown import MarkdownChunker
from notesync.chunking.token import TokenChunker
from notesync.config import NotesyncConfig, load_config
from notesync.db.connection import Database
from notesync.db.repository import Repository
from notesync.db.schema import initialize
from notesync.index.embeddings import Embedder, LiteLLMEmbedder
from notesync.index.sqlite_vec import SqliteVecIndex
from notesync.loaders import AudioLoader, ContentLoader, DocxLoader, HtmlLoader, PdfLoader
from notesync.rag.retriever import Retrieval, RetrievalCoordinator
from notesync.sync.engine import INSERT, UPDATE, IndexSyncEngine
from notesync.sync.events import ProgressEvent
from notesync.sync.results import OperationResult

logger = logging.getLogger(__name__)


class KeyedLocks:
    """Registry handing out one ``threading.Lock`` per key."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[int | str, threading.Lock] = {}

    def lock_for(self, key: int | str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def discard(self, key: int | str) -> None:
        """Forget the lock for *key* unless some caller still holds it."""
        with self._guard:
            lock = self._locks.get(key)
            if lock is not None and not lock.locked():
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class IndexService:
    """Note CRUD that keeps the vector index in sync.

    Args:
        cfg: Loaded configuration. Defaults to ``load_config(project_dir)``.
        project_dir: Directory the storage paths in *cfg* are relative to.
        embedder: Override the embedding provider (tests use a fake).
    """

    def __init__(
        self,
        cfg: NotesyncConfig | None = None,
        project_dir: Path | None = None,
        *,
        embedder: Embedder | None = None,
    ) -> None:
        root = Path(project_dir) if project_dir is not None else Path.cwd()
        self.cfg = cfg if cfg is not None else load_config(root)
        self.root = root
        self.attachments_dir = root / self.cfg.storage.attachments_dir

        self.conn = Database(root / self.cfg.storage.db, check_same_thread=False).connect()
        initialize(self.conn)
        self.index_conn = Database(
            root / self.cfg.storage.index, check_same_thread=False
        ).connect()

        self.repo = Repository(self.conn)
        self.embedder = embedder or LiteLLMEmbedder(
            model=self.cfg.embedding.model,
            dimensions=self.cfg.embedding.dimensions,
            num_retries=self.cfg.embedding.num_retries,
        )
        self.index = SqliteVecIndex(
            self.index_conn,
            self.embedder,
            self.cfg.embedding.model,
            batch_size=self.cfg.index.write_batch_size,
        )
        loader = ContentLoader(
            self.attachments_dir,
            loaders=[
                PdfLoader(),
                DocxLoader(),
                HtmlLoader(),
                AudioLoader(
                    model=self.cfg.loaders.transcription_model,
                    max_mb=self.cfg.loaders.max_audio_mb,
                    num_retries=self.cfg.embedding.num_retries,
                ),
            ],
        )
        chunkers = self.cfg.chunkers
        self.engine = IndexSyncEngine(
            self.repo,
            self.index,
            loader,
            note_chunker=MarkdownChunker(
                chunkers.markdown.chunk_size, chunkers.markdown.overlap
            ),
            attachment_chunker=TokenChunker(
                chunkers.attachment.chunk_size, chunkers.attachment.overlap
            ),
            write_batch_size=self.cfg.index.write_batch_size,
            rebuild_batch_size=self.cfg.index.rebuild_batch_size,
            max_sweep_ordinals=self.cfg.index.max_sweep_ordinals,
        )
        self.retriever = RetrievalCoordinator(self.index, self.repo, self.cfg.retrieval.top_k)
        self.locks = KeyedLocks()
        self._writer = threading.RLock()

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    @contextmanager
    def guard(self, note_id: int) -> Iterator[None]:
        """Hold the lock for *note_id*, then the writer lock."""
        with self.locks.lock_for(note_id), self._writer:
            yield

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def add_note(self, content: str) -> tuple[int, OperationResult]:
        """Store a new note and index it. Returns ``(note_id, result)``."""
        with self._writer:
            note_id = self.repo.add_note(content)
        with self.guard(note_id):
            result = self.engine.upsert(note_id, content, INSERT)
        return note_id, result

    def edit_note(self, note_id: int, content: str) -> OperationResult:
        """Replace a note's content and re-index it.

        Raises:
            LookupError: If the note does not exist.
        """
        with self.guard(note_id):
            if self.repo.get_note(note_id) is None:
                raise LookupError(f"note {note_id} not found")
            self.repo.update_note_content(note_id, content)
            return self.engine.upsert(note_id, content, UPDATE)

    def remove_note(self, note_id: int) -> OperationResult:
        """Remove a note's vectors, then the note and its attachment rows."""
        with self.guard(note_id):
            result = self.engine.delete_entity(note_id)
            if result.ok:
                self.repo.delete_note(note_id)
        if result.ok:
            self.locks.discard(note_id)
        return result

    # ------------------------------------------------------------------
    # Attachments
    # ------------------------------------------------------------------

    def attach(self, note_id: int, source: Path) -> tuple[str, OperationResult]:
        """Copy *source* into the attachments directory and index it.

        Returns:
            ``(stored_path, result)``; *stored_path* is relative to the
            attachments directory and is the attachment's parent key.

        Raises:
            LookupError: If the note does not exist.
            FileNotFoundError: If *source* is not a file.
        """
        source = Path(source)
        if not source.is_file():
            raise FileNotFoundError(source)
        with self.guard(note_id):
            if self.repo.get_note(note_id) is None:
                raise LookupError(f"note {note_id} not found")
            stored = f"{note_id}/{source.name}"
            target = self.attachments_dir / stored
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, target)
            existing = self.repo.get_attachment_by_path(stored)
            if existing is None:
                self.repo.add_attachment(note_id, source.name, stored)
            mode = UPDATE if existing is not None else INSERT
            return stored, self.engine.index_attachment(note_id, stored, mode)

    def detach(self, path: str) -> OperationResult:
        """Remove one attachment's vectors and its row. The file is kept."""
        attachment = self.repo.get_attachment_by_path(path)
        if attachment is not None:
            with self.guard(attachment.note_id):
                # The row may be gone once the lock is ours (remove_note ran first).
                if self.repo.get_attachment_by_path(path) is not None:
                    result = self.engine.remove_attachment(path)
                    if result.ok:
                        self.repo.delete_attachment(path)
                    return result
        return OperationResult.failure(LookupError(f"attachment {path!r} not found"))

    def index_attachments(self, note_id: int) -> OperationResult:
        with self.guard(note_id):
            return self.engine.index_attachments(note_id)

    # ------------------------------------------------------------------
    # Rebuild + retrieval
    # ------------------------------------------------------------------

    def rebuild(self, *, reset: bool = False) -> Iterator[ProgressEvent]:
        """Stream a full rebuild. ``reset=True`` clears all indexed flags first,
        forcing every note to be re-embedded."""
        if reset:
            with self._writer:
                cleared = self.repo.clear_index_flags()
            logger.info("Cleared indexed flags on %d notes", cleared)
        return self.engine.rebuild_all(key_guard=self.guard)

    def retrieve(self, question: str, k: int | None = None) -> Retrieval:
        return self.retriever.retrieve(question, k)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self.conn.close()
        self.index_conn.close()

    def __enter__(self) -> IndexService:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
