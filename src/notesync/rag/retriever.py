"""Question → ranked notes.

  1. similarity_search(question, k) on the vector index
  2. collapse hits to one per note (the best-ranked hit wins)
  3. bulk-load those notes from the note store
  4. order notes by the rank of their best hit

The best hit's text is kept as ``context`` for prompt assembly downstream.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from notesync.chunking.identity import parse_chunk_id
from notesync.db.models import Note
from notesync.db.repository import Repository
from notesync.index.gateway import SearchHit, VectorIndexGateway

logger = logging.getLogger(__name__)


@dataclass
class RetrievedNote:
    """A note matched by a query.

    Attributes:
        note: The note, loaded with its attachments.
        chunk_text: Text of the note's best-ranked chunk.
        rank: 0-based position of that chunk among the search hits.
        score: Similarity score of that chunk (higher = more relevant).
    """

    note: Note
    chunk_text: str
    rank: int
    score: float


@dataclass
class Retrieval:
    hits: list[SearchHit] = field(default_factory=list)
    notes: list[RetrievedNote] = field(default_factory=list)

    @property
    def context(self) -> str:
        """Text of the top hit, or "" when nothing matched."""
        return self.hits[0].text if self.hits else ""


def _note_id_of(hit: SearchHit) -> int | None:
    note_id = hit.metadata.get("note_id")
    if note_id is not None:
        return int(note_id)
    # Records written without metadata: note chunk ids start with the note id.
    try:
        parent_key, _ = parse_chunk_id(hit.id)
    except ValueError:
        return None
    return int(parent_key) if parent_key.isdigit() else None


class RetrievalCoordinator:
    """Answer "which notes are relevant to this question?".

    Args:
        index: Vector index to search.
        repo: Note store used to load the matched notes.
        top_k: Default number of hits requested from the index.
    """

    def __init__(self, index: VectorIndexGateway, repo: Repository, top_k: int = 2) -> None:
        self._index = index
        self._repo = repo
        self.top_k = top_k

    def retrieve(self, question: str, k: int | None = None) -> Retrieval:
        k = self.top_k if k is None else k
        hits = self._index.similarity_search(question, k)
        if not hits:
            return Retrieval()

        best: dict[int, tuple[int, SearchHit]] = {}
        for rank, hit in enumerate(hits):
            note_id = _note_id_of(hit)
            if note_id is None:
                logger.debug("Hit %s has no owning note, ignored", hit.id)
                continue
            best.setdefault(note_id, (rank, hit))

        notes = {n.id: n for n in self._repo.get_notes_by_ids(list(best))}
        results: list[RetrievedNote] = []
        for note_id, (rank, hit) in sorted(best.items(), key=lambda item: item[1][0]):
            note = notes.get(note_id)
            if note is None:
                logger.warning("Index hit %s refers to missing note %s", hit.id, note_id)
                continue
            results.append(RetrievedNote(note, hit.text, rank, hit.score))
        return Retrieval(hits=hits, notes=results)
