"""Vector index gateway — the narrow interface the sync engine writes through.

Contract:
- ``add()`` replaces records whose id already exists; it never duplicates.
- ``delete()`` distinguishes an absent id (RecordNotFoundError) from a storage
  failure (IndexWriteError).
- Nothing is durable until ``persist()``; ``discard()`` drops everything
  written since the last persist.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any


@dataclass
class IndexRecord:
    """A chunk on its way into the index."""

    id: str
    text: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class SearchHit:
    """One similarity search result. Higher ``score`` = more relevant."""

    id: str
    text: str
    metadata: dict[str, Any]
    score: float


class VectorIndexGateway(ABC):
    """Abstract vector store used by the sync engine and retriever."""

    @abstractmethod
    def add(self, records: Sequence[IndexRecord]) -> None:
        """Embed and store *records*, replacing any with the same id.

        Raises:
            IndexWriteError: If embedding or storage fails.
        """

    @abstractmethod
    def delete(self, ids: Iterable[str], *, missing_ok: bool = False) -> int:
        """Remove the records named by *ids*. Returns how many were removed.

        Raises:
            RecordNotFoundError: If any id is absent and *missing_ok* is False.
                Nothing is removed in that case.
            IndexWriteError: On storage failure.
        """

    @abstractmethod
    def similarity_search(self, query: str, k: int = 2) -> list[SearchHit]:
        """Return up to *k* nearest records to *query*, best first."""

    @abstractmethod
    def persist(self) -> None:
        """Make all writes since the last persist durable."""

    @abstractmethod
    def discard(self) -> None:
        """Drop all writes since the last persist."""

    @abstractmethod
    def count(self) -> int:
        """Number of records currently in the index."""

    @abstractmethod
    def ids(self, prefix: str | None = None) -> list[str]:
        """All record ids (optionally only those starting with *prefix*), sorted."""
