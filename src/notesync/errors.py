"""Exception taxonomy for the indexing engine.

LoadError        — an attachment could not be read or converted to text.
ChunkError       — a splitter failed on the content it was given.
IndexWriteError  — the vector index rejected an add / delete / persist.
RecordNotFoundError — a delete named an id the index does not hold. Raised by
                   the gateway, used by the deletion sweep as its stop signal.
FlagUpdateError  — the relational metadata write failed. Always logged and
                   swallowed by the engine; a later rebuild repairs it.
"""

from __future__ import annotations

from collections.abc import Iterable


class NotesyncError(Exception):
    """Base class for all engine errors."""


class LoadError(NotesyncError):
    """Raised when a file cannot be turned into text."""

    def __init__(self, path: str, reason: str = "") -> None:
        self.path = path
        self.reason = reason
        message = f"Cannot load file: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class ChunkError(NotesyncError):
    """Raised when content cannot be split into chunks."""


class IndexWriteError(NotesyncError):
    """Raised when the vector index fails to add, delete, or persist."""


class RecordNotFoundError(IndexWriteError):
    """Raised by ``delete()`` when one or more ids are absent from the index."""

    def __init__(self, ids: Iterable[str]) -> None:
        self.ids = sorted(ids)
        super().__init__(f"Not in index: {', '.join(self.ids)}")


class FlagUpdateError(NotesyncError):
    """Raised when the indexed flags on a note cannot be written."""
