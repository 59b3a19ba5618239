"""Token-window chunker for text extracted from attachments."""

from __future__ import annotations

from notesync.chunking.base import BaseChunker


class TokenChunker(BaseChunker):
    """Split text into fixed-size token windows with overlap.

    Extracted attachment text (PDF pages, transcripts, documents) rarely has
    reliable structure, so it is cut purely by size.
    Default: 1000 tokens / 20 % overlap.
    """

    def __init__(self, chunk_size: int = 1000, overlap: float = 0.20) -> None:
        super().__init__(chunk_size=chunk_size, overlap=overlap)

    def split(self, text: str) -> list[str]:
        return self._split_fixed_window(text)
