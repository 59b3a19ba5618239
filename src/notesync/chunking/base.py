"""Base chunker interface shared by both splitting strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from notesync.chunking.identity import chunk_id


@dataclass
class Chunk:
    """One slice of a parent's text, the unit that gets embedded."""

    parent_key: int | str
    ordinal: int
    text: str

    @property
    def id(self) -> str:
        return chunk_id(self.parent_key, self.ordinal)


class BaseChunker(ABC):
    """Abstract base for all chunkers.

    Subclasses implement ``split()``; ``chunk()`` turns the pieces into
    ordinal-numbered Chunks.

    Token counting uses a 4-chars-per-token approximation; no external
    tokenizer dependency is required.
    """

    def __init__(self, chunk_size: int = 250, overlap: float = 0.20) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        if not 0.0 <= overlap < 1.0:
            raise ValueError("overlap must be in [0.0, 1.0)")
        self.chunk_size = chunk_size
        self.overlap = overlap

    @abstractmethod
    def split(self, text: str) -> list[str]:
        """Split *text* into ordered, non-empty segments."""

    def chunk(self, parent_key: int | str, content: str) -> list[Chunk]:
        """Split *content* into Chunks numbered 0..n-1 for *parent_key*.

        Raises:
            TypeError: If *content* is not a string.
        """
        if not isinstance(content, str):
            raise TypeError(
                f"content for {parent_key!r} must be str, got {type(content).__name__}"
            )
        if not content.strip():
            return []
        return [
            Chunk(parent_key=parent_key, ordinal=i, text=t)
            for i, t in enumerate(self.split(content))
        ]

    @staticmethod
    def count_tokens(text: str) -> int:
        """Approximate token count: 4 characters ≈ 1 token (minimum 1)."""
        return max(1, len(text) // 4)

    def _split_fixed_window(self, text: str) -> list[str]:
        """Split *text* into overlapping windows of ``chunk_size`` tokens.

        Window size = ``chunk_size * 4`` characters; consecutive windows share
        ``overlap`` of that. A window end is pulled back to the last whitespace
        in its second half, and the next window start is moved forward to a space,
        so words are not cut. Empty segments are omitted.
        """
        if not text.strip():
            return []

        char_size = self.chunk_size * 4
        overlap_chars = int(char_size * self.overlap)

        segments: list[str] = []
        pos = 0
        length = len(text)

        while pos < length:
            end = min(pos + char_size, length)
            if end < length:
                cut = text.rfind(" ", pos + char_size // 2, end)
                if cut == -1:
                    cut = text.rfind("\n", pos + char_size // 2, end)
                if cut != -1:
                    end = cut
            segment = text[pos:end].strip()
            if segment:
                segments.append(segment)
            if end >= length:
                break
            pos = max(pos + 1, end - overlap_chars)
            if not text[pos - 1].isspace():
                space = text.find(" ", pos, end)
                if space != -1:
                    pos = space

        return segments
