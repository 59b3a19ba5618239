"""Markdown chunker — structure-aware splits for note bodies."""

from __future__ import annotations

import re

from notesync.chunking.base import BaseChunker

_HEADING_RE = re.compile(r"^#{1,6}\s+\S")
_FENCE_RE = re.compile(r"^\s*(```|~~~)")
_PARAGRAPH_RE = re.compile(r"\n\s*\n")


class MarkdownChunker(BaseChunker):
    """Split Markdown along its structure, largest unit first.

    Strategy:
    - Split into sections at ATX headings (``#`` .. ``######``). Headings
      inside fenced code blocks are ignored.
    - Sections longer than ``chunk_size`` tokens are split on blank-line
      paragraph boundaries; paragraphs that are still too long fall back to
      the fixed window.
    - Adjacent pieces are packed together while they fit in ``chunk_size``,
      so a short note yields a single chunk.
    """

    def split(self, text: str) -> list[str]:
        pieces: list[str] = []
        for section in self._split_on_headings(text):
            if self.count_tokens(section) <= self.chunk_size:
                pieces.append(section)
            else:
                pieces.extend(self._split_section(section))
        return self._pack(pieces)

    def _split_on_headings(self, text: str) -> list[str]:
        sections: list[str] = []
        current: list[str] = []
        in_fence = False
        for line in text.splitlines():
            if _FENCE_RE.match(line):
                in_fence = not in_fence
            elif not in_fence and _HEADING_RE.match(line) and current:
                sections.append("\n".join(current))
                current = []
            current.append(line)
        if current:
            sections.append("\n".join(current))
        return [s.strip() for s in sections if s.strip()]

    def _split_section(self, section: str) -> list[str]:
        pieces: list[str] = []
        for para in _PARAGRAPH_RE.split(section):
            para = para.strip()
            if not para:
                continue
            if self.count_tokens(para) <= self.chunk_size:
                pieces.append(para)
            else:
                pieces.extend(self._split_fixed_window(para))
        return self._pack(pieces)

    def _pack(self, pieces: list[str]) -> list[str]:
        """Join adjacent pieces with a blank line while the result fits."""
        packed: list[str] = []
        for piece in pieces:
            if packed and self.count_tokens(packed[-1] + "\n\n" + piece) <= self.chunk_size:
                packed[-1] = packed[-1] + "\n\n" + piece
            else:
                packed.append(piece)
        return packed
