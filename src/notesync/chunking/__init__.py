"""Content chunking: splitting strategies and stable chunk ids."""

from notesync.chunking.base import BaseChunker, Chunk
from notesync.chunking.identity import chunk_id, chunk_ids, parse_chunk_id
from notesync.chunking.markdown import MarkdownChunker
from notesync.chunking.token import TokenChunker

__all__ = [
    "BaseChunker",
    "Chunk",
    "MarkdownChunker",
    "TokenChunker",
    "chunk_id",
    "chunk_ids",
    "parse_chunk_id",
]
