"""Plain text files, read as UTF-8."""

from __future__ import annotations

from pathlib import Path

from notesync.loaders.base import BaseLoader


class PlainTextLoader(BaseLoader):
    """Read text files as UTF-8, replacing undecodable bytes.

    Also serves as the generic fallback for unrecognised extensions.
    """

    extensions = frozenset(
        {".txt", ".md", ".markdown", ".rst", ".text", ".csv", ".log", ".json", ".yaml", ".yml"}
    )

    def load(self, path: Path) -> str:
        return path.read_text(encoding="utf-8", errors="replace")
