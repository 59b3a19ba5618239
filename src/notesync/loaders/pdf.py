"""PDF text extraction via pypdf."""

from __future__ import annotations

from pathlib import Path

import pypdf

from notesync.loaders.base import BaseLoader


class PdfLoader(BaseLoader):
    """Extract text page-by-page; pages with no text layer are skipped."""

    extensions = frozenset({".pdf"})

    def load(self, path: Path) -> str:
        reader = pypdf.PdfReader(str(path))
        parts: list[str] = []
        for page in reader.pages:
            stripped = (page.extract_text() or "").strip()
            if stripped:
                parts.append(stripped)
        return "\n".join(parts)
