"""Word document text extraction via python-docx."""

from __future__ import annotations

from pathlib import Path

import docx

from notesync.loaders.base import BaseLoader


class DocxLoader(BaseLoader):
    """Extract paragraph and table cell text from a .docx file.

    Legacy binary ``.doc`` files are routed here too; python-docx rejects
    them, which surfaces as a LoadError naming the file.
    """

    extensions = frozenset({".docx", ".doc"})

    def load(self, path: Path) -> str:
        document = docx.Document(str(path))
        parts = [p.text for p in document.paragraphs if p.text.strip()]
        for table in document.tables:
            for row in table.rows:
                cells = [c.text.strip() for c in row.cells if c.text.strip()]
                if cells:
                    parts.append(" | ".join(cells))
        return "\n".join(parts)
