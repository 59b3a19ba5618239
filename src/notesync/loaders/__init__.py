"""Attachment loaders — turn files into text, chosen by file extension.

  .pdf                         → PdfLoader (pypdf)
  .docx / .doc                 → DocxLoader (python-docx)
  .html / .htm / .xhtml        → HtmlLoader (bs4 + html2text)
  .mp3 .wav .m4a .ogg …        → AudioLoader (LiteLLM transcription)
  .txt .md .csv … / anything else → PlainTextLoader
"""

from __future__ import annotations

import logging
from pathlib import Path

from notesync.errors import LoadError
from notesync.loaders.audio import AudioLoader
from notesync.loaders.base import BaseLoader
from notesync.loaders.docx import DocxLoader
from notesync.loaders.html import HtmlLoader
from notesync.loaders.pdf import PdfLoader
from notesync.loaders.plaintext import PlainTextLoader

logger = logging.getLogger(__name__)

__all__ = [
    "AudioLoader",
    "BaseLoader",
    "ContentLoader",
    "DocxLoader",
    "HtmlLoader",
    "PdfLoader",
    "PlainTextLoader",
]


class ContentLoader:
    """Dispatch ``load_text()`` to the loader registered for a file's extension.

    Relative paths are resolved against *root* (the attachments directory).

    Args:
        root: Directory attachment paths are relative to.
        loaders: Loaders tried in order; the first whose ``handles()`` matches
            wins. Defaults to the built-in set.
        fallback: Loader used when no other matches.
    """

    def __init__(
        self,
        root: Path | str = ".",
        loaders: list[BaseLoader] | None = None,
        fallback: BaseLoader | None = None,
    ) -> None:
        self.root = Path(root)
        self.loaders = loaders if loaders is not None else [
            PdfLoader(),
            DocxLoader(),
            HtmlLoader(),
            AudioLoader(),
        ]
        self.fallback = fallback or PlainTextLoader()

    def resolve(self, path: str) -> Path:
        """Map a stored attachment path to a file on disk."""
        p = Path(path)
        if p.is_absolute() and p.exists():
            return p
        # Stored paths may be root-relative URLs such as "/files/report.pdf".
        return self.root / path.lstrip("/")

    def loader_for(self, path: Path) -> BaseLoader:
        for loader in self.loaders:
            if loader.handles(path):
                return loader
        return self.fallback

    def load_text(self, path: str) -> str:
        """Return the text of the attachment stored at *path*.

        Raises:
            LoadError: If the file is missing, unsupported, or extraction fails.
        """
        resolved = self.resolve(path)
        if not resolved.is_file():
            raise LoadError(path, "file not found")
        loader = self.loader_for(resolved)
        logger.debug("Loading %s with %s", resolved, type(loader).__name__)
        try:
            return loader.load(resolved)
        except Exception as exc:
            raise LoadError(path, str(exc)) from exc
