"""HTML text extraction via beautifulsoup4 + html2text."""

from __future__ import annotations

from pathlib import Path

import html2text
from bs4 import BeautifulSoup

from notesync.loaders.base import BaseLoader

_h2t = html2text.HTML2Text()
_h2t.ignore_links = True
_h2t.ignore_images = True
_h2t.body_width = 0  # no line wrapping


class HtmlLoader(BaseLoader):
    """Strip scripts, styles, and navigation, then convert to Markdown-ish text."""

    extensions = frozenset({".html", ".htm", ".xhtml"})

    def load(self, path: Path) -> str:
        raw = path.read_text(encoding="utf-8", errors="replace")
        soup = BeautifulSoup(raw, "html.parser")
        for tag in soup.find_all(["script", "style", "nav", "footer", "head"]):
            tag.decompose()
        return _h2t.handle(str(soup)).strip()
