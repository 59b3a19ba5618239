"""Base loader interface: one file in, plain text out."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class BaseLoader(ABC):
    """Abstract base for file-type specific text extraction.

    ``extensions`` lists the lowercase suffixes (with dot) a loader handles.
    """

    extensions: frozenset[str] = frozenset()

    def handles(self, path: Path) -> bool:
        return path.suffix.lower() in self.extensions

    @abstractmethod
    def load(self, path: Path) -> str:
        """Return the text content of *path*."""
