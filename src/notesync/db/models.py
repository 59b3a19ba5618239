"""Domain models for the note store."""

from __future__ import annotations

import json
from dataclasses import dataclass, field

# Metadata keys, kept in the camelCase the note store has always used.
IS_INDEXED = "isIndexed"
IS_ATTACHMENTS_INDEXED = "isAttachmentsIndexed"


@dataclass
class Attachment:
    note_id: int
    name: str
    path: str
    id: int | None = None
    created_at: str | None = None


@dataclass
class Note:
    content: str
    id: int | None = None
    metadata: str = field(default_factory=lambda: "{}")
    created_at: str | None = None
    updated_at: str | None = None
    attachments: list[Attachment] = field(default_factory=list)

    @property
    def metadata_dict(self) -> dict:
        try:
            data = json.loads(self.metadata or "{}")
        except json.JSONDecodeError:
            return {}
        return data if isinstance(data, dict) else {}

    @property
    def is_indexed(self) -> bool:
        return bool(self.metadata_dict.get(IS_INDEXED))

    @property
    def is_attachments_indexed(self) -> bool:
        return bool(self.metadata_dict.get(IS_ATTACHMENTS_INDEXED))

    @property
    def preview(self) -> str:
        """First 30 characters of the content, used in progress reports."""
        return (self.content or "")[:30]


@dataclass
class IndexState:
    """What was last written to the vector index for one parent key."""

    parent_key: str
    content_hash: str
    chunk_count: int
    indexed_at: str | None = None
