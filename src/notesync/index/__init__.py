"""Vector index: gateway interface, sqlite-vec backend, embedding provider."""

from notesync.index.embeddings import Embedder, LiteLLMEmbedder, validate_api_key
from notesync.index.gateway import IndexRecord, SearchHit, VectorIndexGateway
from notesync.index.sqlite_vec import SqliteVecIndex, model_to_slug

__all__ = [
    "Embedder",
    "IndexRecord",
    "LiteLLMEmbedder",
    "SearchHit",
    "SqliteVecIndex",
    "VectorIndexGateway",
    "model_to_slug",
    "validate_api_key",
]
