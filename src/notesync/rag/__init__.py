"""Retrieval over the vector index."""

from notesync.rag.retriever import Retrieval, RetrievalCoordinator, RetrievedNote

__all__ = ["Retrieval", "RetrievalCoordinator", "RetrievedNote"]
