"""Shared pytest fixtures."""

from __future__ import annotations

import hashlib
import math
import re

import pytest

from notesync.db.connection import Database
from notesync.db.repository import Repository
from notesync.db.schema import initialize
from notesync.index.sqlite_vec import SqliteVecIndex

FAKE_MODEL = "fake/bag-of-words"


class FakeEmbedder:
    """Deterministic hashed bag-of-words embedder — no network.

    Texts sharing words get nearby vectors, so similarity search behaves
    sensibly in tests.
    """

    def __init__(self, dimensions: int = 64) -> None:
        self.dimensions = dimensions
        self.calls: list[list[str]] = []

    def _vector(self, text: str) -> list[float]:
        vec = [0.0] * self.dimensions
        vec[0] = 0.1
        for word in re.findall(r"\w+", text.lower()):
            bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % (self.dimensions - 1)
            vec[bucket + 1] += 1.0
        norm = math.sqrt(sum(v * v for v in vec))
        return [v / norm for v in vec]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self._vector(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        return self._vector(text)


@pytest.fixture
def tmp_db(tmp_path):
    """File-based note DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / ".notesync.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def index_conn(tmp_path):
    """Separate file-based DB for the vector index, closed after test."""
    db = Database(tmp_path / "index.db")
    conn = db.connect()
    yield conn
    conn.close()


@pytest.fixture
def repo(tmp_db):
    return Repository(tmp_db)


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def index(index_conn, embedder):
    return SqliteVecIndex(index_conn, embedder, FAKE_MODEL)
