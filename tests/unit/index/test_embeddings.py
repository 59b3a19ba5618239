"""Tests for LiteLLMEmbedder and API key validation."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from notesync.index.embeddings import LiteLLMEmbedder, validate_api_key


def _embedding_response(vectors):
    response = MagicMock()
    response.data = [{"embedding": v} for v in vectors]
    return response


def test_validate_api_key_missing(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(EnvironmentError, match="OPENAI_API_KEY"):
        validate_api_key("openai/text-embedding-3-small")


def test_validate_api_key_present(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    validate_api_key("openai/text-embedding-3-small")


def test_validate_api_key_local_provider_needs_none(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    validate_api_key("ollama/nomic-embed-text")


def test_embed_documents_calls_litellm(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    embedder = LiteLLMEmbedder(num_retries=5)
    with patch(
        "notesync.index.embeddings.litellm.embedding",
        return_value=_embedding_response([[0.1, 0.2], [0.3, 0.4]]),
    ) as mock_embed:
        vectors = embedder.embed_documents(["a", "b"])
    assert vectors == [[0.1, 0.2], [0.3, 0.4]]
    mock_embed.assert_called_once_with(
        model="openai/text-embedding-3-small", input=["a", "b"], num_retries=5
    )


def test_embed_documents_empty_skips_call():
    with patch("notesync.index.embeddings.litellm.embedding") as mock_embed:
        assert LiteLLMEmbedder().embed_documents([]) == []
    mock_embed.assert_not_called()


def test_embed_documents_count_mismatch(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    with patch(
        "notesync.index.embeddings.litellm.embedding",
        return_value=_embedding_response([[0.1]]),
    ):
        with pytest.raises(RuntimeError, match="1 vectors for 2 inputs"):
            LiteLLMEmbedder().embed_documents(["a", "b"])


def test_embed_query_returns_single_vector(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    with patch(
        "notesync.index.embeddings.litellm.embedding",
        return_value=_embedding_response([[0.5, 0.5]]),
    ):
        assert LiteLLMEmbedder().embed_query("q") == [0.5, 0.5]
