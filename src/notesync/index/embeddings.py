"""Embedding provider — LiteLLM wrapper with retry and API key validation.

The vector index calls an ``Embedder``; LiteLLMEmbedder is the production
implementation. LiteLLM's built-in retry is used (``num_retries``,
exponential backoff).
"""

from __future__ import annotations

import os
from typing import Protocol

import litellm

litellm.suppress_debug_info = True

# Provider → env var holding its key. None means no key is needed.
_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "voyage": "VOYAGE_API_KEY",
    "groq": "GROQ_API_KEY",
    "ollama": None,
    "ollama_chat": None,
}


class Embedder(Protocol):
    """What the vector index needs from an embedding provider."""

    dimensions: int

    def embed_documents(self, texts: list[str]) -> list[list[float]]: ...

    def embed_query(self, text: str) -> list[float]: ...


def validate_api_key(model: str) -> None:
    """Check that the API key env var for *model*'s provider is set.

    Args:
        model: LiteLLM model string in 'provider/model' format.

    Raises:
        EnvironmentError: If the required key is missing from the environment.
    """
    provider = model.split("/")[0].lower() if "/" in model else "openai"
    env_var = _PROVIDER_ENV.get(provider)
    if env_var is None:
        return
    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


class LiteLLMEmbedder:
    """Embed text through ``litellm.embedding()``.

    Args:
        model: LiteLLM embedding model string (provider/model format).
        dimensions: Vector size the model produces; fixes the vec table shape.
        num_retries: Retries on transient API errors.
    """

    def __init__(
        self,
        model: str = "openai/text-embedding-3-small",
        dimensions: int = 1536,
        num_retries: int = 3,
    ) -> None:
        self.model = model
        self.dimensions = dimensions
        self.num_retries = num_retries

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts* in one request. Returns vectors in input order."""
        if not texts:
            return []
        validate_api_key(self.model)
        response = litellm.embedding(
            model=self.model,
            input=texts,
            num_retries=self.num_retries,
        )
        vectors = [d["embedding"] for d in response.data]
        if len(vectors) != len(texts):
            raise RuntimeError(
                f"embedding model returned {len(vectors)} vectors for {len(texts)} inputs"
            )
        return vectors

    def embed_query(self, text: str) -> list[float]:
        return self.embed_documents([text])[0]
