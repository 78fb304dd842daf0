"""Embedding provider clients.

Primary components:
- ``base``: abstract ``EmbeddingClient`` and the embedding error types.
- ``openai``: httpx client for OpenAI-compatible embedding endpoints.
- ``factory``: builds a client from config, or ``None`` when unconfigured.
"""

from .base import (
    EmbeddingClient,
    EmbeddingError,
    EmbeddingNotConfiguredError,
    EmbeddingProviderError,
)
from .factory import create_embedding_client

__all__ = [
    "EmbeddingClient",
    "EmbeddingError",
    "EmbeddingNotConfiguredError",
    "EmbeddingProviderError",
    "create_embedding_client",
]
