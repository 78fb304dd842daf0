"""Base embedding client interface.

Defines the contract the query router and indexer depend on, independent of
the provider behind it. Provider absence is not represented by a client at
all: callers hold ``Optional[EmbeddingClient]`` and ``None`` means "no
provider configured".
"""

from abc import ABC, abstractmethod

import numpy as np

from ..common.errors import DiscoveryError


class EmbeddingClient(ABC):
    """Abstract embedding client.

    One provider call per ``embed`` invocation; no batching.
    """

    @abstractmethod
    async def embed(self, text: str) -> np.ndarray:
        """Embed ``text`` into a one-dimensional float vector.

        Raises ``EmbeddingProviderError`` when the live call fails.
        """
        pass

    async def close(self) -> None:
        """Release any held connections."""
        return None


class EmbeddingError(DiscoveryError):
    """Base exception for embedding operations."""
    pass


class EmbeddingNotConfiguredError(EmbeddingError):
    """No provider credential is configured; known before any call."""
    pass


class EmbeddingProviderError(EmbeddingError):
    """The provider call was attempted and failed."""
    pass
