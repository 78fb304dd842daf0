"""Base content store interface.

Defines the contract the search adapters and the indexer depend on,
independent of the backing implementation (PostgreSQL/pgvector, in-memory).
The store owns both the content records and their embedding vectors; one
vector per record, overwritten in place.

All methods are asynchronous.
"""

from abc import ABC, abstractmethod
from typing import List, Tuple

import numpy as np

from ..common.errors import DiscoveryError
from ..content.models import Collection, ContentRecord

# (record_id, title, slug, similarity)
SimilarityRow = Tuple[str, str, str, float]
# (record_id, title, slug)
TitleRow = Tuple[str, str, str]


class ContentStore(ABC):
    """Abstract base class for content stores.

    Implementations must make ``store_embedding`` an unconditional overwrite
    and keep similarity semantics as cosine similarity.
    """

    @abstractmethod
    async def fetch_records(self, collection: Collection) -> List[ContentRecord]:
        """Fetch every record of a collection, published or not."""
        pass

    @abstractmethod
    async def search_similar(
        self,
        collection: Collection,
        query_vector: np.ndarray,
        similarity_threshold: float,
        limit: int
    ) -> List[SimilarityRow]:
        """Search published records by cosine similarity.

        Returns
        - Rows strictly above ``similarity_threshold`` sorted by descending
          similarity, ties in store-natural order, at most ``limit`` rows.
        """
        pass

    @abstractmethod
    async def search_title(
        self,
        collection: Collection,
        pattern: str,
        limit: int
    ) -> List[TitleRow]:
        """Case-insensitive title containment search over published records.

        ``pattern`` is matched literally; it carries no wildcards.
        """
        pass

    @abstractmethod
    async def store_embedding(
        self,
        collection: Collection,
        record_id: str,
        vector: np.ndarray
    ) -> None:
        """Overwrite a record's embedding vector.

        Raises ``RecordNotFoundError`` when the record no longer exists.
        """
        pass

    @abstractmethod
    async def get_embedding(self, collection: Collection, record_id: str) -> np.ndarray:
        """Get a record's embedding, or raise ``RecordNotFoundError``."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the content store is healthy."""
        pass

    async def close(self) -> None:
        """Release held connections."""
        return None


class ContentStoreError(DiscoveryError):
    """Base exception for content store operations."""
    pass


class ContentStoreConnectionError(ContentStoreError):
    """Connection error to the content store."""
    pass


class ContentStoreQueryError(ContentStoreError):
    """Query error in the content store."""
    pass


class RecordNotFoundError(ContentStoreError):
    """Record (or its vector) not found in the store."""
    pass
