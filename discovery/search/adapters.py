"""Per-collection search adapters over the content store.

``VectorStoreAdapter`` serves similarity search and vector upserts;
``KeywordMatcher`` serves title substring search. Both translate store rows
into ``SearchResult`` values carrying the record's locator.
"""

from typing import List

import numpy as np
import structlog

from ..content.models import Collection, SearchResult
from ..vector_store.base import ContentStore

logger = structlog.get_logger("search.adapters")


def _check_max_results(max_results: int) -> None:
    if max_results < 1:
        raise ValueError(f"max_results must be positive, got {max_results}")


class VectorStoreAdapter:
    """Similarity search and vector upsert for one store."""

    def __init__(self, store: ContentStore):
        self.store = store

    async def similarity_search(
        self,
        collection: Collection,
        query_vector: np.ndarray,
        min_similarity: float,
        max_results: int
    ) -> List[SearchResult]:
        """Rank published records of ``collection`` by cosine similarity.

        Returns an empty list when nothing clears ``min_similarity``.
        """
        _check_max_results(max_results)
        rows = await self.store.search_similar(collection, query_vector, min_similarity, max_results)
        results = [
            SearchResult(
                id=record_id,
                title=title,
                locator=collection.locator(slug),
                collection=collection,
                score=similarity,
            )
            for record_id, title, slug, similarity in rows
        ]
        logger.debug(
            "Similarity search completed",
            collection=collection.value,
            results_count=len(results)
        )
        return results

    async def upsert(self, collection: Collection, record_id: str, vector: np.ndarray) -> None:
        """Overwrite the stored vector of one record."""
        await self.store.store_embedding(collection, record_id, vector)


class KeywordMatcher:
    """Case-insensitive title substring search for one store."""

    def __init__(self, store: ContentStore):
        self.store = store

    async def substring_search(
        self,
        collection: Collection,
        pattern: str,
        max_results: int
    ) -> List[SearchResult]:
        """Match published titles containing ``pattern``, ignoring case.

        Keyword matches carry no relevance score.
        """
        _check_max_results(max_results)
        rows = await self.store.search_title(collection, pattern, max_results)
        results = [
            SearchResult(
                id=record_id,
                title=title,
                locator=collection.locator(slug),
                collection=collection,
            )
            for record_id, title, slug in rows
        ]
        logger.debug(
            "Substring search completed",
            collection=collection.value,
            results_count=len(results)
        )
        return results
