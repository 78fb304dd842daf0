"""Query router for semantic search with keyword fallback.

Mode selection
- No embedding client configured: keyword mode
- Embedding the query fails for any reason: keyword mode, silently
- Otherwise: semantic mode

Whichever mode runs, exactly four per-collection lookups are issued
concurrently. A lookup that fails contributes an empty list for its own
collection; it never cancels its siblings or changes the response mode.
"""

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, ClassVar, Dict, List, Optional, Union

import numpy as np
import structlog

from ..common.errors import DiscoveryError
from ..common.metrics import MetricsCollector
from ..content.models import ALL_COLLECTIONS, Collection, CollectionResults, SearchResult
from ..embeddings.base import EmbeddingClient, EmbeddingError
from .adapters import KeywordMatcher, VectorStoreAdapter

logger = structlog.get_logger("search.router")

DEFAULT_MATCH_THRESHOLD = 0.1
DEFAULT_MATCH_COUNT = 5


class InvalidQueryError(DiscoveryError):
    """The query is missing, not a string, or blank."""
    pass


class SearchMode(Enum):
    """How every list of a response was produced."""
    SEMANTIC = "semantic"
    KEYWORD = "keyword"


@dataclass(frozen=True)
class _Batch:
    results: CollectionResults

    mode: ClassVar[SearchMode]

    def __post_init__(self):
        missing = [c.value for c in ALL_COLLECTIONS if c not in self.results]
        if missing:
            raise ValueError(f"Batch is missing collections: {missing}")

    def for_collection(self, collection: Collection) -> List[SearchResult]:
        return self.results[collection]

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape: one list per collection key plus the mode tag."""
        payload: Dict[str, Any] = {
            collection.response_key: [r.to_dict() for r in self.results[collection]]
            for collection in ALL_COLLECTIONS
        }
        payload["mode"] = self.mode.value
        return payload


@dataclass(frozen=True)
class SemanticBatch(_Batch):
    """Results ranked by vector similarity."""
    mode: ClassVar[SearchMode] = SearchMode.SEMANTIC


@dataclass(frozen=True)
class KeywordBatch(_Batch):
    """Results matched by title substring; unscored."""
    mode: ClassVar[SearchMode] = SearchMode.KEYWORD


SearchResponse = Union[SemanticBatch, KeywordBatch]


def validate_query(query: Any) -> str:
    """Return the stripped query or raise ``InvalidQueryError``."""
    if not isinstance(query, str) or not query.strip():
        raise InvalidQueryError("Query is required")
    return query.strip()


class QueryRouter:
    """Query-time entry point across all four collections.

    ``embedding_client`` is ``None`` when no provider is configured.
    """

    def __init__(
        self,
        vector_adapter: VectorStoreAdapter,
        keyword_matcher: KeywordMatcher,
        embedding_client: Optional[EmbeddingClient] = None,
        match_threshold: float = DEFAULT_MATCH_THRESHOLD,
        match_count: int = DEFAULT_MATCH_COUNT,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        self.vector_adapter = vector_adapter
        self.keyword_matcher = keyword_matcher
        self.embedding_client = embedding_client
        self.match_threshold = match_threshold
        self.match_count = match_count
        self.metrics_collector = metrics_collector

    async def search(self, query: Any) -> SearchResponse:
        """Search all collections.

        Raises ``InvalidQueryError`` before any lookup when the query is
        blank. Every other failure is absorbed into the response.
        """
        text = validate_query(query)
        start_time = time.time()

        query_vector = await self._embed_query(text)
        if query_vector is not None:
            response: SearchResponse = await self._semantic_fan_out(query_vector)
        else:
            response = await self._keyword_fan_out(text)

        duration = time.time() - start_time
        if self.metrics_collector:
            self.metrics_collector.record_search(response.mode.value, duration)
        logger.info(
            "Search completed",
            query=text[:50],
            mode=response.mode.value,
            results_count=sum(len(v) for v in response.results.values()),
            latency_ms=round(duration * 1000, 2)
        )
        return response

    async def _embed_query(self, text: str) -> Optional[np.ndarray]:
        """Embed the query, or ``None`` when semantic mode is unavailable."""
        if self.embedding_client is None:
            logger.debug("No embedding provider configured, using keyword search")
            return None

        try:
            return await self.embedding_client.embed(text)
        except EmbeddingError as e:
            logger.warning("Semantic search failed, falling back to keyword", error=str(e))
            return None
        except Exception as e:
            logger.error(
                "Unexpected embedding failure, falling back to keyword",
                error=str(e),
                error_type=type(e).__name__
            )
            return None

    async def _semantic_fan_out(self, query_vector: np.ndarray) -> SemanticBatch:
        async def lookup(collection: Collection) -> List[SearchResult]:
            return await self.vector_adapter.similarity_search(
                collection, query_vector, self.match_threshold, self.match_count
            )

        return SemanticBatch(await self._fan_out(SearchMode.SEMANTIC, lookup))

    async def _keyword_fan_out(self, text: str) -> KeywordBatch:
        async def lookup(collection: Collection) -> List[SearchResult]:
            return await self.keyword_matcher.substring_search(collection, text, self.match_count)

        return KeywordBatch(await self._fan_out(SearchMode.KEYWORD, lookup))

    async def _fan_out(
        self,
        mode: SearchMode,
        lookup: Callable[[Collection], Awaitable[List[SearchResult]]]
    ) -> CollectionResults:
        """Run ``lookup`` for every collection concurrently and join all."""

        async def guarded(collection: Collection) -> List[SearchResult]:
            try:
                return await lookup(collection)
            except Exception as e:
                logger.warning(
                    "Collection lookup failed, returning empty list",
                    collection=collection.value,
                    mode=mode.value,
                    error=str(e)
                )
                if self.metrics_collector:
                    self.metrics_collector.record_collection_failure(collection.value, mode.value)
                return []

        lists = await asyncio.gather(*(guarded(c) for c in ALL_COLLECTIONS))
        return dict(zip(ALL_COLLECTIONS, lists))
