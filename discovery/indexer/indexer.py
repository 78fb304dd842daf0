"""Indexer recomputing every record's embedding.

For each collection the indexer fetches all records (published or not),
normalizes them, embeds the normalized text and overwrites the stored vector.

Execution model
- Collections run one after another; records within a collection run
  sequentially (embed, upsert, next) to stay within provider rate limits
- A record that fails is logged and skipped; the batch always continues
- A collection whose fetch fails is logged and reported with zero records
- Missing provider configuration fails the run before any record is touched
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional

import structlog

from ..common.errors import DiscoveryError
from ..common.logging import log_performance
from ..common.metrics import MetricsCollector
from ..content.models import ALL_COLLECTIONS, Collection, ContentRecord
from ..content.normalizer import DEFAULT_MAX_CHARS, normalize
from ..embeddings.base import EmbeddingClient, EmbeddingProviderError
from ..search.adapters import VectorStoreAdapter
from ..vector_store.base import ContentStore, ContentStoreError, RecordNotFoundError

logger = structlog.get_logger("indexer")

# Failures worth another attempt; a vanished record is not one of them.
RETRYABLE_ERRORS = (EmbeddingProviderError, ContentStoreError)


class IndexerPreconditionError(DiscoveryError):
    """Reindexing cannot start, e.g. no embedding provider is configured."""
    pass


@dataclass
class CollectionReport:
    """Outcome of reindexing one collection."""
    collection: Collection
    processed: int = 0
    indexed: int = 0
    failed: int = 0
    fetch_failed: bool = False


@dataclass
class ReindexReport:
    """Outcome of a reindex run across collections."""
    collections: Dict[Collection, CollectionReport] = field(default_factory=dict)
    duration_seconds: float = 0.0

    @property
    def counts(self) -> Dict[str, int]:
        """Records processed per collection, keyed by response key."""
        return {
            collection.response_key: report.processed
            for collection, report in self.collections.items()
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "collections": {
                collection.response_key: {
                    "processed": report.processed,
                    "indexed": report.indexed,
                    "failed": report.failed,
                    "fetch_failed": report.fetch_failed,
                }
                for collection, report in self.collections.items()
            },
            "duration_seconds": self.duration_seconds,
        }


class Indexer:
    """Full reindex over the content store.

    Parameters
    - store: Content store holding records and their vectors
    - embedding_client: Provider client, or ``None`` when unconfigured. The
      service gives the indexer its own client, so its circuit breaker is
      separate from the one guarding queries.
    - max_chars: Character cap applied by the normalizer
    - retry_attempts: Attempts per record; 1 disables retry
    - retry_base_delay: Seconds before the first retry, doubled each time
    - retry_max_delay: Upper bound on a single retry delay
    - metrics_collector: Optional Prometheus collector
    """

    def __init__(
        self,
        store: ContentStore,
        embedding_client: Optional[EmbeddingClient],
        max_chars: int = DEFAULT_MAX_CHARS,
        retry_attempts: int = 1,
        retry_base_delay: float = 1.0,
        retry_max_delay: float = 8.0,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        self.store = store
        self.vector_adapter = VectorStoreAdapter(store)
        self.embedding_client = embedding_client
        self.max_chars = max_chars
        self.retry_attempts = max(1, retry_attempts)
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay
        self.metrics_collector = metrics_collector

    async def reindex_all(
        self,
        collections: Optional[Iterable[Collection]] = None
    ) -> Dict[str, int]:
        """Reindex and return records processed per collection.

        Counts are attempts, not successes.
        """
        report = await self.reindex(collections)
        return report.counts

    async def reindex(
        self,
        collections: Optional[Iterable[Collection]] = None
    ) -> ReindexReport:
        """Reindex the given collections (all by default) and report outcomes."""
        if self.embedding_client is None:
            raise IndexerPreconditionError("OpenAI API Key not configured")

        targets = tuple(collections) if collections is not None else ALL_COLLECTIONS
        start_time = time.time()
        report = ReindexReport()

        logger.info("Starting reindexing", collections=[c.value for c in targets])

        for collection in targets:
            report.collections[collection] = await self._reindex_collection(collection)

        report.duration_seconds = time.time() - start_time
        logger.info("Reindexing completed", **report.to_dict())
        log_performance("reindex", start_time, processed=sum(report.counts.values()))
        return report

    async def _reindex_collection(self, collection: Collection) -> CollectionReport:
        result = CollectionReport(collection=collection)

        try:
            records = await self.store.fetch_records(collection)
        except Exception as e:
            logger.error("Failed to fetch records", collection=collection.value, error=str(e))
            result.fetch_failed = True
            return result

        for record in records:
            result.processed += 1
            if await self._index_record(record):
                result.indexed += 1
            else:
                result.failed += 1

        logger.info(
            "Collection reindexed",
            collection=collection.value,
            processed=result.processed,
            indexed=result.indexed,
            failed=result.failed
        )
        return result

    async def _index_record(self, record: ContentRecord) -> bool:
        """Embed and store one record; ``False`` when it was skipped."""
        try:
            text = normalize(record, self.max_chars)
            if not text:
                logger.warning(
                    "Skipping record with no indexable text",
                    collection=record.collection.value,
                    record_id=record.id
                )
                self._record_outcome(record.collection, "skipped")
                return False

            await self._embed_and_store(record, text)
        except Exception as e:
            logger.error(
                "Failed to index record",
                collection=record.collection.value,
                record_id=record.id,
                error=str(e)
            )
            self._record_outcome(record.collection, "failed")
            return False

        self._record_outcome(record.collection, "indexed")
        return True

    async def _embed_and_store(self, record: ContentRecord, text: str) -> None:
        """Embed then upsert, retrying transient failures with backoff."""
        attempt = 0
        while True:
            attempt += 1
            try:
                vector = await self.embedding_client.embed(text)
                await self.vector_adapter.upsert(record.collection, record.id, vector)
                return
            except RecordNotFoundError:
                raise
            except RETRYABLE_ERRORS as exc:
                if attempt >= self.retry_attempts:
                    raise

                delay = min(
                    self.retry_base_delay * (2 ** (attempt - 1)),
                    self.retry_max_delay,
                )
                logger.warning(
                    "Indexing record failed, retrying",
                    collection=record.collection.value,
                    record_id=record.id,
                    attempt=attempt,
                    max_attempts=self.retry_attempts,
                    delay_seconds=delay,
                    error=str(exc),
                )
                await asyncio.sleep(delay)

    def _record_outcome(self, collection: Collection, outcome: str) -> None:
        if self.metrics_collector:
            self.metrics_collector.record_indexed(collection.value, outcome)
