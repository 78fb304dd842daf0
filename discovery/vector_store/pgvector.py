"""PgVector implementation of the content store.

Each collection lives in its own PostgreSQL table carrying an ``embedding``
column of the pgvector ``vector`` type. Cosine similarity is computed with the
``<=>`` (cosine distance) operator as ``1 - distance``.

Connection management
- A shared asyncpg pool is created on demand and reused across calls
- Queries are funneled through ``_execute_query`` for uniform error handling
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import asyncpg
import numpy as np
import structlog
from asyncpg import Connection, Pool
from pgvector.asyncpg import register_vector

from ..content.models import Collection, ContentRecord
from .base import (
    ContentStore,
    ContentStoreConnectionError,
    ContentStoreQueryError,
    RecordNotFoundError,
    SimilarityRow,
    TitleRow,
)

logger = structlog.get_logger("vector_store.pgvector")


@dataclass(frozen=True)
class CollectionColumns:
    """Where a collection's indexed fields live."""
    table: str
    excerpt: str
    body: str


# Column layout of the site's content tables.
DEFAULT_COLUMNS: Dict[Collection, CollectionColumns] = {
    Collection.PROJECT: CollectionColumns(Collection.PROJECT.table, "project_overview", "design_notes"),
    Collection.TUTORIAL: CollectionColumns(Collection.TUTORIAL.table, "description", "content"),
    Collection.ARTICLE: CollectionColumns(Collection.ARTICLE.table, "excerpt", "content"),
    Collection.NEWS: CollectionColumns(Collection.NEWS.table, "excerpt", "content"),
}


def escape_like(pattern: str) -> str:
    """Escape LIKE wildcards so ``pattern`` matches literally."""
    return pattern.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class PgContentStore(ContentStore):
    """PgVector-backed content store."""

    def __init__(
        self,
        dsn: str,
        pool_size: int = 10,
        command_timeout: int = 60,
        vector_dimension: Optional[int] = None,
        columns: Optional[Dict[Collection, CollectionColumns]] = None,
    ):
        """Configure a PgVector-backed content store.

        Parameters
        - dsn: PostgreSQL DSN including database and credentials
        - pool_size: Max size of asyncpg connection pool
        - command_timeout: Seconds to allow per DB command
        - vector_dimension: Expected dimensionality for stored vectors
        - columns: Per-collection table/column layout override
        """
        self.dsn = dsn
        self.pool_size = pool_size
        self.command_timeout = command_timeout
        self.vector_dimension = vector_dimension
        self.columns = {**DEFAULT_COLUMNS, **(columns or {})}
        self._pool: Optional[Pool] = None

    async def _init_connection(self, conn: Connection) -> None:
        """Register vector and jsonb codecs for asyncpg connections."""
        await register_vector(conn)
        await conn.set_type_codec(
            "jsonb",
            encoder=json.dumps,
            decoder=json.loads,
            schema="pg_catalog",
        )

    async def _get_pool(self) -> Pool:
        """Get or create connection pool.

        Lazily initializes an asyncpg pool so callers don't pay startup cost
        unless/until they make a call that requires the database.
        """
        if self._pool is None:
            try:
                self._pool = await asyncpg.create_pool(
                    self.dsn,
                    min_size=1,
                    max_size=self.pool_size,
                    command_timeout=self.command_timeout,
                    init=self._init_connection,
                )
                logger.info("Created PgVector connection pool", pool_size=self.pool_size)
            except Exception as e:
                logger.error("Failed to create PgVector connection pool", error=str(e))
                raise ContentStoreConnectionError(f"Failed to create connection pool: {e}") from e

        return self._pool

    async def _execute_query(
        self,
        query: str,
        *args: Any,
        fetch: bool = False,
        fetch_one: bool = False
    ) -> Any:
        """Execute a query with error handling.

        The ``fetch``/``fetch_one`` flags control how results are retrieved.
        Query failures are wrapped in ``ContentStoreQueryError``.
        """
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                if fetch_one:
                    return await conn.fetchrow(query, *args)
                if fetch:
                    return await conn.fetch(query, *args)
                return await conn.execute(query, *args)
        except Exception as e:
            logger.error("Query execution failed", query=query, error=str(e))
            raise ContentStoreQueryError(f"Query failed: {e}") from e

    async def fetch_records(self, collection: Collection) -> List[ContentRecord]:
        """Fetch every record of a collection regardless of publication."""
        cols = self.columns[collection]
        query = f"""
            SELECT id, title, slug,
                   {cols.excerpt} AS excerpt,
                   {cols.body} AS body,
                   published
            FROM {cols.table}
            ORDER BY id
        """
        rows = await self._execute_query(query, fetch=True)
        records = [ContentRecord.from_row(collection, dict(row)) for row in rows]

        logger.info("Fetched records", collection=collection.value, count=len(records))
        return records

    async def search_similar(
        self,
        collection: Collection,
        query_vector: np.ndarray,
        similarity_threshold: float,
        limit: int
    ) -> List[SimilarityRow]:
        """Search published records by cosine similarity."""
        vector_array = self._ensure_vector_dimension(query_vector)
        table = self.columns[collection].table
        query = f"""
            SELECT id, title, slug, 1 - (embedding <=> $1) AS similarity
            FROM {table}
            WHERE published = TRUE
              AND embedding IS NOT NULL
              AND 1 - (embedding <=> $1) > $2
            ORDER BY embedding <=> $1
            LIMIT $3
        """
        rows = await self._execute_query(
            query, vector_array, similarity_threshold, limit, fetch=True
        )

        results = [
            (str(row["id"]), row["title"] or "", row["slug"] or "", float(row["similarity"]))
            for row in rows
        ]
        logger.debug(
            "Vector similarity search completed",
            collection=collection.value,
            limit=limit,
            results_count=len(results)
        )
        return results

    async def search_title(
        self,
        collection: Collection,
        pattern: str,
        limit: int
    ) -> List[TitleRow]:
        """Case-insensitive title containment search over published records."""
        table = self.columns[collection].table
        query = f"""
            SELECT id, title, slug
            FROM {table}
            WHERE published = TRUE
              AND title ILIKE $1 ESCAPE '\\'
            LIMIT $2
        """
        rows = await self._execute_query(
            query, f"%{escape_like(pattern)}%", limit, fetch=True
        )
        return [(str(row["id"]), row["title"] or "", row["slug"] or "") for row in rows]

    async def store_embedding(
        self,
        collection: Collection,
        record_id: str,
        vector: np.ndarray
    ) -> None:
        """Overwrite a record's embedding vector."""
        vector_array = self._ensure_vector_dimension(vector)
        table = self.columns[collection].table
        query = f"UPDATE {table} SET embedding = $1 WHERE id::text = $2"

        status = await self._execute_query(query, vector_array, str(record_id))
        if status.split()[-1] == "0":
            raise RecordNotFoundError(f"{collection.value} record {record_id} not found")

        logger.debug("Stored embedding", collection=collection.value, record_id=record_id)

    async def get_embedding(self, collection: Collection, record_id: str) -> np.ndarray:
        """Get a record's embedding vector."""
        table = self.columns[collection].table
        query = f"SELECT embedding FROM {table} WHERE id::text = $1"

        row = await self._execute_query(query, str(record_id), fetch_one=True)
        if row is None or row["embedding"] is None:
            raise RecordNotFoundError(f"No embedding for {collection.value} record {record_id}")
        return np.asarray(row["embedding"], dtype=np.float32)

    async def health_check(self) -> bool:
        """Check if the content store is reachable."""
        try:
            await self._execute_query("SELECT 1", fetch_one=True)
            return True
        except Exception as e:
            logger.error("Health check failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close the connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Closed PgVector connection pool")

    def _ensure_vector_dimension(self, vector: Iterable[float]) -> np.ndarray:
        """Ensure a vector matches the expected dimensionality."""
        array = np.asarray(vector, dtype=np.float32)
        if array.ndim != 1:
            raise ValueError("Vector must be one-dimensional")

        if self.vector_dimension is not None and array.shape[0] != self.vector_dimension:
            raise ValueError(
                f"Expected vector dimension {self.vector_dimension}, "
                f"got {array.shape[0]}"
            )
        return array
