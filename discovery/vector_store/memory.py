"""In-memory content store.

Keeps records and vectors in process memory with numpy cosine similarity.
Intended for local development and tests; insertion order is the store's
natural order for tie-breaking.
"""

from typing import Dict, Iterable, List, Optional

import numpy as np

from ..content.models import ALL_COLLECTIONS, Collection, ContentRecord
from .base import (
    ContentStore,
    ContentStoreQueryError,
    RecordNotFoundError,
    SimilarityRow,
    TitleRow,
)


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine similarity of two 1-D vectors; 0.0 when either is all zeros."""
    denom = float(np.linalg.norm(a) * np.linalg.norm(b))
    if denom == 0.0:
        return 0.0
    return float(np.dot(a, b) / denom)


class InMemoryContentStore(ContentStore):
    """Content store backed by dictionaries."""

    def __init__(self, records: Optional[Iterable[ContentRecord]] = None):
        self._records: Dict[Collection, Dict[str, ContentRecord]] = {
            collection: {} for collection in ALL_COLLECTIONS
        }
        self._vectors: Dict[Collection, Dict[str, np.ndarray]] = {
            collection: {} for collection in ALL_COLLECTIONS
        }
        for record in records or ():
            self.add_record(record)

    def add_record(self, record: ContentRecord) -> None:
        """Insert or replace a record; its stored vector is left untouched."""
        self._records[record.collection][record.id] = record

    def remove_record(self, collection: Collection, record_id: str) -> None:
        """Delete a record and its vector."""
        self._records[collection].pop(record_id, None)
        self._vectors[collection].pop(record_id, None)

    async def fetch_records(self, collection: Collection) -> List[ContentRecord]:
        return list(self._records[collection].values())

    async def search_similar(
        self,
        collection: Collection,
        query_vector: np.ndarray,
        similarity_threshold: float,
        limit: int
    ) -> List[SimilarityRow]:
        query = np.asarray(query_vector, dtype=np.float32)
        scored = []
        for record_id, vector in self._vectors[collection].items():
            record = self._records[collection].get(record_id)
            if record is None or not record.published:
                continue
            if vector.shape != query.shape:
                raise ContentStoreQueryError(
                    f"Dimension mismatch: stored {vector.shape[0]}, query {query.shape[0]}"
                )
            similarity = cosine_similarity(query, vector)
            if similarity > similarity_threshold:
                scored.append((record.id, record.title, record.slug, similarity))

        # sorted() is stable, so equal scores keep insertion order
        scored = sorted(scored, key=lambda row: row[3], reverse=True)
        return scored[:limit]

    async def search_title(
        self,
        collection: Collection,
        pattern: str,
        limit: int
    ) -> List[TitleRow]:
        needle = pattern.casefold()
        matches = [
            (record.id, record.title, record.slug)
            for record in self._records[collection].values()
            if record.published and needle in record.title.casefold()
        ]
        return matches[:limit]

    async def store_embedding(
        self,
        collection: Collection,
        record_id: str,
        vector: np.ndarray
    ) -> None:
        if record_id not in self._records[collection]:
            raise RecordNotFoundError(f"{collection.value} record {record_id} not found")
        array = np.asarray(vector, dtype=np.float32)
        if array.ndim != 1:
            raise ValueError("Vector must be one-dimensional")
        self._vectors[collection][record_id] = array

    async def get_embedding(self, collection: Collection, record_id: str) -> np.ndarray:
        try:
            return self._vectors[collection][record_id]
        except KeyError:
            raise RecordNotFoundError(
                f"No embedding for {collection.value} record {record_id}"
            ) from None

    async def health_check(self) -> bool:
        return True
