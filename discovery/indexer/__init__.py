"""Batch reindexing of content embeddings."""

from .indexer import (
    CollectionReport,
    Indexer,
    IndexerPreconditionError,
    ReindexReport,
)

__all__ = [
    "CollectionReport",
    "Indexer",
    "IndexerPreconditionError",
    "ReindexReport",
]
