"""Query-time search: per-collection adapters and the mode-selecting router."""

from .adapters import KeywordMatcher, VectorStoreAdapter
from .router import (
    InvalidQueryError,
    KeywordBatch,
    QueryRouter,
    SearchMode,
    SearchResponse,
    SemanticBatch,
    validate_query,
)

__all__ = [
    "InvalidQueryError",
    "KeywordBatch",
    "KeywordMatcher",
    "QueryRouter",
    "SearchMode",
    "SearchResponse",
    "SemanticBatch",
    "VectorStoreAdapter",
    "validate_query",
]
