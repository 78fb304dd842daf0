"""Content records, collections and text normalization."""

from .models import ALL_COLLECTIONS, Collection, ContentBlock, ContentRecord, SearchResult
from .normalizer import normalize

__all__ = [
    "ALL_COLLECTIONS",
    "Collection",
    "ContentBlock",
    "ContentRecord",
    "SearchResult",
    "normalize",
]
