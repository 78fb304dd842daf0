"""Content and result models shared by the indexer and the query path.

Collections are a closed set of four. Each carries its storage table, the key
it is reported under in search and reindex responses, and the route prefix a
rendering layer uses to build a locator from a record's slug.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union


class Collection(Enum):
    """The four content collections of the site."""
    PROJECT = "project"
    TUTORIAL = "tutorial"
    ARTICLE = "article"
    NEWS = "news"

    @property
    def table(self) -> str:
        return _TABLES[self]

    @property
    def response_key(self) -> str:
        return _RESPONSE_KEYS[self]

    def locator(self, slug: str) -> str:
        """Build the site path for a record slug in this collection."""
        return f"{_ROUTE_PREFIXES[self]}{slug}"

    @classmethod
    def from_response_key(cls, key: str) -> "Collection":
        for collection, response_key in _RESPONSE_KEYS.items():
            if response_key == key:
                return collection
        raise ValueError(f"Unknown collection key: {key}")


_TABLES = {
    Collection.PROJECT: "portfolio_projects",
    Collection.TUTORIAL: "tutorials",
    Collection.ARTICLE: "articles",
    Collection.NEWS: "news",
}

_RESPONSE_KEYS = {
    Collection.PROJECT: "projects",
    Collection.TUTORIAL: "tutorials",
    Collection.ARTICLE: "articles",
    Collection.NEWS: "news",
}

_ROUTE_PREFIXES = {
    Collection.PROJECT: "/project/",
    Collection.TUTORIAL: "/tutorial/",
    Collection.ARTICLE: "/articles/",
    Collection.NEWS: "/news/",
}

# Response order is fixed; every search and reindex response lists all four.
ALL_COLLECTIONS = (
    Collection.PROJECT,
    Collection.TUTORIAL,
    Collection.ARTICLE,
    Collection.NEWS,
)


@dataclass
class ContentBlock:
    """One typed block of a block-structured body."""
    type: str
    content: Any = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContentBlock":
        metadata = data.get("metadata")
        return cls(
            type=str(data.get("type") or ""),
            content=data.get("content") or "",
            metadata=metadata if isinstance(metadata, dict) else {},
        )


Body = Union[str, Sequence[ContentBlock], None]


def _coerce_block(block: Union[Dict[str, Any], str, ContentBlock]) -> ContentBlock:
    # Bare strings come from note arrays (e.g. project design notes).
    if isinstance(block, ContentBlock):
        return block
    if isinstance(block, str):
        return ContentBlock(type="paragraph", content=block)
    return ContentBlock.from_dict(block)


@dataclass
class ContentRecord:
    """A content item as assembled by the authoring side.

    ``body`` is either a flat string or a sequence of typed blocks.
    """
    id: str
    title: str
    collection: Collection
    slug: str = ""
    excerpt: Optional[str] = None
    body: Body = None
    published: bool = True

    @classmethod
    def from_row(cls, collection: Collection, row: Dict[str, Any]) -> "ContentRecord":
        """Build a record from a storage row, decoding block bodies."""
        body = row.get("body")
        if isinstance(body, list):
            body = [
                _coerce_block(block)
                for block in body
                if isinstance(block, (dict, str, ContentBlock))
            ]
        return cls(
            id=str(row["id"]),
            title=row.get("title") or "",
            collection=collection,
            slug=row.get("slug") or "",
            excerpt=row.get("excerpt"),
            body=body,
            published=bool(row.get("published", True)),
        )


@dataclass
class SearchResult:
    """A ranked match within a single collection.

    ``score`` is comparable only within one collection and one mode; keyword
    matches carry no score.
    """
    id: str
    title: str
    locator: str
    collection: Collection
    score: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["collection"] = self.collection.value
        return data


CollectionResults = Dict[Collection, List[SearchResult]]
