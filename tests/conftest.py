"""Shared fixtures: in-memory content, fake embedding providers, failing stores."""

from typing import List

import numpy as np
import pytest

from discovery.content.models import Collection, ContentBlock, ContentRecord
from discovery.embeddings.base import EmbeddingClient, EmbeddingProviderError
from discovery.search.adapters import KeywordMatcher, VectorStoreAdapter
from discovery.search.router import QueryRouter
from discovery.vector_store.base import ContentStoreQueryError
from discovery.vector_store.memory import InMemoryContentStore

# Each term is one axis of the fake embedding space; "1950s rock and roll
# musical" and "Million Dollar Quartet" share the rock/musical axes.
VOCABULARY = [
    ("rock", ("rock", "quartet", "elvis")),
    ("musical", ("musical", "quartet", "broadway")),
    ("design", ("design", "scenic", "set")),
    ("python", ("python", "code")),
    ("lighting", ("lighting", "light")),
]


class KeywordEmbeddingClient(EmbeddingClient):
    """Deterministic embeddings: one axis per vocabulary concept."""

    def __init__(self):
        self.calls: List[str] = []

    async def embed(self, text: str) -> np.ndarray:
        self.calls.append(text)
        lowered = text.casefold()
        vector = [
            float(sum(lowered.count(term) for term in terms))
            for _, terms in VOCABULARY
        ]
        # Constant bias keeps unrelated texts from being all-zero
        vector.append(0.01)
        return np.asarray(vector, dtype=np.float32)

    async def close(self) -> None:
        return None


class FailingEmbeddingClient(EmbeddingClient):
    """Provider that is configured but always fails."""

    def __init__(self):
        self.calls = 0

    async def embed(self, text: str) -> np.ndarray:
        self.calls += 1
        raise EmbeddingProviderError("provider unavailable")

    async def close(self) -> None:
        return None


class BrokenEmbeddingClient(EmbeddingClient):
    """Client whose transport fails with an error outside the embedding hierarchy."""

    async def embed(self, text: str) -> np.ndarray:
        raise ConnectionError("socket reset")

    async def close(self) -> None:
        return None


class FlakyEmbeddingClient(KeywordEmbeddingClient):
    """Fails for texts containing any of ``fail_on``; succeeds otherwise."""

    def __init__(self, fail_on, failures_before_success=None):
        super().__init__()
        self.fail_on = tuple(fail_on)
        self.failures_before_success = failures_before_success
        self.failures = 0

    async def embed(self, text: str) -> np.ndarray:
        if any(term in text for term in self.fail_on):
            if self.failures_before_success is None or self.failures < self.failures_before_success:
                self.failures += 1
                raise EmbeddingProviderError(f"cannot embed {text[:20]}")
        return await super().embed(text)


class PartiallyFailingStore(InMemoryContentStore):
    """In-memory store whose lookups fail for selected collections."""

    def __init__(self, failing, records=None):
        super().__init__(records)
        self.failing = set(failing)

    def _check(self, collection: Collection) -> None:
        if collection in self.failing:
            raise ContentStoreQueryError(f"{collection.value} table unavailable")

    async def fetch_records(self, collection):
        self._check(collection)
        return await super().fetch_records(collection)

    async def search_similar(self, collection, query_vector, similarity_threshold, limit):
        self._check(collection)
        return await super().search_similar(collection, query_vector, similarity_threshold, limit)

    async def search_title(self, collection, pattern, limit):
        self._check(collection)
        return await super().search_title(collection, pattern, limit)


def sample_records() -> List[ContentRecord]:
    """A small site: one record per collection plus an unpublished draft."""
    return [
        ContentRecord(
            id="p1",
            title="Million Dollar Quartet",
            collection=Collection.PROJECT,
            slug="million-dollar-quartet",
            excerpt="Scenic design for a rock musical",
            body=["Period jukebox palette", "Sun Records studio set"],
        ),
        ContentRecord(
            id="t1",
            title="Python for Lighting Cues",
            collection=Collection.TUTORIAL,
            slug="python-lighting-cues",
            excerpt="Automate your console",
            body=[
                ContentBlock(type="heading", content="Getting started"),
                ContentBlock(type="code", content="print('go')"),
            ],
        ),
        ContentRecord(
            id="a1",
            title="Becoming a Scenic Designer",
            collection=Collection.ARTICLE,
            slug="becoming-a-scenic-designer",
            excerpt="Notes on a design career",
            body=[{"type": "paragraph", "content": "<p>Start with <b>models</b>.</p>"}],
        ),
        ContentRecord(
            id="n1",
            title="Studio News",
            collection=Collection.NEWS,
            slug="studio-news",
            excerpt="New lighting rig installed",
            body="The studio now has a new light plot.",
        ),
        ContentRecord(
            id="a2",
            title="Quartet Draft",
            collection=Collection.ARTICLE,
            slug="quartet-draft",
            excerpt="Unfinished rock musical notes",
            published=False,
        ),
    ]


@pytest.fixture
def records():
    return sample_records()


@pytest.fixture
def store(records):
    return InMemoryContentStore(records)


@pytest.fixture
def embedding_client():
    return KeywordEmbeddingClient()


def make_router(store, embedding_client=None, **kwargs) -> QueryRouter:
    """Build a router over one store."""
    return QueryRouter(
        vector_adapter=VectorStoreAdapter(store),
        keyword_matcher=KeywordMatcher(store),
        embedding_client=embedding_client,
        **kwargs
    )
