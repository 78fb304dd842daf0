"""Tests for the HTTP endpoints."""

import pytest
from fastapi.testclient import TestClient

from discovery.api.main import create_app
from discovery.api.routes import get_content_store, get_indexer, get_query_router
from discovery.common.metrics import MetricsCollector
from discovery.indexer.indexer import Indexer
from discovery.vector_store.memory import InMemoryContentStore
from tests.conftest import (
    FailingEmbeddingClient,
    KeywordEmbeddingClient,
    make_router,
    sample_records,
)


class UnhealthyStore(InMemoryContentStore):
    async def health_check(self) -> bool:
        return False


def _client(embedding_client=None, store=None):
    """Build a test client wired to in-memory collaborators."""
    store = store or InMemoryContentStore(sample_records())
    app = create_app()
    app.state.metrics_collector = MetricsCollector("test-service")
    app.state.embedding_client = embedding_client
    app.dependency_overrides[get_content_store] = lambda: store
    app.dependency_overrides[get_query_router] = lambda: make_router(store, embedding_client)
    app.dependency_overrides[get_indexer] = lambda: Indexer(store, embedding_client)
    return TestClient(app)


def test_search_keyword_mode():
    """Test search without a provider returns keyword results."""
    client = _client()

    response = client.post("/api/search", json={"query": "quartet"})

    assert response.status_code == 200
    data = response.json()
    assert data["mode"] == "keyword"
    assert [r["title"] for r in data["projects"]] == ["Million Dollar Quartet"]
    assert data["tutorials"] == [] and data["articles"] == [] and data["news"] == []


def test_search_failing_provider_never_errors():
    """Test provider failure still answers 200 in keyword mode."""
    client = _client(FailingEmbeddingClient())

    response = client.post("/api/search", json={"query": "quartet"})

    assert response.status_code == 200
    assert response.json()["mode"] == "keyword"


@pytest.mark.parametrize("body", [{}, {"query": ""}, {"query": " "}, {"query": 5}, ["quartet"]])
def test_search_rejects_missing_query(body):
    """Test invalid bodies return 400 with an error message."""
    client = _client()

    response = client.post("/api/search", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "Query is required"}


def test_search_rejects_non_json_body():
    """Test a body that is not JSON is treated as a missing query."""
    client = _client()

    response = client.post("/api/search", content=b"not json", headers={"Content-Type": "text/plain"})

    assert response.status_code == 400


def test_reindex_success():
    """Test reindex returns per-collection counts."""
    client = _client(KeywordEmbeddingClient())

    response = client.post("/api/admin/reindex")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "indexed": {"projects": 1, "tutorials": 1, "articles": 2, "news": 1},
    }


def test_reindex_without_provider():
    """Test reindex names the missing credential."""
    client = _client()

    response = client.post("/api/admin/reindex")

    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "OpenAI API Key not configured"
    assert "OPENAI_API_KEY" in data["suggestion"]


def test_semantic_search_after_reindex():
    """Test reindex then search through the API runs in semantic mode."""
    client = _client(KeywordEmbeddingClient())
    client.post("/api/admin/reindex")

    response = client.post("/api/search", json={"query": "1950s rock and roll musical"})

    data = response.json()
    assert data["mode"] == "semantic"
    assert data["projects"][0]["locator"] == "/project/million-dollar-quartet"


def test_health_check():
    """Test health reflects content store health."""
    assert _client().get("/health").json()["status"] == "healthy"

    response = _client(store=UnhealthyStore()).get("/health")
    assert response.status_code == 503
    assert response.json()["status"] == "unhealthy"


def test_metrics_and_root():
    """Test metrics exposition and the service descriptor."""
    client = _client()
    client.post("/api/search", json={"query": "quartet"})

    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "http_requests_total" in metrics.text

    root = client.get("/").json()
    assert root["endpoints"]["search"] == "/api/search"
    assert root["endpoints"]["reindex"] == "/api/admin/reindex"


def test_startup_gives_reindex_its_own_breaker(monkeypatch):
    """Test queries and reindexing use separate provider circuit breakers."""
    monkeypatch.setenv("DISCOVERY_STORE_BACKEND", "memory")
    monkeypatch.setenv("DISCOVERY_LOG_FORMAT", "console")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    app = create_app()

    with TestClient(app) as client:
        query_breaker = app.state.query_router.embedding_client.circuit_breaker
        reindex_breaker = app.state.indexer.embedding_client.circuit_breaker
        assert query_breaker is not reindex_breaker

        body = client.get("/health").json()

    assert body["semantic_search"] is True
    assert [b["name"] for b in body["embedding_circuit_breakers"]] == [
        "embedding_query",
        "embedding_reindex",
    ]
