"""Discovery service main application."""

import time
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..common.config import get_config
from ..common.logging import configure_logging
from ..common.metrics import get_metrics_collector
from ..embeddings.factory import create_embedding_client
from ..indexer.indexer import Indexer
from ..search.adapters import KeywordMatcher, VectorStoreAdapter
from ..search.router import QueryRouter
from ..vector_store.base import ContentStore
from ..vector_store.factory import create_content_store_from_config
from .routes import get_content_store, router as api_router

SERVICE_NAME = "discovery-service"

logger = structlog.get_logger("discovery_service")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    config = get_config("service")
    configure_logging(SERVICE_NAME, config.discovery_log_level, config.discovery_log_format)

    logger.info("Starting discovery service", env=config.discovery_env)

    metrics_collector = get_metrics_collector(SERVICE_NAME)
    store = create_content_store_from_config(config)
    embedding_client = create_embedding_client(config, metrics_collector, name="embedding_query")
    indexer_embedding_client = create_embedding_client(
        config, metrics_collector, name="embedding_reindex"
    )

    app.state.metrics_collector = metrics_collector
    app.state.content_store = store
    app.state.embedding_client = embedding_client
    app.state.indexer_embedding_client = indexer_embedding_client
    app.state.query_router = QueryRouter(
        vector_adapter=VectorStoreAdapter(store),
        keyword_matcher=KeywordMatcher(store),
        embedding_client=embedding_client,
        match_threshold=config.discovery_search_match_threshold,
        match_count=config.discovery_search_match_count,
        metrics_collector=metrics_collector,
    )
    app.state.indexer = Indexer(
        store=store,
        embedding_client=indexer_embedding_client,
        max_chars=config.discovery_index_max_chars,
        retry_attempts=config.discovery_index_retry_attempts,
        retry_base_delay=config.discovery_index_retry_base_delay,
        retry_max_delay=config.discovery_index_retry_max_delay,
        metrics_collector=metrics_collector,
    )

    logger.info(
        "Discovery service started successfully",
        store_backend=config.discovery_store_backend,
        semantic_search=embedding_client is not None
    )

    yield

    # Shutdown
    logger.info("Shutting down discovery service")
    for client in (embedding_client, indexer_embedding_client):
        if client is not None:
            await client.close()
    await store.close()
    logger.info("Discovery service shutdown complete")


def create_app() -> FastAPI:
    """Build the FastAPI application with middleware and routes."""
    app = FastAPI(
        title="Discovery Service",
        description="Semantic search with keyword fallback across site content",
        version="0.1.0",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api")

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        """Add processing time header to responses."""
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        return response

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        """Collect metrics for HTTP requests."""
        start_time = time.time()

        try:
            with structlog.contextvars.bound_contextvars(method=request.method, path=request.url.path):
                response = await call_next(request)
            status_code = response.status_code
        except Exception as e:
            logger.error("Unhandled request error", path=request.url.path, error=str(e))
            status_code = 500
            response = JSONResponse(
                status_code=500,
                content={"error": "Internal server error", "detail": str(e)}
            )

        duration = time.time() - start_time

        if hasattr(request.app.state, "metrics_collector"):
            request.app.state.metrics_collector.record_http_request(
                method=request.method,
                endpoint=request.url.path,
                status=status_code,
                duration=duration
            )

        return response

    @app.get("/health")
    async def health_check(request: Request, store: ContentStore = Depends(get_content_store)):
        """Health check endpoint."""
        embedding_client = getattr(request.app.state, "embedding_client", None)
        body = {
            "service": SERVICE_NAME,
            "semantic_search": embedding_client is not None,
        }
        clients = (embedding_client, getattr(request.app.state, "indexer_embedding_client", None))
        breakers = [
            client.circuit_breaker.get_stats()
            for client in clients
            if getattr(client, "circuit_breaker", None) is not None
        ]
        if breakers:
            body["embedding_circuit_breakers"] = breakers

        try:
            store_health = await store.health_check()
        except Exception as e:
            logger.error("Health check failed", error=str(e))
            return JSONResponse(
                status_code=503,
                content={**body, "status": "unhealthy", "error": str(e)}
            )

        if store_health:
            return {**body, "status": "healthy"}
        return JSONResponse(status_code=503, content={**body, "status": "unhealthy"})

    @app.get("/metrics")
    async def metrics(request: Request):
        """Prometheus metrics endpoint."""
        if hasattr(request.app.state, "metrics_collector"):
            metrics_data = request.app.state.metrics_collector.get_metrics()
            return Response(content=metrics_data, media_type="text/plain")
        return Response(content="# No metrics available\n", media_type="text/plain")

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": SERVICE_NAME,
            "version": "0.1.0",
            "status": "running",
            "endpoints": {
                "health": "/health",
                "metrics": "/metrics",
                "search": "/api/search",
                "reindex": "/api/admin/reindex"
            }
        }

    return app


app = create_app()


def main() -> None:
    """Run the service with uvicorn."""
    config = ServiceConfig()
    uvicorn.run(
        "discovery.api.main:app",
        host="0.0.0.0",
        port=config.discovery_search_port,
        log_level=config.discovery_log_level.lower()
    )


if __name__ == "__main__":
    main()
