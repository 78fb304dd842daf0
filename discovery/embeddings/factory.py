"""Embedding client factory.

Provider availability is decided here, once, from configuration: without a
credential the factory returns ``None`` and callers run without a provider.

Each call builds a client with its own circuit breaker. The service creates
one client for queries and another for reindexing, so a reindex run that
trips its breaker does not push live queries into keyword mode, and an open
query breaker does not fail a reindex.
"""

from typing import Optional

import structlog

from ..common.circuit_breaker import CircuitBreaker
from ..common.config import EmbeddingConfig
from ..common.metrics import MetricsCollector
from .base import EmbeddingClient
from .openai import OpenAIEmbeddingClient, is_provider_outage

logger = structlog.get_logger("embeddings.factory")


def create_embedding_client(
    config: EmbeddingConfig,
    metrics_collector: Optional[MetricsCollector] = None,
    name: str = "embedding_provider",
) -> Optional[EmbeddingClient]:
    """Create the configured embedding client, or ``None`` when unconfigured.

    ``name`` labels the client's circuit breaker in logs and health output.
    """
    if not config.openai_api_key:
        logger.info("No embedding provider configured; semantic search disabled", name=name)
        return None

    breaker = CircuitBreaker(
        failure_threshold=config.discovery_embedding_breaker_threshold,
        recovery_timeout=config.discovery_embedding_breaker_recovery,
        is_failure=is_provider_outage,
        name=name,
    )
    logger.info(
        "Embedding provider configured",
        name=name,
        model=config.discovery_embedding_model,
        base_url=config.discovery_embedding_base_url
    )
    return OpenAIEmbeddingClient(
        api_key=config.openai_api_key,
        model=config.discovery_embedding_model,
        base_url=config.discovery_embedding_base_url,
        timeout=config.discovery_embedding_timeout,
        circuit_breaker=breaker,
        metrics_collector=metrics_collector,
    )
