"""Configuration management for the discovery service.

This module centralizes environment-driven configuration for the search API,
the embedding client and the indexer. It builds on ``pydantic-settings`` so
configuration can be provided via environment variables, ``.env`` files, or
defaults. Field names match their environment variables (case-insensitive).

Highlights
- Strongly-typed settings with sensible defaults
- One place to discover commonly used environment variables
- Small concern-specific subclasses to keep responsibilities clear

Usage
- Inject the appropriate config in your entrypoint:
  ``config = ServiceConfig()``
- Or select dynamically: ``config = get_config("indexer")``
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration shared by every entrypoint.

    Notes
    - Add new shared settings here so the concern-specific classes inherit them.
    - Prefer adding a field over reading ``os.environ`` directly.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    discovery_env: str = Field(default="local")

    # Logging
    discovery_log_level: str = Field(default="INFO")
    discovery_log_format: str = Field(default="json")

    # Content store
    discovery_store_backend: str = Field(default="pgvector", description="pgvector or memory")
    discovery_db_dsn: Optional[str] = Field(default=None)
    discovery_db_pool_size: int = Field(default=10)
    discovery_db_command_timeout: int = Field(default=60)
    discovery_vector_dimension: int = Field(default=1536)


class EmbeddingConfig(BaseConfig):
    """Configuration for the embedding provider client.

    An absent ``openai_api_key`` means no provider is configured: search runs
    in keyword mode and reindexing is refused.
    """

    openai_api_key: Optional[str] = Field(default=None)
    discovery_embedding_base_url: str = Field(default="https://api.openai.com/v1")
    discovery_embedding_model: str = Field(default="text-embedding-3-small")
    discovery_embedding_timeout: float = Field(default=30.0)
    discovery_embedding_breaker_threshold: int = Field(default=5)
    discovery_embedding_breaker_recovery: float = Field(default=30.0)


class SearchConfig(EmbeddingConfig):
    """Configuration for the query path.

    Threshold and cap are ranking knobs, not correctness constraints.
    """

    discovery_search_port: int = Field(default=9007)
    discovery_search_match_threshold: float = Field(default=0.1)
    discovery_search_match_count: int = Field(default=5)


class IndexerConfig(EmbeddingConfig):
    """Configuration for the reindex pipeline."""

    discovery_index_max_chars: int = Field(default=8000)
    discovery_index_retry_attempts: int = Field(default=1)
    discovery_index_retry_base_delay: float = Field(default=1.0)
    discovery_index_retry_max_delay: float = Field(default=8.0)


class ServiceConfig(SearchConfig, IndexerConfig):
    """Configuration for the HTTP service, which hosts both search and reindex."""
    pass


def get_config(service_name: str) -> BaseConfig:
    """Get configuration for a specific entrypoint.

    Parameters
    - service_name: Literal name: ``embedding``, ``search``, ``indexer`` or
      ``service``.

    Returns
    - A concrete ``BaseConfig`` subclass pre-wired to read the right env vars.
    """
    config_map = {
        "embedding": EmbeddingConfig,
        "search": SearchConfig,
        "indexer": IndexerConfig,
        "service": ServiceConfig,
    }

    # Default to ``BaseConfig`` to avoid surprising crashes for unknown names.
    config_class = config_map.get(service_name, BaseConfig)
    return config_class()
