"""Content store factory.

Centralizes creation of concrete ``ContentStore`` backends so callers don't
depend on implementation details.
"""

from enum import Enum
from typing import Any, Dict

import structlog

from ..common.config import BaseConfig
from .base import ContentStore
from .memory import InMemoryContentStore
from .pgvector import PgContentStore

logger = structlog.get_logger("vector_store.factory")


class ContentStoreType(Enum):
    """Supported content store types."""
    PGVECTOR = "pgvector"
    MEMORY = "memory"


def create_content_store(store_type: str, config: Dict[str, Any]) -> ContentStore:
    """Create a content store.

    Parameters
    - store_type: ``pgvector`` or ``memory``
    - config: Backend-specific parameters (e.g., ``dsn`` for pgvector)
    """
    try:
        store_type_enum = ContentStoreType(store_type)
    except ValueError:
        raise ValueError(f"Unsupported content store type: {store_type}") from None

    if store_type_enum == ContentStoreType.PGVECTOR:
        dsn = config.get("dsn")
        if not dsn:
            raise ValueError("PgVector requires 'dsn' in config")

        return PgContentStore(
            dsn=dsn,
            pool_size=config.get("pool_size", 10),
            command_timeout=config.get("command_timeout", 60),
            vector_dimension=config.get("vector_dimension"),
        )

    logger.warning("Using in-memory content store; content is not persisted")
    return InMemoryContentStore()


def create_content_store_from_config(config: BaseConfig) -> ContentStore:
    """Create the content store selected by ``DISCOVERY_STORE_BACKEND``."""
    if config.discovery_store_backend == ContentStoreType.PGVECTOR.value and not config.discovery_db_dsn:
        raise ValueError("DISCOVERY_DB_DSN environment variable is required")

    return create_content_store(
        config.discovery_store_backend,
        {
            "dsn": config.discovery_db_dsn,
            "pool_size": config.discovery_db_pool_size,
            "command_timeout": config.discovery_db_command_timeout,
            "vector_dimension": config.discovery_vector_dimension,
        },
    )
