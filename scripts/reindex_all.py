#!/usr/bin/env python3
"""Script to recompute embeddings for every content record."""

import argparse
import asyncio
import sys
from typing import List, Optional

import structlog

from discovery.common.config import IndexerConfig, get_config
from discovery.common.logging import configure_logging
from discovery.content.models import ALL_COLLECTIONS, Collection
from discovery.embeddings.factory import create_embedding_client
from discovery.indexer.indexer import Indexer, IndexerPreconditionError, ReindexReport
from discovery.vector_store.factory import create_content_store_from_config

logger = structlog.get_logger("reindex_all")


async def reindex_collections(
    collections: List[Collection],
    config: Optional[IndexerConfig] = None
) -> ReindexReport:
    """Reindex the given collections against the configured store and provider."""
    if not config:
        config = get_config("indexer")

    store = create_content_store_from_config(config)
    embedding_client = create_embedding_client(config, name="embedding_reindex")
    indexer = Indexer(
        store=store,
        embedding_client=embedding_client,
        max_chars=config.discovery_index_max_chars,
        retry_attempts=config.discovery_index_retry_attempts,
        retry_base_delay=config.discovery_index_retry_base_delay,
        retry_max_delay=config.discovery_index_retry_max_delay,
    )

    try:
        return await indexer.reindex(collections)
    finally:
        if embedding_client is not None:
            await embedding_client.close()
        await store.close()


def main(argv: Optional[List[str]] = None) -> int:
    """Main function for CLI."""
    parser = argparse.ArgumentParser(description="Recompute embeddings for all content records")
    parser.add_argument(
        "--collection",
        action="append",
        choices=[c.response_key for c in ALL_COLLECTIONS],
        help="Collection to reindex (repeatable; default: all)"
    )

    args = parser.parse_args(argv)

    config = get_config("indexer")
    configure_logging("reindex_all", config.discovery_log_level, config.discovery_log_format)

    if args.collection:
        collections = [Collection.from_response_key(key) for key in args.collection]
    else:
        collections = list(ALL_COLLECTIONS)

    try:
        report = asyncio.run(reindex_collections(collections, config))
    except IndexerPreconditionError as e:
        print(f"Reindexing not started: {e}")
        return 1
    except Exception as e:
        logger.error("Reindexing failed", error=str(e))
        print(f"Reindexing failed: {e}")
        return 1

    for key, count in report.counts.items():
        print(f"{key}: {count}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
