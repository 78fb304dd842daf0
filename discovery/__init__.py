"""Content discovery service.

Subpackages:
- ``discovery.common``: configuration, logging, metrics, and resilience helpers.
- ``discovery.content``: content record model and text normalization.
- ``discovery.embeddings``: embedding provider clients.
- ``discovery.vector_store``: content store abstractions and concrete backends.
- ``discovery.search``: per-collection adapters and the query router.
- ``discovery.indexer``: full reindex pipeline.
- ``discovery.api``: FastAPI application exposing search and reindex.
"""

__version__ = "0.1.0"
