"""Content store adapters and utilities.

Primary components:
- ``base``: abstract ``ContentStore`` interface and common exceptions.
- ``pgvector``: PostgreSQL/pgvector implementation of the interface.
- ``memory``: in-process implementation for development and tests.
- ``factory``: helpers to construct a store from config.

Guidance:
- Prefer constructing via ``factory.create_content_store_from_config`` so
  entrypoints remain decoupled from specific backends.
"""
