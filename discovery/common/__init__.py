"""Common utilities shared across the service.

Includes:
- ``config``: Pydantic-based configuration from environment variables.
- ``logging``: structured logging setup with structlog.
- ``metrics``: Prometheus metrics helpers.
- ``circuit_breaker``: async circuit breaker for external provider calls.
- ``errors``: root exception type.

Import pattern:
- from discovery.common.config import SearchConfig
- from discovery.common.logging import configure_logging
"""
