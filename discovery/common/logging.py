"""Structured logging for the discovery service and the reindex CLI.

``configure_logging`` runs once per process, before the first log line.
Output is JSON by default or ``console`` for local runs. Every line carries
the ``service`` name; the HTTP middleware also binds ``method`` and ``path``
for the duration of a request.
"""

import logging
import sys
import time
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory, add_logger_name

LOG_FORMATS = ("json", "console")

# httpx logs every provider request at INFO
QUIET_LOGGERS = ("httpx", "httpcore")


def _parse_level(log_level: str) -> int:
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")
    return level


def configure_logging(
    service_name: str,
    log_level: str = "INFO",
    log_format: str = "json",
) -> None:
    """Configure structlog and the stdlib root logger.

    Parameters
    - service_name: Bound to every log line as ``service``
    - log_level: ``DEBUG``, ``INFO``, ``WARNING``, ``ERROR`` (case-insensitive)
    - log_format: ``json`` or ``console``

    Raises ``ValueError`` for an unknown level or format.
    """
    level = _parse_level(log_level)
    if log_format not in LOG_FORMATS:
        raise ValueError(f"Unknown log format: {log_format} (expected one of {LOG_FORMATS})")

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_logger_name,
    ]

    if log_format == "json":
        processors.extend([
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ])
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service=service_name)


def log_performance(operation: str, started_at: float, **kwargs: Any) -> float:
    """Log the wall time of ``operation`` and return it in milliseconds.

    ``started_at`` is a ``time.time()`` reading taken when the work began;
    ``kwargs`` are extra dimensions such as ``collection`` or ``processed``.
    """
    duration_ms = round((time.time() - started_at) * 1000, 2)
    structlog.get_logger("performance").info(
        "Operation completed",
        operation=operation,
        duration_ms=duration_ms,
        **kwargs
    )
    return duration_ms
