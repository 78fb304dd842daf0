"""Metrics collection for the discovery service.

Provides a thin convenience wrapper around ``prometheus_client`` so the API,
query router and indexer record HTTP, search, embedding and indexing metrics
consistently.

Design notes
- Metrics and labels are predeclared to avoid cardinality explosions
- A single registry is kept per collector (can be injected for tests)
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest


class MetricsCollector:
    """Centralized metrics collection.

    Parameters
    - service_name: Logical name used for scoping
    - registry: Optional custom ``CollectorRegistry`` (e.g. for testing)
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry or CollectorRegistry()

        self.request_count = Counter(
            'http_requests_total',
            'Total HTTP requests',
            ['method', 'endpoint', 'status'],
            registry=self.registry
        )

        self.request_duration = Histogram(
            'http_request_duration_seconds',
            'HTTP request duration',
            ['method', 'endpoint'],
            registry=self.registry
        )

        self.search_requests = Counter(
            'discovery_search_requests_total',
            'Total search requests partitioned by the mode that ran',
            ['mode'],
            registry=self.registry
        )

        self.search_duration = Histogram(
            'discovery_search_duration_seconds',
            'Search duration',
            ['mode'],
            registry=self.registry
        )

        self.collection_failures = Counter(
            'discovery_collection_failures_total',
            'Per-collection lookups that failed and were answered with an empty list',
            ['collection', 'mode'],
            registry=self.registry
        )

        self.embedding_requests = Counter(
            'discovery_embedding_requests_total',
            'Total embedding provider calls',
            ['outcome'],
            registry=self.registry
        )

        self.embedding_duration = Histogram(
            'discovery_embedding_duration_seconds',
            'Embedding provider call duration',
            ['outcome'],
            registry=self.registry
        )

        self.indexed_records = Counter(
            'discovery_indexed_records_total',
            'Records attempted by reindex runs',
            ['collection', 'outcome'],
            registry=self.registry
        )

    def record_http_request(
        self,
        method: str,
        endpoint: str,
        status: int,
        duration: float
    ) -> None:
        """Record HTTP request metrics.

        duration is expected in seconds to match Prometheus histogram units.
        """
        self.request_count.labels(method=method, endpoint=endpoint, status=status).inc()
        self.request_duration.labels(method=method, endpoint=endpoint).observe(duration)

    def record_search(self, mode: str, duration: float) -> None:
        """Record search metrics."""
        self.search_requests.labels(mode=mode).inc()
        self.search_duration.labels(mode=mode).observe(duration)

    def record_collection_failure(self, collection: str, mode: str) -> None:
        """Record a collection lookup that degraded to an empty list."""
        self.collection_failures.labels(collection=collection, mode=mode).inc()

    def record_embedding(self, outcome: str, duration: float) -> None:
        """Record an embedding provider call (``success`` or ``failure``)."""
        self.embedding_requests.labels(outcome=outcome).inc()
        self.embedding_duration.labels(outcome=outcome).observe(duration)

    def record_indexed(self, collection: str, outcome: str) -> None:
        """Record one reindexed record (``indexed``, ``failed`` or ``skipped``)."""
        self.indexed_records.labels(collection=collection, outcome=outcome).inc()

    def get_metrics(self) -> str:
        """Get metrics in Prometheus exposition format for scraping."""
        return generate_latest(self.registry).decode('utf-8')


# Global metrics collector instance
_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector(service_name: str) -> MetricsCollector:
    """Get or create the process-wide metrics collector.

    Returns a singleton to avoid duplicate collectors/labels.
    """
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector(service_name)
    return _metrics_collector
