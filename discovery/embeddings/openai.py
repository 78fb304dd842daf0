"""OpenAI-compatible embedding client.

Talks to ``POST {base_url}/embeddings`` over a shared ``httpx.AsyncClient``.
Every failure after the request is attempted (transport error, non-2xx status,
malformed payload, open circuit) surfaces as ``EmbeddingProviderError`` so the
query router can degrade to keyword search.
"""

import time
from typing import Any, Dict, Optional

import httpx
import numpy as np
import structlog

from ..common.circuit_breaker import CircuitBreaker, CircuitBreakerError
from ..common.metrics import MetricsCollector
from .base import EmbeddingClient, EmbeddingNotConfiguredError, EmbeddingProviderError

logger = structlog.get_logger("embeddings.openai")

RETRY_LATER_STATUS = 429


def is_provider_outage(exc: BaseException) -> bool:
    """Whether an error from ``_request`` should count against the provider.

    Transport errors, 5xx and rate limiting do; other 4xx answers mean the
    provider is up and rejected this particular request.
    """
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status >= 500 or status == RETRY_LATER_STATUS
    return isinstance(exc, httpx.HTTPError)


class OpenAIEmbeddingClient(EmbeddingClient):
    """Embedding client for the OpenAI embeddings API."""

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        """Configure the client.

        Parameters
        - api_key: Provider credential; must be non-empty
        - model: Embedding model name
        - base_url: API root, without trailing ``/embeddings``
        - timeout: Seconds per request when the client owns its HTTP client
        - http_client: Optional shared ``httpx.AsyncClient`` (tests inject one)
        - circuit_breaker: Optional breaker guarding provider calls
        - metrics_collector: Optional collector for call counts/durations
        """
        if not api_key:
            raise EmbeddingNotConfiguredError("OpenAI API key is not configured")
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=timeout)
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            is_failure=is_provider_outage,
            name="embedding_provider"
        )
        self.metrics_collector = metrics_collector

    async def _request(self, text: str) -> Dict[str, Any]:
        """POST one embedding request and return the decoded body."""
        response = await self.http_client.post(
            f"{self.base_url}/embeddings",
            headers={"Authorization": f"Bearer {self._api_key}"},
            json={"model": self.model, "input": text},
        )
        response.raise_for_status()
        return response.json()

    async def embed(self, text: str) -> np.ndarray:
        """Embed ``text`` with a single provider call."""
        start_time = time.time()
        try:
            data = await self.circuit_breaker.call(self._request, text)
            vector = self._parse_vector(data)
        except CircuitBreakerError as e:
            self._record("failure", start_time)
            raise EmbeddingProviderError(str(e)) from e
        except httpx.HTTPStatusError as e:
            self._record("failure", start_time)
            logger.warning(
                "Embedding provider returned error status",
                status=e.response.status_code,
                model=self.model
            )
            raise EmbeddingProviderError(
                f"Embedding provider returned status {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            self._record("failure", start_time)
            logger.warning("Embedding provider call failed", model=self.model, error=str(e))
            raise EmbeddingProviderError(f"Embedding provider call failed: {e}") from e

        self._record("success", start_time)
        return vector

    @staticmethod
    def _parse_vector(data: Dict[str, Any]) -> np.ndarray:
        """Extract the first embedding from a provider response body."""
        try:
            embedding = data["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as e:
            raise ValueError("Malformed embedding response") from e
        vector = np.asarray(embedding, dtype=np.float32)
        if vector.ndim != 1 or vector.size == 0:
            raise ValueError("Embedding response is not a non-empty vector")
        if not np.all(np.isfinite(vector)):
            raise ValueError("Embedding response contains non-finite values")
        return vector

    def _record(self, outcome: str, start_time: float) -> None:
        if self.metrics_collector:
            self.metrics_collector.record_embedding(outcome, time.time() - start_time)

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self.http_client.aclose()
