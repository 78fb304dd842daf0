"""Circuit breaker for calls to the external embedding provider.

CLOSED passes calls through and counts consecutive failures. Reaching
``failure_threshold`` OPENs the breaker, which then rejects calls for
``recovery_timeout`` seconds. After that a single trial call is let through
(HALF_OPEN); its outcome closes or re-opens the breaker, and calls arriving
while it is in flight are rejected.
"""

import asyncio
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

import structlog

from .errors import DiscoveryError

logger = structlog.get_logger("circuit_breaker")


class CircuitBreakerState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerError(DiscoveryError):
    """Call rejected without reaching the provider."""
    pass


def _count_every_error(exc: BaseException) -> bool:
    return True


class CircuitBreaker:
    """Fail fast on a dependency after repeated failures."""

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
        is_failure: Optional[Callable[[BaseException], bool]] = None,
        name: str = "circuit_breaker"
    ):
        """Configure a circuit breaker.

        Parameters
        - failure_threshold: Consecutive failures before opening
        - recovery_timeout: Seconds an open breaker waits before a trial call
        - is_failure: Decides whether an error counts against the dependency;
          errors it rejects count as a successful round trip. Default: all.
        - name: Identifier for logs and health output
        """
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.is_failure = is_failure or _count_every_error
        self.name = name

        self.state = CircuitBreakerState.CLOSED
        self.failure_count = 0
        self.rejected_count = 0
        self.opened_at: Optional[float] = None
        self._trial_in_flight = False
        self._lock = asyncio.Lock()

    async def call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """Await ``func`` unless the breaker rejects the call."""
        await self._admit()

        try:
            result = await func(*args, **kwargs)
        except asyncio.CancelledError:
            self._trial_in_flight = False
            raise
        except Exception as e:
            await self._record(failed=self.is_failure(e))
            raise

        await self._record(failed=False)
        return result

    def retry_in(self) -> float:
        """Seconds until an open breaker admits its trial call."""
        if self.state != CircuitBreakerState.OPEN or self.opened_at is None:
            return 0.0
        return max(0.0, self.recovery_timeout - (time.monotonic() - self.opened_at))

    async def _admit(self) -> None:
        async with self._lock:
            if self.state == CircuitBreakerState.OPEN:
                if self.retry_in() > 0:
                    self._reject()
                self.state = CircuitBreakerState.HALF_OPEN
                logger.info("Circuit breaker admitting trial call", name=self.name)
            elif self.state == CircuitBreakerState.HALF_OPEN and self._trial_in_flight:
                self._reject()

            if self.state == CircuitBreakerState.HALF_OPEN:
                self._trial_in_flight = True

    def _reject(self) -> None:
        self.rejected_count += 1
        logger.warning(
            "Circuit breaker rejecting call",
            name=self.name,
            state=self.state.value,
            retry_in=round(self.retry_in(), 3)
        )
        raise CircuitBreakerError(f"Circuit breaker {self.name} is {self.state.value}")

    async def _record(self, failed: bool) -> None:
        async with self._lock:
            self._trial_in_flight = False

            if not failed:
                if self.state == CircuitBreakerState.HALF_OPEN:
                    logger.info("Circuit breaker closed after trial call", name=self.name)
                self.state = CircuitBreakerState.CLOSED
                self.failure_count = 0
                return

            self.failure_count += 1
            if self.state == CircuitBreakerState.HALF_OPEN or self.failure_count >= self.failure_threshold:
                self.state = CircuitBreakerState.OPEN
                self.opened_at = time.monotonic()
                logger.warning(
                    "Circuit breaker opened",
                    name=self.name,
                    failure_count=self.failure_count,
                    threshold=self.failure_threshold
                )

    def get_stats(self) -> Dict[str, Any]:
        """Breaker state for the health endpoint."""
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self.failure_count,
            "failure_threshold": self.failure_threshold,
            "rejected_count": self.rejected_count,
            "recovery_timeout": self.recovery_timeout,
            "retry_in": round(self.retry_in(), 3),
        }
