from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from ..errors import BackendUnavailableError, RetryExhaustedError
from .enhanced_retry import EnhancedRetryStrategy
from .error_classifier import ErrorKind, classify_error

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Caller-side faults say nothing about backend health
_NOT_BACKEND_FAILURES = (ErrorKind.AUTH_ERROR, ErrorKind.CONTEXT_LENGTH_ERROR)


class RetryManager:
    """
    Runs one logical request with retries.

    This class handles:
    - Circuit breaker gating before every attempt
    - Reporting attempt outcomes back to the breaker
    - Cost-aware retry decisions through ``EnhancedRetryStrategy``
    - Non-blocking waits between attempts

    Attempts run strictly one after another. A caller may cancel between
    attempts; every state change is already complete at that point.
    """

    def __init__(
        self,
        strategy: EnhancedRetryStrategy,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        self.strategy = strategy
        self._sleep = sleep

    async def execute_with_retry(
        self,
        func: Callable[[], Awaitable[T]],
        *,
        estimated_tokens: Optional[int] = None,
        request_id: Optional[str] = None
    ) -> T:
        """
        Execute a function with retry logic.

        Args:
            func: Async function issuing one attempt
            estimated_tokens: Projected prompt tokens per attempt
            request_id: Identifier used in log records

        Returns:
            Result from successful function execution

        Raises:
            BackendUnavailableError: If the circuit breaker refuses the request
            RetryExhaustedError: If a failure is not retried, chained from it
        """
        breaker = self.strategy.circuit_breaker
        attempt = 0
        last_error: Optional[BaseException] = None

        while True:
            if breaker is not None and not breaker.allow_request():
                raise BackendUnavailableError(
                    breaker.name,
                    breaker.get_state().value,
                    last_error=last_error,
                    attempts=attempt,
                    total_cost=self.strategy.get_total_retry_cost()
                ) from last_error

            try:
                result = await func()
            except Exception as error:  # noqa: BLE001
                if breaker is not None and classify_error(error) not in _NOT_BACKEND_FAILURES:
                    breaker.record_failure()

                decision = self.strategy.should_retry(error, attempt, estimated_tokens)
                if not decision.retry:
                    logger.warning(
                        f"Request {request_id} not retried: {decision.reason}",
                        extra={
                            "request_id": request_id,
                            "attempts": attempt + 1,
                            "error_kind": decision.error_kind.value if decision.error_kind else None,
                            "total_cost": self.strategy.get_total_retry_cost()
                        }
                    )
                    raise RetryExhaustedError(
                        error,
                        decision.reason,
                        attempts=attempt + 1,
                        error_kind=decision.error_kind,
                        total_cost=self.strategy.get_total_retry_cost()
                    ) from error

                logger.info(
                    f"Retrying request {request_id} after {type(error).__name__}",
                    extra={
                        "request_id": request_id,
                        "attempt": attempt + 1,
                        "delay_ms": decision.delay,
                        "error_kind": decision.error_kind.value if decision.error_kind else None
                    }
                )
                last_error = error
                await self._sleep(decision.delay / 1000)
                attempt += 1
                continue

            if breaker is not None:
                breaker.record_success()
            if attempt > 0:
                logger.info(
                    f"Request {request_id} succeeded after {attempt} retries",
                    extra={"request_id": request_id, "attempts": attempt + 1}
                )
            return result
