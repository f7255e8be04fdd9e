"""
Cost-aware retry strategy.

This module composes error classification, retry eligibility, cost
accounting and backoff into a single decision per failed attempt:
- Per-error-kind retry eligibility with a tighter budget for network faults
- A retry ledger bounding the money spent on retries of one operation
- Optional circuit breaker gate shared across concurrent operations
- Provider retry presets
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .backoff import calculate_retry_delay
from .circuit_breaker import CircuitBreaker
from .cost import estimate_retry_cost
from .error_classifier import ErrorKind, classify_error, get_retry_after_hint

logger = logging.getLogger(__name__)

# Connectivity failures rarely self-resolve; cap their retries lower
NETWORK_RETRY_CAP = 3


class RetryPolicy(BaseModel):
    """Retry configuration for one backend profile. Delays are in milliseconds."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    max_retries: int = Field(5, ge=0)
    base_delay: float = Field(1000.0, ge=0)
    max_delay: float = Field(30000.0, ge=0)
    retry_all_errors: bool = False
    cost_aware_retry: bool = True
    max_cost_threshold: float = Field(1.0, ge=0)
    jitter_factor: float = Field(0.1, ge=0, le=1)

    @model_validator(mode="after")
    def _check_delays(self) -> "RetryPolicy":
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be greater than or equal to base_delay")
        return self


PROVIDER_RETRY_CONFIGS: Dict[str, RetryPolicy] = {
    "anthropic": RetryPolicy(
        max_retries=4,
        base_delay=1000,
        max_delay=16000,
        retry_all_errors=False,
        jitter_factor=0.1,
    ),
    "openrouter": RetryPolicy(
        max_retries=5,
        base_delay=500,
        max_delay=10000,
        retry_all_errors=True,  # OpenRouter has fallback providers
        jitter_factor=0.15,
    ),
    "gemini": RetryPolicy(
        max_retries=4,
        base_delay=2000,
        max_delay=15000,
        retry_all_errors=False,
        jitter_factor=0.1,
    ),
    "vertex": RetryPolicy(
        max_retries=3,
        base_delay=1500,
        max_delay=12000,
        retry_all_errors=False,
        jitter_factor=0.1,
    ),
    "openai": RetryPolicy(
        max_retries=4,
        base_delay=1000,
        max_delay=20000,
        retry_all_errors=False,
        jitter_factor=0.1,
    ),
}


def should_retry_error(
    error_kind: ErrorKind,
    attempt: int,
    max_retries: int,
    policy: Optional[RetryPolicy] = None
) -> bool:
    """
    Decide whether a failure of the given kind is eligible for retry.

    Args:
        error_kind: Classified failure kind
        attempt: Zero-based count of retries already made
        max_retries: Retry cap
        policy: Policy consulted for ``retry_all_errors``

    Returns:
        True if another attempt may be made
    """
    if attempt >= max_retries:
        return False

    # These need a caller-side fix, not another attempt
    if error_kind in (ErrorKind.AUTH_ERROR, ErrorKind.CONTEXT_LENGTH_ERROR):
        return False

    if error_kind in (ErrorKind.RATE_LIMIT, ErrorKind.SERVER_ERROR):
        return True

    if error_kind == ErrorKind.NETWORK_ERROR:
        return attempt < min(max_retries, NETWORK_RETRY_CAP)

    return bool(policy and policy.retry_all_errors)


@dataclass
class RetryLedger:
    """Money spent on retries of one logical operation."""
    accumulated_cost: float = 0.0

    def add(self, cost: float) -> None:
        if cost > 0:
            self.accumulated_cost += cost

    def reset(self) -> None:
        self.accumulated_cost = 0.0


@dataclass(frozen=True)
class RetryDecision:
    """Outcome of a retry evaluation. ``delay`` is in milliseconds."""
    retry: bool
    delay: float = 0.0
    reason: str = ""
    error_kind: Optional[ErrorKind] = None


RetryCondition = Callable[[Any, int], bool]


class EnhancedRetryStrategy:
    """
    Retry decisions for one outer operation.

    An instance owns the retry ledger of a single user-visible request and
    must be consulted sequentially, one failed attempt at a time. Create a
    new instance, or call ``reset_cost()``, between independent operations.
    The circuit breaker, when given, is shared and may be used by many
    strategies at once.
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        *,
        model_info: Any = None,
        custom_retry_condition: Optional[RetryCondition] = None,
        circuit_breaker: Optional[CircuitBreaker] = None
    ):
        self.policy = policy or RetryPolicy()
        self.model_info = model_info
        self.custom_retry_condition = custom_retry_condition
        self.circuit_breaker = circuit_breaker
        self.ledger = RetryLedger()

    def should_retry(
        self,
        error: Any,
        attempt: int,
        estimated_tokens: Optional[int] = None
    ) -> RetryDecision:
        """
        Determine if a failed attempt should be retried.

        Args:
            error: The failure returned by the attempt
            attempt: Zero-based count of retries already made
            estimated_tokens: Projected prompt tokens of the next attempt

        Returns:
            RetryDecision with the verdict, delay in ms and a reason
        """
        policy = self.policy

        if self.custom_retry_condition and not self.custom_retry_condition(error, attempt):
            return RetryDecision(retry=False, reason="Custom condition failed")

        error_kind = classify_error(error)

        if not should_retry_error(error_kind, attempt, policy.max_retries, policy):
            if attempt >= policy.max_retries:
                reason = f"Max attempts reached for {error_kind.value} error ({attempt}/{policy.max_retries})"
            else:
                reason = f"Error type {error_kind.value} is not retryable"
            return RetryDecision(retry=False, reason=reason, error_kind=error_kind)

        if self.circuit_breaker is not None and not self.circuit_breaker.allow_request():
            return RetryDecision(
                retry=False,
                reason=f"Circuit breaker {self.circuit_breaker.name} is open",
                error_kind=error_kind
            )

        if policy.cost_aware_retry and self.model_info is not None and estimated_tokens:
            retry_cost = estimate_retry_cost(self.model_info, estimated_tokens)
            projected = self.ledger.accumulated_cost + retry_cost
            if projected > policy.max_cost_threshold:
                logger.warning(
                    "Retry denied: cost threshold exceeded",
                    extra={
                        "error_kind": error_kind.value,
                        "attempt": attempt,
                        "retry_cost": retry_cost,
                        "accumulated_cost": self.ledger.accumulated_cost,
                        "max_cost_threshold": policy.max_cost_threshold
                    }
                )
                return RetryDecision(
                    retry=False,
                    reason=f"Retry cost threshold exceeded (${policy.max_cost_threshold:.2f})",
                    error_kind=error_kind
                )
            self.ledger.add(retry_cost)

        delay = calculate_retry_delay(
            attempt,
            policy.base_delay,
            policy.max_delay,
            error_kind,
            get_retry_after_hint(error),
            policy.jitter_factor,
        )

        logger.debug(
            f"Retrying {error_kind.value} error",
            extra={
                "error_kind": error_kind.value,
                "attempt": attempt,
                "delay_ms": delay,
                "accumulated_cost": self.ledger.accumulated_cost
            }
        )
        return RetryDecision(
            retry=True,
            delay=delay,
            reason=f"Retrying {error_kind.value} error with {delay:.0f}ms delay",
            error_kind=error_kind
        )

    def reset_cost(self) -> None:
        """Reset the retry cost ledger between independent operations."""
        self.ledger.reset()

    def get_total_retry_cost(self) -> float:
        """Get the cost charged to the ledger so far."""
        return self.ledger.accumulated_cost
