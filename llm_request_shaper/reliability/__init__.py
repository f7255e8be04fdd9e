"""Reliability layer for failure classification, retries and circuit breaking.

This layer handles:
- Error classification into a closed set of kinds
- Exponential backoff with jitter and server retry hints
- Cost-aware retry decisions bounded by a per-operation ledger
- Circuit breaker pattern
- The async retry loop tying them together
"""

from .backoff import BACKOFF_MULTIPLIERS, calculate_retry_delay, parse_retry_after
from .circuit_breaker import (
    CircuitBreaker, CircuitBreakerConfig, CircuitBreakerManager,
    CircuitState, CircuitStats
)
from .cost import calculate_cost, estimate_retry_cost
from .enhanced_retry import (
    PROVIDER_RETRY_CONFIGS, EnhancedRetryStrategy, RetryDecision,
    RetryLedger, RetryPolicy, should_retry_error
)
from .error_classifier import (
    ErrorClassifier, ErrorKind, classify_error, get_retry_after_hint
)
from .retry import RetryManager

__all__ = [
    "BACKOFF_MULTIPLIERS",
    "calculate_retry_delay",
    "parse_retry_after",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerManager",
    "CircuitState",
    "CircuitStats",
    "calculate_cost",
    "estimate_retry_cost",
    "PROVIDER_RETRY_CONFIGS",
    "EnhancedRetryStrategy",
    "RetryDecision",
    "RetryLedger",
    "RetryPolicy",
    "should_retry_error",
    "ErrorClassifier",
    "ErrorKind",
    "classify_error",
    "get_retry_after_hint",
    "RetryManager",
]
