"""
LLM Request Shaper - cost- and reliability-oriented request shaping for LLM APIs.

This package decides, per outgoing request:
- Whether prompt content should be marked for server-side caching
- Whether and how a failed call is retried, with exponential backoff and jitter
- How much money retries of one request may spend
- Whether a failing backend should be shielded by a circuit breaker

Features:
- Error classification into a closed set of kinds
- Cost-aware retry strategy with provider presets
- Thread-safe circuit breaker per backend endpoint
- Prompt caching presets and cache-control marking
- OpenRouter request assembly with cost-optimized fallbacks
"""

__version__ = "0.1.0"

from .caching import (
    CACHING_STRATEGIES,
    CachingConfig,
    apply_prompt_caching,
    estimate_token_count,
    should_cache_content,
)
from .errors import BackendUnavailableError, RetryExhaustedError, ShaperError
from .models import ModelInfo
from .reliability import (
    PROVIDER_RETRY_CONFIGS,
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerManager,
    CircuitState,
    EnhancedRetryStrategy,
    ErrorKind,
    RetryDecision,
    RetryManager,
    RetryPolicy,
    calculate_retry_delay,
    classify_error,
    estimate_retry_cost,
    should_retry_error,
)

__all__ = [
    # Reliability
    "ErrorKind",
    "classify_error",
    "should_retry_error",
    "calculate_retry_delay",
    "estimate_retry_cost",
    "RetryPolicy",
    "RetryDecision",
    "EnhancedRetryStrategy",
    "RetryManager",
    "PROVIDER_RETRY_CONFIGS",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerManager",
    "CircuitState",

    # Caching
    "CachingConfig",
    "CACHING_STRATEGIES",
    "estimate_token_count",
    "should_cache_content",
    "apply_prompt_caching",

    # Models and errors
    "ModelInfo",
    "ShaperError",
    "BackendUnavailableError",
    "RetryExhaustedError",
]
