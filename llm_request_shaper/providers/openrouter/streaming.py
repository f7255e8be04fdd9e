"""
OpenRouter streaming request orchestration.

Builds the request body, then issues it through the retry loop with an
injected ``openai.AsyncOpenAI`` client pointed at OpenRouter. Parsing the
returned stream is left to the caller.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence

from openai import AsyncOpenAI

from ...caching.cache_optimizer import (
    CachingConfig,
    TokenEstimator,
    calculate_caching_savings,
    estimate_token_count,
)
from ...config.settings import get_retry_policy
from ...observability.logging import ProviderLogger
from ...reliability.circuit_breaker import CircuitBreaker
from ...reliability.cost import TOKENS_PER_MILLION
from ...reliability.enhanced_retry import EnhancedRetryStrategy, RetryPolicy
from ...reliability.error_classifier import get_header
from ...reliability.retry import RetryManager
from .payloads import build_request_body

logger = ProviderLogger("openrouter")

ZERO_COMPLETION_HEADER = "x-openrouter-zero-completion"


def zero_completion_retry_condition(error: Any, attempt: int) -> bool:
    """Refuse retries for requests covered by zero-completion insurance."""
    return get_header(error, ZERO_COMPLETION_HEADER) is None


def estimate_request_tokens(
    system_prompt: str,
    messages: Sequence[Dict[str, Any]],
    estimator: TokenEstimator = estimate_token_count
) -> int:
    total = estimator(system_prompt) if system_prompt else 0
    for message in messages:
        if not isinstance(message, dict):
            continue
        content = message.get("content")
        if isinstance(content, str):
            total += estimator(content)
        elif isinstance(content, list):
            for part in content:
                if isinstance(part, dict) and isinstance(part.get("text"), str):
                    total += estimator(part["text"])
    return total


def _price_per_token(model_info: Any, name: str) -> Optional[float]:
    price = getattr(model_info, name, None)
    if price is None:
        return None
    return price / TOKENS_PER_MILLION


async def create_openrouter_stream(
    client: AsyncOpenAI,
    system_prompt: str,
    messages: Sequence[Dict[str, Any]],
    model_id: str,
    model_info: Any,
    *,
    circuit_breaker: Optional[CircuitBreaker] = None,
    retry_policy: Optional[RetryPolicy] = None,
    caching_config: Optional[CachingConfig] = None,
    estimator: TokenEstimator = estimate_token_count,
    reasoning_effort: Optional[str] = None,
    thinking_budget_tokens: Optional[int] = None,
    provider_sorting: Optional[str] = None,
    fallback_models: Optional[Sequence[str]] = None,
    use_auto_router: bool = False,
    request_id: Optional[str] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
) -> Any:
    """
    Open a streaming chat completion on OpenRouter.

    Returns:
        Whatever ``client.chat.completions.create`` returns for a streaming call

    Raises:
        BackendUnavailableError: If the circuit breaker refuses the request
        RetryExhaustedError: If the call fails and is not retried
    """
    with logger.track_request("stream", model_id, request_id) as request_info:
        prepared = build_request_body(
            system_prompt,
            messages,
            model_id,
            model_info,
            caching_config=caching_config,
            estimator=estimator,
            reasoning_effort=reasoning_effort,
            thinking_budget_tokens=thinking_budget_tokens,
            provider_sorting=provider_sorting,
            fallback_models=fallback_models,
            use_auto_router=use_auto_router,
        )

        stats = prepared.cache_stats
        input_price = _price_per_token(model_info, "input_price")
        if stats.estimated_cached_tokens and input_price:
            savings = calculate_caching_savings(
                stats.estimated_cached_tokens,
                input_price,
                _price_per_token(model_info, "cache_reads_price"),
            )
            logger.log_caching(stats, model_id, request_info["request_id"], savings.savings_per_request)

        strategy = EnhancedRetryStrategy(
            retry_policy or get_retry_policy("openrouter"),
            model_info=model_info,
            custom_retry_condition=zero_completion_retry_condition,
            circuit_breaker=circuit_breaker,
        )
        manager = RetryManager(strategy, sleep=sleep)

        return await manager.execute_with_retry(
            lambda: client.chat.completions.create(**prepared.create_kwargs()),
            estimated_tokens=estimate_request_tokens(system_prompt, messages, estimator),
            request_id=request_info["request_id"],
        )
