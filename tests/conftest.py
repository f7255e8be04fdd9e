"""Shared pytest fixtures for LLM Request Shaper tests."""

import pytest
from unittest.mock import AsyncMock, Mock

from llm_request_shaper.models import ModelInfo
from llm_request_shaper.reliability import (
    CircuitBreaker,
    CircuitBreakerConfig,
    RetryPolicy,
)


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def clear_shaper_env(monkeypatch):
    """Keep developer env overrides out of the tests."""
    for name in (
        "LLM_SHAPER_RETRY_PROFILE",
        "LLM_SHAPER_MAX_RETRIES",
        "LLM_SHAPER_MAX_COST_THRESHOLD",
        "LLM_SHAPER_RETRY_ALL_ERRORS",
        "LLM_SHAPER_JITTER_FACTOR",
        "LLM_SHAPER_CACHING_STRATEGY",
        "LLM_SHAPER_CB_FAILURE_THRESHOLD",
        "LLM_SHAPER_CB_RECOVERY_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def circuit_breaker(fake_clock):
    """Breaker opening after 3 failures, recovering after 30 seconds."""
    return CircuitBreaker(
        "openrouter",
        CircuitBreakerConfig(failure_threshold=3, recovery_timeout=30.0),
        clock=fake_clock,
    )


@pytest.fixture
def deterministic_policy():
    """Retry policy without jitter so delays are exact."""
    return RetryPolicy(
        max_retries=5,
        base_delay=1000,
        max_delay=30000,
        jitter_factor=0,
    )


@pytest.fixture
def sonnet_info():
    """Claude 3.5 Sonnet pricing ($3 in / $15 out per million)."""
    return ModelInfo(
        id="anthropic/claude-3.5-sonnet",
        name="Claude 3.5 Sonnet",
        provider="anthropic",
        input_price=3.0,
        output_price=15.0,
        cache_reads_price=0.3,
        supports_prompt_cache=True,
    )


@pytest.fixture
def gpt4o_info():
    return ModelInfo(
        id="openai/gpt-4o",
        name="GPT-4o",
        provider="openai",
        input_price=2.5,
        output_price=10.0,
        supports_prompt_cache=False,
    )


@pytest.fixture
def no_sleep():
    """Async sleep replacement recording requested delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def mock_openrouter_client():
    """Mock AsyncOpenAI client returning a sentinel stream."""
    client = Mock()
    client.chat.completions.create = AsyncMock(return_value="stream")
    return client
