"""Unit tests for the retry loop."""

import pytest
from unittest.mock import AsyncMock, call

from llm_request_shaper.errors import BackendUnavailableError, RetryExhaustedError
from llm_request_shaper.reliability import (
    EnhancedRetryStrategy,
    ErrorKind,
    RetryManager,
    RetryPolicy,
)
from tests.helpers.mock_exceptions import (
    MockAuthenticationError,
    MockInternalServerError,
    MockRateLimitError,
)


class TestRetryManager:
    """Test retry loop behavior."""

    @pytest.mark.asyncio
    async def test_success_on_first_attempt(self, deterministic_policy, no_sleep):
        manager = RetryManager(EnhancedRetryStrategy(deterministic_policy), sleep=no_sleep)
        func = AsyncMock(return_value="ok")

        assert await manager.execute_with_retry(func) == "ok"
        assert func.call_count == 1
        no_sleep.assert_not_called()

    @pytest.mark.asyncio
    async def test_retries_until_success(self, deterministic_policy, no_sleep):
        manager = RetryManager(EnhancedRetryStrategy(deterministic_policy), sleep=no_sleep)
        error = MockRateLimitError(retry_after=None)
        func = AsyncMock(side_effect=[error, error, "ok"])

        assert await manager.execute_with_retry(func, request_id="req-1") == "ok"
        assert func.call_count == 3
        # Sleeps are in seconds
        assert no_sleep.await_args_list == [call(2.0), call(4.0)]

    @pytest.mark.asyncio
    async def test_exhausted_wraps_original(self, no_sleep):
        policy = RetryPolicy(max_retries=2, jitter_factor=0)
        manager = RetryManager(EnhancedRetryStrategy(policy), sleep=no_sleep)
        error = MockInternalServerError()
        func = AsyncMock(side_effect=error)

        with pytest.raises(RetryExhaustedError) as exc_info:
            await manager.execute_with_retry(func)

        assert func.call_count == 3
        assert exc_info.value.original_error is error
        assert exc_info.value.__cause__ is error
        assert exc_info.value.attempts == 3
        assert exc_info.value.error_kind == ErrorKind.SERVER_ERROR
        assert "Max attempts reached for server_error error (2/2)" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_non_retryable_raises_immediately(self, deterministic_policy, no_sleep):
        manager = RetryManager(EnhancedRetryStrategy(deterministic_policy), sleep=no_sleep)
        func = AsyncMock(side_effect=MockAuthenticationError())

        with pytest.raises(RetryExhaustedError) as exc_info:
            await manager.execute_with_retry(func)

        assert func.call_count == 1
        assert exc_info.value.reason == "Error type auth_error is not retryable"
        no_sleep.assert_not_called()


class TestRetryManagerCircuitBreaker:
    """Breaker gating and outcome reporting."""

    @pytest.mark.asyncio
    async def test_open_breaker_short_circuits(self, deterministic_policy, circuit_breaker, no_sleep):
        for _ in range(3):
            circuit_breaker.record_failure()
        strategy = EnhancedRetryStrategy(deterministic_policy, circuit_breaker=circuit_breaker)
        manager = RetryManager(strategy, sleep=no_sleep)
        func = AsyncMock(return_value="ok")

        with pytest.raises(BackendUnavailableError) as exc_info:
            await manager.execute_with_retry(func)

        func.assert_not_called()
        assert exc_info.value.backend == "openrouter"
        assert exc_info.value.state == "open"

    @pytest.mark.asyncio
    async def test_failures_open_breaker_mid_operation(self, deterministic_policy, circuit_breaker, no_sleep):
        strategy = EnhancedRetryStrategy(deterministic_policy, circuit_breaker=circuit_breaker)
        manager = RetryManager(strategy, sleep=no_sleep)
        func = AsyncMock(side_effect=MockInternalServerError())

        with pytest.raises(RetryExhaustedError) as exc_info:
            await manager.execute_with_retry(func)

        # Third failure opens the breaker, so no further retry is granted
        assert func.call_count == 3
        assert exc_info.value.reason == "Circuit breaker openrouter is open"
        assert circuit_breaker.is_open()

    @pytest.mark.asyncio
    async def test_success_closes_half_open_breaker(
        self, deterministic_policy, circuit_breaker, fake_clock, no_sleep
    ):
        for _ in range(3):
            circuit_breaker.record_failure()
        fake_clock.advance(30)
        manager = RetryManager(
            EnhancedRetryStrategy(deterministic_policy, circuit_breaker=circuit_breaker),
            sleep=no_sleep,
        )

        assert await manager.execute_with_retry(AsyncMock(return_value="ok")) == "ok"
        assert circuit_breaker.is_closed()

    @pytest.mark.asyncio
    async def test_caller_faults_not_recorded(self, deterministic_policy, circuit_breaker, no_sleep):
        manager = RetryManager(
            EnhancedRetryStrategy(deterministic_policy, circuit_breaker=circuit_breaker),
            sleep=no_sleep,
        )
        func = AsyncMock(side_effect=MockAuthenticationError())

        with pytest.raises(RetryExhaustedError):
            await manager.execute_with_retry(func)

        assert circuit_breaker.get_stats().total_failures == 0


class TestRetryManagerCost:

    @pytest.mark.asyncio
    async def test_cost_threshold_stops_retries(self, sonnet_info, no_sleep):
        policy = RetryPolicy(max_cost_threshold=0.10, jitter_factor=0)
        manager = RetryManager(
            EnhancedRetryStrategy(policy, model_info=sonnet_info), sleep=no_sleep
        )
        func = AsyncMock(side_effect=MockRateLimitError(retry_after=None))

        with pytest.raises(RetryExhaustedError) as exc_info:
            await manager.execute_with_retry(func, estimated_tokens=1_000_000)

        assert func.call_count == 1
        assert exc_info.value.reason == "Retry cost threshold exceeded ($0.10)"


class TestRetryManagerBackendUnavailable:
    """Refusals that arrive between retries of one request."""

    @pytest.mark.asyncio
    async def test_breaker_reopened_during_backoff_keeps_last_error(
        self, deterministic_policy, circuit_breaker
    ):
        error = MockInternalServerError()

        async def other_callers_fail(seconds):
            for _ in range(3):
                circuit_breaker.record_failure()

        manager = RetryManager(
            EnhancedRetryStrategy(deterministic_policy, circuit_breaker=circuit_breaker),
            sleep=other_callers_fail,
        )
        func = AsyncMock(side_effect=[error, "ok"])

        with pytest.raises(BackendUnavailableError) as exc_info:
            await manager.execute_with_retry(func)

        assert func.call_count == 1
        assert exc_info.value.last_error is error
        assert exc_info.value.__cause__ is error
        assert exc_info.value.attempts == 1
        assert "last error: MockInternalServerError" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_refused_first_attempt_has_no_last_error(self, deterministic_policy, circuit_breaker):
        for _ in range(3):
            circuit_breaker.record_failure()
        manager = RetryManager(EnhancedRetryStrategy(deterministic_policy, circuit_breaker=circuit_breaker))

        with pytest.raises(BackendUnavailableError) as exc_info:
            await manager.execute_with_retry(AsyncMock(return_value="ok"))

        assert exc_info.value.last_error is None
        assert exc_info.value.attempts == 0
