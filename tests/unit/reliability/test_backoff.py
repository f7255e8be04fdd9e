"""Unit tests for retry delay calculation."""

from unittest.mock import patch

import pytest

from llm_request_shaper.reliability.backoff import (
    calculate_retry_delay,
    parse_retry_after,
)
from llm_request_shaper.reliability.error_classifier import ErrorKind

NOW = 1_700_000_000.0


class TestParseRetryAfter:
    """Retry hint conversion to milliseconds."""

    def test_relative_seconds(self):
        assert parse_retry_after("2", now=NOW) == 2000
        assert parse_retry_after(1.5, now=NOW) == 1500

    def test_absolute_epoch(self):
        assert parse_retry_after(str(NOW + 5), now=NOW) == pytest.approx(5000)

    def test_zero_hint(self):
        assert parse_retry_after("0", now=NOW) == 0

    def test_negative_floors_at_zero(self):
        assert parse_retry_after("-3", now=NOW) == 0

    @pytest.mark.parametrize("hint", [None, "", "soon", "Wed, 21 Oct 2015 07:28:00 GMT", "nan", True])
    def test_non_numeric(self, hint):
        assert parse_retry_after(hint, now=NOW) is None


class TestExponentialBackoff:
    """Backoff without a server hint."""

    def test_rate_limit_growth(self):
        delays = [
            calculate_retry_delay(attempt, 1000, 30000, ErrorKind.RATE_LIMIT, jitter_factor=0)
            for attempt in range(5)
        ]
        assert delays == [2000, 4000, 8000, 16000, 30000]

    def test_server_error_multiplier(self):
        assert calculate_retry_delay(1, 1000, 30000, ErrorKind.SERVER_ERROR, jitter_factor=0) == 3000

    def test_network_error_multiplier(self):
        assert calculate_retry_delay(0, 1000, 30000, ErrorKind.NETWORK_ERROR, jitter_factor=0) == 1200

    def test_other_kinds_use_unit_multiplier(self):
        assert calculate_retry_delay(2, 1000, 30000, ErrorKind.UNKNOWN, jitter_factor=0) == 4000

    @pytest.mark.parametrize("attempt,expected", [(0, 2000), (3, 16000), (10, 30000)])
    def test_rate_limit_schedule(self, attempt, expected):
        assert calculate_retry_delay(attempt, 1000, 30000, ErrorKind.RATE_LIMIT, jitter_factor=0) == expected

    def test_huge_attempt_stays_capped(self):
        assert calculate_retry_delay(10_000, 1000, 30000, ErrorKind.RATE_LIMIT, jitter_factor=0) == 30000


class TestRetryAfterPriority:
    """Server hints take priority over computed backoff."""

    def test_hint_overrides_backoff(self):
        delay = calculate_retry_delay(
            4, 1000, 30000, ErrorKind.RATE_LIMIT, retry_after="3", jitter_factor=0, now=NOW
        )
        assert delay == 3000

    def test_hint_capped_at_max_delay(self):
        delay = calculate_retry_delay(
            0, 1000, 30000, ErrorKind.RATE_LIMIT, retry_after="120", jitter_factor=0, now=NOW
        )
        assert delay == 30000

    def test_unparsable_hint_falls_back(self):
        delay = calculate_retry_delay(
            1, 1000, 30000, ErrorKind.RATE_LIMIT, retry_after="later", jitter_factor=0, now=NOW
        )
        assert delay == 4000


class TestJitter:
    """Symmetric jitter bounds."""

    @pytest.mark.parametrize("attempt", range(0, 12))
    @pytest.mark.parametrize("kind", list(ErrorKind))
    def test_delay_within_bounds(self, attempt, kind):
        max_delay = 30000
        for _ in range(20):
            delay = calculate_retry_delay(attempt, 1000, max_delay, kind, jitter_factor=0.1)
            assert 0 <= delay <= max_delay * 1.1

    def test_jitter_extremes(self):
        with patch("llm_request_shaper.reliability.backoff.random.uniform", return_value=1.0):
            assert calculate_retry_delay(0, 1000, 30000, ErrorKind.RATE_LIMIT) == pytest.approx(2200)
        with patch("llm_request_shaper.reliability.backoff.random.uniform", return_value=-1.0):
            assert calculate_retry_delay(0, 1000, 30000, ErrorKind.RATE_LIMIT) == pytest.approx(1800)

    def test_full_jitter_never_negative(self):
        with patch("llm_request_shaper.reliability.backoff.random.uniform", return_value=-1.0):
            assert calculate_retry_delay(0, 1000, 30000, ErrorKind.UNKNOWN, jitter_factor=1.0) == 0
