"""Unit tests for the structured provider logger."""

import pytest

from llm_request_shaper.caching import CacheStats
from llm_request_shaper.observability import ProviderLogger

LOGGER_NAME = "llm_request_shaper.providers.openrouter"


class TestProviderLogger:

    def test_prefix_skips_empty_fields(self, caplog):
        logger = ProviderLogger("openrouter")
        with caplog.at_level("INFO", logger=LOGGER_NAME):
            logger.info("hello", model="openai/gpt-4o", request_id=None)
        assert "[provider=openrouter model=openai/gpt-4o] hello" in caplog.text

    def test_track_request_success(self, caplog):
        logger = ProviderLogger("openrouter")
        with caplog.at_level("INFO", logger=LOGGER_NAME):
            with logger.track_request("stream", "openai/gpt-4o", "req-1") as info:
                assert info["request_id"] == "req-1"
        assert "request_id=req-1" in caplog.text
        assert "stream request completed" in caplog.text

    def test_track_request_generates_id(self):
        with ProviderLogger("openrouter").track_request("stream", "m") as info:
            assert len(info["request_id"]) == 8

    def test_track_request_failure_reraises(self, caplog):
        logger = ProviderLogger("openrouter")
        with caplog.at_level("ERROR", logger=LOGGER_NAME):
            with pytest.raises(RuntimeError):
                with logger.track_request("stream", "m", "req-2"):
                    raise RuntimeError("boom")
        assert "error_type=RuntimeError" in caplog.text

    def test_log_caching_only_when_marked(self, caplog):
        logger = ProviderLogger("openrouter")
        with caplog.at_level("INFO", logger=LOGGER_NAME):
            logger.log_caching(CacheStats(), "m")
            assert caplog.text == ""
            logger.log_caching(CacheStats(system_cached=True, estimated_cached_tokens=1500), "m", savings=0.0034)
        assert "cached_tokens=1500" in caplog.text
        assert "potential_savings=$0.0034" in caplog.text
