"""Unit tests for cost-optimized routing."""

import pytest

from llm_request_shaper.routing import (
    COST_EFFECTIVE_FALLBACKS,
    CostOptimizationConfig,
    classify_task_complexity,
    estimate_cost_savings,
    generate_fallback_models,
    get_cost_optimization_config,
    should_use_auto_router,
)


class TestGenerateFallbackModels:

    def test_high_tier_excludes_primary_and_adds_medium(self):
        fallbacks = generate_fallback_models("anthropic/claude-3.5-sonnet", "high")

        assert "anthropic/claude-3.5-sonnet" not in fallbacks
        assert fallbacks[:3] == ["openai/gpt-4o", "google/gemini-pro-1.5", "anthropic/claude-3-opus"]
        assert fallbacks[3:] == COST_EFFECTIVE_FALLBACKS["medium"]

    def test_medium_tier_adds_two_budget_models(self):
        fallbacks = generate_fallback_models("openai/gpt-4o-mini")

        assert "openai/gpt-4o-mini" not in fallbacks
        assert fallbacks[-2:] == COST_EFFECTIVE_FALLBACKS["budget"][:2]
        assert len(fallbacks) == 5

    def test_budget_tier(self):
        assert generate_fallback_models("x/y", "budget") == COST_EFFECTIVE_FALLBACKS["budget"]

    def test_unknown_complexity(self):
        with pytest.raises(ValueError, match="Unknown task complexity"):
            generate_fallback_models("x/y", "extreme")


class TestAutoRouterAndComplexity:

    def test_short_conversation_uses_auto_router(self):
        assert should_use_auto_router("Be helpful", 2) is True

    def test_images_disable_auto_router(self):
        assert should_use_auto_router("Be helpful", 1, has_images=True) is False

    def test_simple_task_keyword(self):
        assert should_use_auto_router("Please summarize the thread", 8) is True
        assert should_use_auto_router("You write production code", 8) is False

    def test_long_prompt_without_keywords(self):
        assert should_use_auto_router("a" * 1500, 2) is False

    @pytest.mark.parametrize("prompt,count,expected", [
        ("Debug this code", 2, "high"),
        ("Translate to French", 2, "budget"),
        ("You are a friendly assistant", 2, "medium"),
        (None, 2, "medium"),
        ("Translate to French", 11, "high"),
    ])
    def test_classify_task_complexity(self, prompt, count, expected):
        assert classify_task_complexity(prompt, count) == expected


class TestCostOptimizationConfig:

    def test_full_config(self):
        config = get_cost_optimization_config("anthropic/claude-3.5-sonnet", "Analyze this", 2)

        assert config.task_complexity == "high"
        assert config.use_auto_router is True
        assert config.provider_sorting == "price"
        assert "anthropic/claude-3.5-sonnet" not in config.fallback_models

    def test_savings_are_capped(self):
        config = CostOptimizationConfig(["a"], True, "price", "budget")
        assert estimate_cost_savings(config) == 70

    def test_savings_without_auto_router(self):
        assert estimate_cost_savings(CostOptimizationConfig(["a"], False, "price", "high")) == 25
        assert estimate_cost_savings(CostOptimizationConfig(["a"], False, "price", "medium")) == 30
        assert estimate_cost_savings(CostOptimizationConfig([], False, "price", "medium")) == 15
