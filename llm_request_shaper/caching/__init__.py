"""Prompt caching eligibility and cache-control marking."""

from .cache_optimizer import (
    CACHING_STRATEGIES,
    DEFAULT_CACHE_CONFIG,
    CacheStats,
    CacheTtl,
    CachingAnalysis,
    CachingConfig,
    CachingResult,
    CachingSavings,
    analyze_caching_opportunities,
    apply_prompt_caching,
    calculate_caching_savings,
    estimate_token_count,
    select_cache_candidates,
    should_cache_content,
    supports_prompt_caching,
)

__all__ = [
    "CACHING_STRATEGIES",
    "DEFAULT_CACHE_CONFIG",
    "CacheStats",
    "CacheTtl",
    "CachingAnalysis",
    "CachingConfig",
    "CachingResult",
    "CachingSavings",
    "analyze_caching_opportunities",
    "apply_prompt_caching",
    "calculate_caching_savings",
    "estimate_token_count",
    "select_cache_candidates",
    "should_cache_content",
    "supports_prompt_caching",
]
