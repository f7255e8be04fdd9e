# Reference price table (USD per million tokens) for OpenRouter model ids
from typing import Dict, Optional

from ..models.model_info import ModelInfo

MODEL_PRICING: Dict[str, ModelInfo] = {
    "anthropic/claude-3.5-sonnet": ModelInfo(
        id="anthropic/claude-3.5-sonnet",
        name="Claude 3.5 Sonnet",
        provider="anthropic",
        input_price=3.0,
        output_price=15.0,
        cache_writes_price=3.75,
        cache_reads_price=0.3,
        max_tokens=8192,
        context_window=200000,
        supports_prompt_cache=True,
        supports_images=True,
    ),
    "anthropic/claude-3.5-haiku": ModelInfo(
        id="anthropic/claude-3.5-haiku",
        name="Claude 3.5 Haiku",
        provider="anthropic",
        input_price=0.8,
        output_price=4.0,
        cache_writes_price=1.0,
        cache_reads_price=0.08,
        max_tokens=8192,
        context_window=200000,
        supports_prompt_cache=True,
    ),
    "anthropic/claude-3-haiku": ModelInfo(
        id="anthropic/claude-3-haiku",
        name="Claude 3 Haiku",
        provider="anthropic",
        input_price=0.25,
        output_price=1.25,
        cache_writes_price=0.3,
        cache_reads_price=0.03,
        max_tokens=4096,
        context_window=200000,
        supports_prompt_cache=True,
        supports_images=True,
    ),
    "anthropic/claude-3-opus": ModelInfo(
        id="anthropic/claude-3-opus",
        name="Claude 3 Opus",
        provider="anthropic",
        input_price=15.0,
        output_price=75.0,
        cache_writes_price=18.75,
        cache_reads_price=1.5,
        max_tokens=4096,
        context_window=200000,
        supports_prompt_cache=True,
        supports_images=True,
    ),
    "google/gemini-2.5-pro": ModelInfo(
        id="google/gemini-2.5-pro",
        name="Gemini 2.5 Pro",
        provider="google",
        input_price=1.25,
        output_price=5.0,
        max_tokens=8192,
        context_window=2000000,
        supports_prompt_cache=True,
        supports_images=True,
    ),
    "openai/gpt-4o": ModelInfo(
        id="openai/gpt-4o",
        name="GPT-4o",
        provider="openai",
        input_price=2.5,
        output_price=10.0,
        max_tokens=16384,
        context_window=128000,
        supports_prompt_cache=False,  # OpenAI caches automatically
        supports_images=True,
    ),
    "openai/gpt-4o-mini": ModelInfo(
        id="openai/gpt-4o-mini",
        name="GPT-4o Mini",
        provider="openai",
        input_price=0.15,
        output_price=0.6,
        max_tokens=16384,
        context_window=128000,
        supports_prompt_cache=False,
        supports_images=True,
    ),
}


def get_model_info(model_id: str) -> Optional[ModelInfo]:
    """Look up the price record for a model id."""
    return MODEL_PRICING.get(model_id)
