"""
Cost optimization for OpenRouter requests.

Picks fallback models and auto-routing from fixed capability tiers. The
tiers are an ordered table supplied here; no live price comparison is made.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

# Ordered from most cost-effective to highest capability within each tier
COST_EFFECTIVE_FALLBACKS: Dict[str, List[str]] = {
    "high": [
        "anthropic/claude-3.5-sonnet",
        "openai/gpt-4o",
        "google/gemini-pro-1.5",
        "anthropic/claude-3-opus",
    ],
    "medium": [
        "anthropic/claude-3.5-haiku",
        "openai/gpt-4o-mini",
        "google/gemini-flash-1.5",
        "anthropic/claude-3-haiku",
    ],
    "budget": [
        "meta-llama/llama-3.1-8b-instruct:free",
        "mistralai/mistral-7b-instruct:free",
        "huggingfaceh4/zephyr-7b-beta:free",
    ],
}

TASK_COMPLEXITIES = ("high", "medium", "budget")

SIMPLE_TASK_KEYWORDS = ("summarize", "explain", "translate", "format", "convert")
COMPLEX_KEYWORDS = ("code", "programming", "debug", "analyze", "complex", "detailed")
BUDGET_KEYWORDS = ("summarize", "translate", "format", "simple", "quick")

# Conversations longer than this are treated as complex
LONG_CONVERSATION_MESSAGES = 10
MAX_ESTIMATED_SAVINGS = 70


@dataclass
class CostOptimizationConfig:
    fallback_models: List[str]
    use_auto_router: bool
    provider_sorting: str
    task_complexity: str


def generate_fallback_models(primary_model: str, task_complexity: str = "medium") -> List[str]:
    """
    Generate fallback models for a primary model.

    Args:
        primary_model: The primary model ID, excluded from the result
        task_complexity: 'high', 'medium' or 'budget'

    Returns:
        Fallback model IDs ordered by cost-effectiveness
    """
    if task_complexity not in COST_EFFECTIVE_FALLBACKS:
        raise ValueError(
            f"Unknown task complexity '{task_complexity}', expected one of {', '.join(TASK_COMPLEXITIES)}"
        )

    fallbacks = [model for model in COST_EFFECTIVE_FALLBACKS[task_complexity] if model != primary_model]

    if task_complexity == "high":
        return fallbacks + [model for model in COST_EFFECTIVE_FALLBACKS["medium"] if model != primary_model]

    if task_complexity == "medium":
        return fallbacks + COST_EFFECTIVE_FALLBACKS["budget"][:2]

    return fallbacks


def should_use_auto_router(
    system_prompt: Optional[str],
    message_count: int,
    has_images: bool = False
) -> bool:
    """Use OpenRouter's auto router for short or simple text-only tasks."""
    # Auto routing may pick a model without image support
    if has_images:
        return False

    prompt = system_prompt or ""
    if message_count <= 3 and len(prompt) < 1000:
        return True

    lowered = prompt.lower()
    return any(task in lowered for task in SIMPLE_TASK_KEYWORDS)


def classify_task_complexity(system_prompt: Optional[str], message_count: int) -> str:
    lowered = (system_prompt or "").lower()
    complexity = "medium"
    if any(keyword in lowered for keyword in COMPLEX_KEYWORDS):
        complexity = "high"
    elif any(keyword in lowered for keyword in BUDGET_KEYWORDS):
        complexity = "budget"

    if message_count > LONG_CONVERSATION_MESSAGES:
        complexity = "high"
    return complexity


def get_cost_optimization_config(
    primary_model: str,
    system_prompt: Optional[str],
    message_count: int,
    has_images: bool = False
) -> CostOptimizationConfig:
    """Build the cost optimization settings for a request."""
    task_complexity = classify_task_complexity(system_prompt, message_count)
    return CostOptimizationConfig(
        fallback_models=generate_fallback_models(primary_model, task_complexity),
        use_auto_router=should_use_auto_router(system_prompt, message_count, has_images),
        provider_sorting="price",
        task_complexity=task_complexity,
    )


def estimate_cost_savings(config: CostOptimizationConfig) -> int:
    """Rough savings percentage expected from the optimization settings."""
    # Provider price sorting typically saves 10-20%
    savings = 15

    if config.use_auto_router:
        savings += 30

    if config.fallback_models:
        if config.task_complexity == "budget":
            savings += 25
        elif config.task_complexity == "medium":
            savings += 15
        else:
            savings += 10

    return min(savings, MAX_ESTIMATED_SAVINGS)
