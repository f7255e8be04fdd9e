"""
Prompt caching decisions.

Decides which parts of a request are large and stable enough to be marked
for server-side caching. Token counts come from a pluggable estimator; the
default is a rough four-characters-per-token approximation.
"""

import copy
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

TokenEstimator = Callable[[str], int]

EPHEMERAL_CACHE_CONTROL = {"type": "ephemeral"}

# Anthropic accepts at most four cache breakpoints per request
MAX_CACHE_BREAKPOINTS = 4

ANTHROPIC_CACHING_MODELS = (
    "claude-sonnet-4",
    "claude-opus-4",
    "claude-3.7-sonnet",
    "claude-3-7-sonnet",
    "claude-3.5-sonnet",
    "claude-3-5-sonnet",
    "claude-3-5-haiku",
    "claude-3-haiku",
    "claude-3-opus",
)

# Gemini models with implicit caching
GEMINI_CACHING_MODELS = (
    "gemini-2.5-pro",
    "gemini-2.5-flash",
    "gemini-1.5-pro",
    "gemini-1.5-flash",
)


class CacheTtl(BaseModel):
    """Cache TTL in seconds per content category."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    system_prompt: int = Field(3600, ge=0)
    user_messages: int = Field(1800, ge=0)
    long_content: int = Field(900, ge=0)


class CachingConfig(BaseModel):
    """Caching strategy applied at a call site."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    min_tokens_for_caching: int = Field(1024, ge=0, description="Minimum estimated tokens to mark content")
    aggressive_caching: bool = Field(False, description="Mark one more recent user turn")
    cache_ttl: CacheTtl = Field(default_factory=CacheTtl)

    def ttl_for(self, category: str) -> int:
        """TTL for ``system_prompt``, ``user_messages`` or ``long_content``."""
        return getattr(self.cache_ttl, category)


DEFAULT_CACHE_CONFIG = CachingConfig()

CACHING_STRATEGIES: Dict[str, CachingConfig] = {
    "conservative": CachingConfig(
        min_tokens_for_caching=2048,
        aggressive_caching=False,
        cache_ttl=CacheTtl(system_prompt=1800, user_messages=900, long_content=600),
    ),
    "balanced": DEFAULT_CACHE_CONFIG,
    "aggressive": CachingConfig(
        min_tokens_for_caching=1024,
        aggressive_caching=True,
        cache_ttl=CacheTtl(system_prompt=3600, user_messages=1800, long_content=900),
    ),
    "maximum": CachingConfig(
        min_tokens_for_caching=512,
        aggressive_caching=True,
        cache_ttl=CacheTtl(system_prompt=7200, user_messages=3600, long_content=1800),
    ),
}


@dataclass
class CacheStats:
    system_cached: bool = False
    messages_cached: int = 0
    estimated_cached_tokens: int = 0


@dataclass
class CachingResult:
    messages: List[Dict[str, Any]]
    stats: CacheStats = field(default_factory=CacheStats)


@dataclass
class CachingSavings:
    savings_per_request: float
    savings_percentage: float
    break_even_requests: Optional[int]


@dataclass
class CachingAnalysis:
    recommendations: List[str]
    potential_savings: float
    optimal_strategy: str  # "aggressive" | "conservative" | "none"


def supports_prompt_caching(model_id: Optional[str]) -> bool:
    """Check whether a model id belongs to a family with prompt caching."""
    if not model_id:
        return False
    return any(model in model_id for model in ANTHROPIC_CACHING_MODELS + GEMINI_CACHING_MODELS)


def estimate_token_count(text: Optional[str]) -> int:
    """Rough estimate: about four characters per token for English text."""
    if not text:
        return 0
    return math.ceil(len(text) / 4)


def _text_of(content: Any) -> Optional[str]:
    """Plain text of a message content (string or list of content parts)."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = [
            part.get("text", "") for part in content
            if isinstance(part, dict) and part.get("type") == "text"
            and isinstance(part.get("text"), str)
        ]
        return "".join(parts)
    return None


def should_cache_content(
    content: Union[str, List[Dict[str, Any]], None],
    config: Optional[CachingConfig] = None,
    estimator: TokenEstimator = estimate_token_count
) -> bool:
    """
    Decide whether content crosses the caching size threshold.

    Args:
        content: Text or a list of content parts; None or empty never caches
        config: Caching strategy, ``DEFAULT_CACHE_CONFIG`` if omitted
        estimator: Token counting function

    Returns:
        True iff the estimated token count is at least the configured minimum
    """
    text = _text_of(content)
    if not text:
        return False
    config = config or DEFAULT_CACHE_CONFIG
    return estimator(text) >= config.min_tokens_for_caching


def select_cache_candidates(
    messages: Sequence[Dict[str, Any]],
    config: Optional[CachingConfig] = None
) -> List[int]:
    """
    Pick the message indices worth marking for caching.

    The system message is always a candidate, along with the most recent
    user turns: they are the part most likely to recur verbatim on the next
    turn of a multi-turn exchange. Two user turns are picked, three with
    ``aggressive_caching``. Size thresholds are applied separately.
    """
    config = config or DEFAULT_CACHE_CONFIG
    candidates: List[int] = []

    for index, message in enumerate(messages):
        if isinstance(message, dict) and message.get("role") == "system":
            candidates.append(index)
            break

    user_turns = 3 if config.aggressive_caching else 2
    user_turns = min(user_turns, MAX_CACHE_BREAKPOINTS - len(candidates))
    user_indices = [
        index for index, message in enumerate(messages)
        if isinstance(message, dict) and message.get("role") == "user"
    ]
    candidates.extend(user_indices[-user_turns:] if user_turns > 0 else [])
    return sorted(candidates)


def _mark_message(
    message: Dict[str, Any],
    config: CachingConfig,
    estimator: TokenEstimator
) -> Optional[int]:
    """Attach cache_control in place; returns the cached token estimate or None."""
    content = message.get("content")

    if isinstance(content, str):
        if not should_cache_content(content, config, estimator):
            return None
        message["content"] = [{
            "type": "text",
            "text": content,
            "cache_control": dict(EPHEMERAL_CACHE_CONTROL),
        }]
        return estimator(content)

    if isinstance(content, list):
        text_parts = [
            part for part in content
            if isinstance(part, dict) and part.get("type") == "text"
        ]
        if not text_parts:
            return None
        last_text = text_parts[-1]
        if not should_cache_content(last_text.get("text"), config, estimator):
            return None
        last_text["cache_control"] = dict(EPHEMERAL_CACHE_CONTROL)
        return estimator(last_text["text"])

    return None


def apply_prompt_caching(
    messages: Sequence[Dict[str, Any]],
    config: Optional[CachingConfig] = None,
    estimator: TokenEstimator = estimate_token_count
) -> CachingResult:
    """
    Mark eligible messages with an ephemeral ``cache_control`` block.

    Args:
        messages: OpenAI-format chat messages; left unmodified
        config: Caching strategy
        estimator: Token counting function

    Returns:
        CachingResult with a new message list and cache statistics
    """
    config = config or DEFAULT_CACHE_CONFIG
    enhanced = copy.deepcopy(list(messages))
    stats = CacheStats()

    for index in select_cache_candidates(enhanced, config):
        message = enhanced[index]
        cached_tokens = _mark_message(message, config, estimator)
        if cached_tokens is None:
            continue
        if message.get("role") == "system":
            stats.system_cached = True
        else:
            stats.messages_cached += 1
        stats.estimated_cached_tokens += cached_tokens

    return CachingResult(messages=enhanced, stats=stats)


def calculate_caching_savings(
    cached_tokens: int,
    input_price_per_token: float,
    cache_read_price_per_token: Optional[float] = None
) -> CachingSavings:
    """
    Calculate potential savings from prompt caching.

    Cache reads default to 25% of the input price; cache creation is assumed
    to cost the same as regular input tokens.
    """
    if not input_price_per_token or input_price_per_token <= 0:
        return CachingSavings(0.0, 0.0, None)

    read_price = (
        input_price_per_token * 0.25
        if cache_read_price_per_token is None
        else cache_read_price_per_token
    )
    saved_per_token = input_price_per_token - read_price
    if saved_per_token <= 0:
        return CachingSavings(0.0, 0.0, None)

    return CachingSavings(
        savings_per_request=cached_tokens * saved_per_token,
        savings_percentage=saved_per_token / input_price_per_token * 100,
        break_even_requests=math.ceil(input_price_per_token / saved_per_token),
    )


def analyze_caching_opportunities(
    system_prompt: Optional[str],
    messages: Sequence[Dict[str, Any]],
    model_info: Any,
    estimator: TokenEstimator = estimate_token_count
) -> CachingAnalysis:
    """Recommend a caching strategy for a conversation and model."""
    recommendations: List[str] = []
    potential_savings = 0.0
    optimal_strategy = "none"

    system_tokens = estimator(system_prompt) if system_prompt else 0
    total_user_tokens = 0
    for message in messages:
        if isinstance(message, dict) and message.get("role") == "user":
            text = _text_of(message.get("content"))
            if text:
                total_user_tokens += estimator(text)

    if system_tokens >= DEFAULT_CACHE_CONFIG.min_tokens_for_caching:
        recommendations.append(f"System prompt ({system_tokens} tokens) is suitable for caching")
        potential_savings += system_tokens * 0.75
        optimal_strategy = "conservative"

    if total_user_tokens >= CACHING_STRATEGIES["conservative"].min_tokens_for_caching:
        recommendations.append(f"User messages ({total_user_tokens} tokens) could benefit from caching")
        potential_savings += total_user_tokens * 0.5
        optimal_strategy = "aggressive"

    if getattr(model_info, "supports_prompt_cache", False):
        recommendations.append("Model supports prompt caching - enable for cost optimization")
    else:
        recommendations.append(
            "Model does not support prompt caching - consider switching to a caching-enabled model"
        )
        optimal_strategy = "none"

    return CachingAnalysis(
        recommendations=recommendations,
        potential_savings=potential_savings,
        optimal_strategy=optimal_strategy,
    )
