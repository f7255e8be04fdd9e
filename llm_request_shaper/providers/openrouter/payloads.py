"""OpenRouter chat-completions payload helpers."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ...caching.cache_optimizer import (
    CacheStats,
    CachingConfig,
    TokenEstimator,
    apply_prompt_caching,
    estimate_token_count,
)

AUTO_ROUTER_MODEL = "openrouter/auto"

# Families whose OpenRouter default is below their real output limit
EXTENDED_OUTPUT_MODELS = (
    "anthropic/claude-sonnet-4",
    "anthropic/claude-opus-4",
    "anthropic/claude-3.7-sonnet",
    "anthropic/claude-3-7-sonnet",
    "anthropic/claude-3.5-sonnet",
    "anthropic/claude-3-5-haiku",
)
EXTENDED_OUTPUT_MAX_TOKENS = 8_192

THINKING_MODELS = (
    "anthropic/claude-sonnet-4",
    "anthropic/claude-opus-4",
    "anthropic/claude-3.7-sonnet",
    "anthropic/claude-3-7-sonnet",
)

R1_STYLE_MODELS = ("perplexity/sonar-reasoning", "qwen/qwq-32b:free", "qwen/qwq-32b")

KIMI_K2_MODEL = "moonshotai/kimi-k2"
KIMI_K2_PROVIDER_ORDER = ["groq", "together", "baseten", "parasail", "novita", "deepinfra"]

# OpenRouter body fields the openai SDK has no keyword for; sent via extra_body
OPENROUTER_EXTRA_FIELDS = ("transforms", "include_reasoning", "reasoning", "models", "provider")


@dataclass
class PreparedRequest:
    """Wire body of one request plus the caching applied to it."""
    body: Dict[str, Any]
    cache_stats: CacheStats = field(default_factory=CacheStats)

    def create_kwargs(self) -> Dict[str, Any]:
        """
        Keyword arguments for ``client.chat.completions.create``.

        Standard chat-completions fields are passed directly; OpenRouter
        extensions go into ``extra_body`` so the SDK merges them into the
        JSON body unchanged.
        """
        kwargs = {k: v for k, v in self.body.items() if k not in OPENROUTER_EXTRA_FIELDS}
        extra_body = {k: v for k, v in self.body.items() if k in OPENROUTER_EXTRA_FIELDS}
        if extra_body:
            kwargs["extra_body"] = extra_body
        return kwargs


def _base_model_id(model_id: str) -> str:
    return model_id.split(":", 1)[0]


def _matches_family(model_id: str, families: Sequence[str]) -> bool:
    base = _base_model_id(model_id)
    return any(base.startswith(family) for family in families)


def is_r1_style_model(model_id: str) -> bool:
    return model_id.startswith("deepseek/deepseek-r1") or model_id in R1_STYLE_MODELS


def _as_parts(content: Any) -> List[Dict[str, Any]]:
    if isinstance(content, list):
        return list(content)
    return [{"type": "text", "text": content if isinstance(content, str) else ""}]


def to_r1_messages(messages: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Merge consecutive same-role messages, as R1-style models require."""
    merged: List[Dict[str, Any]] = []
    for message in messages:
        role = message.get("role")
        content = message.get("content")
        if merged and merged[-1]["role"] == role:
            previous = merged[-1]["content"]
            if isinstance(previous, str) and isinstance(content, str):
                merged[-1]["content"] = f"{previous}\n{content}"
            else:
                merged[-1]["content"] = _as_parts(previous) + _as_parts(content)
        else:
            merged.append({"role": role, "content": content})
    return merged


def _should_apply_caching(model_id: str, model_info: Any) -> bool:
    if not getattr(model_info, "supports_prompt_cache", False):
        return False
    return "claude" in model_id or "gemini" in model_id or "google" in model_id


def build_request_body(
    system_prompt: str,
    messages: Sequence[Dict[str, Any]],
    model_id: str,
    model_info: Any,
    *,
    caching_config: Optional[CachingConfig] = None,
    estimator: TokenEstimator = estimate_token_count,
    reasoning_effort: Optional[str] = None,
    thinking_budget_tokens: Optional[int] = None,
    provider_sorting: Optional[str] = None,
    fallback_models: Optional[Sequence[str]] = None,
    use_auto_router: bool = False
) -> PreparedRequest:
    """
    Assemble a streaming chat-completions request for OpenRouter.

    Args:
        system_prompt: System instruction text
        messages: OpenAI-format conversation messages, without the system message
        model_id: OpenRouter model id
        model_info: Model metadata (``supports_prompt_cache`` is consulted)
        caching_config: Caching strategy for cache-capable models
        estimator: Token counting function for caching decisions
        reasoning_effort: Effort level for OpenAI reasoning models
        thinking_budget_tokens: Reasoning budget for thinking-capable Claude models
        provider_sorting: Provider sort field, ``price`` when omitted
        fallback_models: Models OpenRouter may fall back to
        use_auto_router: Route through ``openrouter/auto``

    Returns:
        PreparedRequest with the request body and cache statistics
    """
    chat_messages: List[Dict[str, Any]] = [{"role": "system", "content": system_prompt}]
    chat_messages.extend(dict(message) for message in messages)

    cache_stats = CacheStats()
    if _should_apply_caching(model_id, model_info):
        cached = apply_prompt_caching(chat_messages, caching_config, estimator)
        chat_messages = cached.messages
        cache_stats = cached.stats

    max_tokens = EXTENDED_OUTPUT_MAX_TOKENS if _matches_family(model_id, EXTENDED_OUTPUT_MODELS) else None

    temperature: Optional[float] = 0
    top_p: Optional[float] = None
    if is_r1_style_model(model_id):
        temperature = 0.7
        top_p = 0.95
        chat_messages = to_r1_messages([{"role": "user", "content": system_prompt}, *messages])

    reasoning = None
    if _matches_family(model_id, THINKING_MODELS) and thinking_budget_tokens:
        # Extended thinking does not accept a custom temperature
        temperature = None
        reasoning = {"max_tokens": thinking_budget_tokens}

    # Middle-out truncation would keep invalidating the prompt cache
    apply_middle_out = not getattr(model_info, "supports_prompt_cache", False)
    if model_id == "deepseek/deepseek-chat":
        apply_middle_out = True

    body: Dict[str, Any] = {
        "model": AUTO_ROUTER_MODEL if use_auto_router else model_id,
        "max_tokens": max_tokens,
        "temperature": temperature,
        "top_p": top_p,
        "messages": chat_messages,
        "stream": True,
        "stream_options": {"include_usage": True},
        "transforms": ["middle-out"] if apply_middle_out else None,
        "include_reasoning": True,
    }
    if model_id.startswith("openai/o"):
        body["reasoning_effort"] = reasoning_effort or "medium"
    if reasoning:
        body["reasoning"] = reasoning

    if not use_auto_router and fallback_models:
        body["models"] = [model_id, *fallback_models]

    if model_id == KIMI_K2_MODEL:
        body["provider"] = {"order": list(KIMI_K2_PROVIDER_ORDER), "allow_fallbacks": False}
    else:
        body["provider"] = {"sort": provider_sorting or "price", "allow_fallbacks": True}

    body = {key: value for key, value in body.items() if value is not None}
    return PreparedRequest(body=body, cache_stats=cache_stats)
