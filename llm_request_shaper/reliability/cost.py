"""Token cost estimation from per-million-token price records."""

import math
from typing import Any, Dict, Mapping, Optional

TOKENS_PER_MILLION = 1_000_000


def _read_number(source: Any, name: str) -> float:
    """Read a non-negative finite number, degrading to 0."""
    if source is None:
        return 0.0
    try:
        if isinstance(source, Mapping):
            value = source.get(name)
        else:
            value = getattr(source, name, None)
        if value is None or isinstance(value, bool):
            return 0.0
        number = float(value)
    except Exception:
        return 0.0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return number


def _as_tokens(value: Any) -> float:
    try:
        tokens = float(value or 0)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(tokens) or math.isinf(tokens) or tokens < 0:
        return 0.0
    return tokens


def estimate_retry_cost(
    price_info: Any,
    input_tokens: Any,
    output_tokens: Any = 0
) -> float:
    """
    Estimate the cost of one call.

    Args:
        price_info: ``ModelInfo``, mapping or object with ``input_price`` and
            ``output_price`` per million tokens
        input_tokens: Projected prompt tokens
        output_tokens: Projected completion tokens

    Returns:
        Cost in the price table's currency; 0 for missing prices
    """
    input_cost = _as_tokens(input_tokens) / TOKENS_PER_MILLION * _read_number(price_info, "input_price")
    output_cost = _as_tokens(output_tokens) / TOKENS_PER_MILLION * _read_number(price_info, "output_price")
    return input_cost + output_cost


def calculate_cost(price_info: Any, usage: Optional[Dict[str, Any]]) -> float:
    """Cost of a completed call from a normalized usage dict."""
    if not usage or not isinstance(usage, Mapping):
        return 0.0
    return estimate_retry_cost(
        price_info,
        usage.get("prompt_tokens", 0),
        usage.get("completion_tokens", 0)
    )
