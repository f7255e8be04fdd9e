"""
Environment-driven selection of policy presets.

Presets are picked by name and may be tuned with environment variables
(a ``.env`` file is honoured):

- LLM_SHAPER_RETRY_PROFILE: retry preset name (default ``openrouter``)
- LLM_SHAPER_MAX_RETRIES, LLM_SHAPER_MAX_COST_THRESHOLD,
  LLM_SHAPER_RETRY_ALL_ERRORS, LLM_SHAPER_JITTER_FACTOR: retry overrides
- LLM_SHAPER_CACHING_STRATEGY: caching preset name (default ``balanced``)
- LLM_SHAPER_CB_FAILURE_THRESHOLD, LLM_SHAPER_CB_RECOVERY_TIMEOUT:
  circuit breaker settings
"""

import logging
import os
from typing import Any, Callable, Dict, Optional

from dotenv import load_dotenv

from ..caching.cache_optimizer import CACHING_STRATEGIES, CachingConfig
from ..reliability.circuit_breaker import CircuitBreakerConfig
from ..reliability.enhanced_retry import PROVIDER_RETRY_CONFIGS, RetryPolicy

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()

DEFAULT_RETRY_PROFILE = "openrouter"
DEFAULT_CACHING_STRATEGY = "balanced"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def _env_overrides(mapping: Dict[str, tuple]) -> Dict[str, Any]:
    """Collect overrides from env vars, skipping malformed values."""
    overrides: Dict[str, Any] = {}
    for env_name, (field_name, parse) in mapping.items():
        raw = os.getenv(env_name)
        if raw is None or raw.strip() == "":
            continue
        try:
            overrides[field_name] = parse(raw)
        except ValueError:
            logger.warning(f"Ignoring malformed {env_name}={raw!r}")
    return overrides


_RETRY_ENV: Dict[str, tuple] = {
    "LLM_SHAPER_MAX_RETRIES": ("max_retries", int),
    "LLM_SHAPER_MAX_COST_THRESHOLD": ("max_cost_threshold", float),
    "LLM_SHAPER_RETRY_ALL_ERRORS": ("retry_all_errors", _parse_bool),
    "LLM_SHAPER_JITTER_FACTOR": ("jitter_factor", float),
}

_CIRCUIT_ENV: Dict[str, tuple] = {
    "LLM_SHAPER_CB_FAILURE_THRESHOLD": ("failure_threshold", int),
    "LLM_SHAPER_CB_RECOVERY_TIMEOUT": ("recovery_timeout", float),
}


def _lookup(presets: Dict[str, Any], name: str, kind: str) -> Any:
    if name not in presets:
        raise ValueError(f"Unknown {kind} '{name}', expected one of {', '.join(sorted(presets))}")
    return presets[name]


def get_retry_policy(profile: Optional[str] = None) -> RetryPolicy:
    """
    Get the retry policy for a backend profile.

    Args:
        profile: Preset name; falls back to LLM_SHAPER_RETRY_PROFILE, then ``openrouter``

    Returns:
        The preset with any environment overrides applied

    Raises:
        ValueError: For an unknown profile
        pydantic.ValidationError: If overrides break the policy constraints
    """
    profile = profile or os.getenv("LLM_SHAPER_RETRY_PROFILE") or DEFAULT_RETRY_PROFILE
    policy = _lookup(PROVIDER_RETRY_CONFIGS, profile, "retry profile")
    overrides = _env_overrides(_RETRY_ENV)
    if not overrides:
        return policy
    return RetryPolicy(**{**policy.model_dump(), **overrides})


def get_caching_config(name: Optional[str] = None) -> CachingConfig:
    """Get a caching strategy preset by name."""
    name = name or os.getenv("LLM_SHAPER_CACHING_STRATEGY") or DEFAULT_CACHING_STRATEGY
    return _lookup(CACHING_STRATEGIES, name, "caching strategy")


def get_circuit_breaker_config() -> CircuitBreakerConfig:
    """Get the circuit breaker configuration with environment overrides."""
    return CircuitBreakerConfig(**_env_overrides(_CIRCUIT_ENV))
