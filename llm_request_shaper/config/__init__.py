from .models import MODEL_PRICING, get_model_info
from .settings import get_caching_config, get_circuit_breaker_config, get_retry_policy

__all__ = [
    "MODEL_PRICING",
    "get_model_info",
    "get_caching_config",
    "get_circuit_breaker_config",
    "get_retry_policy",
]
