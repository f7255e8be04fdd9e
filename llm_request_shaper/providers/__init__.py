"""Provider-facing request layers."""

from .base import ProviderError

__all__ = ["ProviderError"]
