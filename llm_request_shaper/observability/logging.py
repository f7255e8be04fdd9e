"""
Structured request logging for the provider layers.

Every line is prefixed with ``[provider=... model=... request_id=...]`` so
retries, caching and breaker refusals of one request can be grepped together.
"""

import logging
import time
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional


class ProviderLogger:
    """Structured logger bound to one backend (e.g. ``openrouter``)."""

    def __init__(self, provider_name: str):
        self.provider = provider_name
        self.logger = logging.getLogger(f"llm_request_shaper.providers.{provider_name}")

    def _prefix(self, fields: Dict[str, Any]) -> str:
        parts = [f"provider={self.provider}"]
        parts.extend(f"{key}={value}" for key, value in fields.items() if value is not None)
        return "[" + " ".join(parts) + "]"

    def log(self, level: int, message: str, **fields: Any) -> None:
        """Emit ``message`` at ``level`` with ``fields`` in the prefix."""
        if self.logger.isEnabledFor(level):
            self.logger.log(level, f"{self._prefix(fields)} {message}")

    def debug(self, message: str, **fields: Any) -> None:
        self.log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self.log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self.log(logging.WARNING, message, **fields)

    def error(self, message: str, error: Optional[BaseException] = None, **fields: Any) -> None:
        if error is not None:
            fields["error_type"] = type(error).__name__
            fields["error_msg"] = str(error)
        self.log(logging.ERROR, message, **fields)

    @contextmanager
    def track_request(
        self,
        method: str,
        model: str,
        request_id: Optional[str] = None
    ) -> Iterator[Dict[str, Any]]:
        """
        Time one logical request, retries included.

        Args:
            method: Request kind (e.g. "stream")
            model: Model id the request targets
            request_id: Correlation id; a short uuid is generated if omitted

        Yields:
            Mutable metadata dict carrying ``request_id``
        """
        request_id = request_id or uuid.uuid4().hex[:8]
        started = time.monotonic()
        metadata = {"request_id": request_id, "model": model, "method": method}
        self.debug(f"Starting {method} request", model=model, request_id=request_id)

        try:
            yield metadata
        except Exception as exc:
            self.error(
                f"{method} request failed",
                error=exc,
                model=model,
                request_id=request_id,
                duration_ms=int((time.monotonic() - started) * 1000),
            )
            raise

        self.info(
            f"{method} request completed",
            model=model,
            request_id=request_id,
            duration_ms=int((time.monotonic() - started) * 1000),
        )

    def log_caching(
        self,
        stats: Any,
        model: str,
        request_id: Optional[str] = None,
        savings: Optional[float] = None
    ) -> None:
        """Report which prompt parts were marked for caching."""
        if not stats.system_cached and not stats.messages_cached:
            return
        self.info(
            "Prompt caching applied",
            model=model,
            request_id=request_id,
            system_cached=stats.system_cached,
            messages_cached=stats.messages_cached,
            cached_tokens=stats.estimated_cached_tokens,
            potential_savings=f"${savings:.4f}" if savings is not None else None,
        )
