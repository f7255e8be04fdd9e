"""
Provider failure type.

The retry core accepts any failure object exposing an optional status,
an optional message and an optional header map. ``ProviderError`` is the
concrete shape used by the request layers of this package when they wrap
a transport failure.
"""

from typing import Any, Mapping, Optional


class ProviderError(Exception):
    """
    Base exception for provider-related errors.

    This should be raised for:
    - API transport errors
    - Authentication failures
    - Rate limiting
    - Transient failures that may be retryable

    Attributes:
        message: Error message
        provider: Provider name
        status_code: HTTP status code if applicable
        headers: Response headers if applicable (retry hints live here)
        retry_after: Seconds to wait before retry if applicable
        original_error: The original exception if wrapped
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: Optional[int] = None,
        headers: Optional[Mapping[str, Any]] = None,
        retry_after: Optional[float] = None,
        original_error: Optional[BaseException] = None
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status_code = status_code
        self.headers = dict(headers or {})
        self.retry_after = retry_after
        self.original_error = original_error

    @property
    def status(self) -> Optional[int]:
        return self.status_code
