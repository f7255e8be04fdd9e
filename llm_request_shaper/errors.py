"""Request-shaping error definitions."""

from typing import Any, Optional


class ShaperError(Exception):
    """Base exception for request-shaping errors."""
    pass


class BackendUnavailableError(ShaperError):
    """
    Raised when a circuit breaker refuses a request before it is sent.

    When the refusal comes between retries of one request, the failure that
    triggered the retry is kept in ``last_error`` (and chained as
    ``__cause__``) together with the attempts made and the retry cost.
    """

    def __init__(
        self,
        backend: str,
        state: Optional[str] = None,
        last_error: Optional[BaseException] = None,
        attempts: int = 0,
        total_cost: float = 0.0
    ):
        self.backend = backend
        self.state = state
        self.last_error = last_error
        self.attempts = attempts
        self.total_cost = total_cost
        message = f"Backend '{backend}' is unavailable"
        if state:
            message += f" (circuit {state})"
        if last_error is not None:
            message += f" after {attempts} attempt(s), last error: {type(last_error).__name__}: {last_error}"
        super().__init__(message)


class RetryExhaustedError(ShaperError):
    """
    Raised when a failed call will not be retried any further.

    The original failure is kept in ``original_error`` and is also chained
    as ``__cause__``, so callers can surface it unchanged.

    Attributes:
        original_error: The last failure returned by the backend
        error_kind: Classified kind of the original failure
        attempts: Number of attempts made, including the first call
        total_cost: Cost charged to the retry ledger for this operation
        reason: Why the retry was denied
    """

    def __init__(
        self,
        original_error: BaseException,
        reason: str,
        attempts: int,
        error_kind: Any = None,
        total_cost: float = 0.0
    ):
        self.original_error = original_error
        self.reason = reason
        self.attempts = attempts
        self.error_kind = error_kind
        self.total_cost = total_cost

        message = f"Request failed after {attempts} attempt(s): {reason}"
        if total_cost:
            message += f" (retry cost ${total_cost:.4f})"
        super().__init__(message)
