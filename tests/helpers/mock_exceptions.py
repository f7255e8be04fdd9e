"""Mock failure objects for testing error classification and retries."""

from typing import Dict, Optional


class MockHTTPResponse:
    """Mock HTTP response for exception testing."""

    def __init__(self, status_code: int, headers: Optional[Dict[str, str]] = None):
        self.status_code = status_code
        self.headers = headers or {}


class MockAPIError(Exception):
    """Base mock for SDK errors carrying a response."""

    def __init__(self, message: str, response: Optional[MockHTTPResponse] = None):
        super().__init__(message)
        self.message = message
        self.response = response


class MockRateLimitError(MockAPIError):
    """Mock RateLimitError with a Retry-After header."""

    def __init__(self, message: str = "Rate limit exceeded", retry_after: Optional[int] = 60):
        headers = {"Retry-After": str(retry_after)} if retry_after is not None else {}
        super().__init__(message, MockHTTPResponse(429, headers))


class MockAuthenticationError(MockAPIError):
    """Mock AuthenticationError."""

    def __init__(self, message: str = "Invalid API key"):
        super().__init__(message, MockHTTPResponse(401))


class MockInternalServerError(MockAPIError):
    """Mock InternalServerError."""

    def __init__(self, message: str = "Internal server error", status_code: int = 500):
        super().__init__(message, MockHTTPResponse(status_code))


class MockNetworkError(Exception):
    """Mock transport error exposing a socket error code."""

    def __init__(self, message: str = "socket hang up", code: str = "ECONNRESET"):
        super().__init__(message)
        self.code = code


class BrokenFailure:
    """Failure object whose attributes blow up when read."""

    @property
    def status(self):
        raise RuntimeError("status unavailable")

    @property
    def message(self):
        raise RuntimeError("message unavailable")

    @property
    def headers(self):
        raise RuntimeError("headers unavailable")
