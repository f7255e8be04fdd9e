"""
Error classification for retry decisions.

This module maps an arbitrary failure object onto a small, closed set of
error kinds. Failures are treated structurally: anything exposing an
optional numeric status, an optional message and an optional header map
can be classified, and reading a field never raises.
"""

import errno
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, Tuple

import httpx
import openai


class ErrorKind(str, Enum):
    """Error kinds the retry logic reasons about."""
    RATE_LIMIT = "rate_limit"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"
    AUTH_ERROR = "auth_error"
    CONTEXT_LENGTH_ERROR = "context_length_error"
    UNKNOWN = "unknown_error"


# Message fragments, matched against the lower-cased failure message
RATE_LIMIT_PATTERNS = ("rate limit", "too many requests")
CONTEXT_LENGTH_PATTERNS = ("context length", "token limit", "maximum context")
NETWORK_PATTERNS = ("network", "timeout", "connection")

NETWORK_ERROR_CODES = frozenset({"ECONNRESET", "ETIMEDOUT"})
NETWORK_ERRNOS = frozenset({errno.ECONNRESET, errno.ETIMEDOUT})
NETWORK_EXCEPTION_TYPES = (
    httpx.TimeoutException,
    httpx.NetworkError,
    openai.APIConnectionError,  # includes openai.APITimeoutError
    ConnectionError,
    TimeoutError,
)

# Header aliases carrying a server retry hint, in lookup order
RETRY_AFTER_HEADERS = ("retry-after", "x-ratelimit-reset", "ratelimit-reset")


def _get_field(obj: Any, name: str) -> Any:
    """Read ``name`` from a mapping or an attribute, never raising."""
    if obj is None:
        return None
    try:
        if isinstance(obj, Mapping):
            return obj.get(name)
        return getattr(obj, name, None)
    except Exception:
        return None


def _coerce_status(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def get_status(failure: Any) -> Optional[int]:
    """Extract an HTTP status from a failure or its attached response."""
    for candidate in (failure, _get_field(failure, "response")):
        for name in ("status", "status_code"):
            status = _coerce_status(_get_field(candidate, name))
            if status is not None:
                return status
    return None


def get_message(failure: Any) -> str:
    """Extract a lower-cased message, falling back to ``str()`` for exceptions."""
    message = _get_field(failure, "message")
    if isinstance(message, str):
        return message.lower()
    if isinstance(failure, BaseException):
        try:
            return str(failure).lower()
        except Exception:
            return ""
    return ""


def _get_headers(failure: Any) -> List[Mapping[str, Any]]:
    found = []
    for candidate in (failure, _get_field(failure, "response")):
        headers = _get_field(candidate, "headers")
        if isinstance(headers, Mapping) or hasattr(headers, "items"):
            found.append(headers)
    return found


def get_header(failure: Any, *names: str) -> Optional[str]:
    """
    Look up the first non-empty header among ``names`` (case-insensitive).

    The failure's own headers are checked before its response headers.
    """
    for headers in _get_headers(failure):
        try:
            lowered = {str(key).lower(): value for key, value in headers.items()}
        except Exception:
            continue
        for name in names:
            value = lowered.get(name.lower())
            if value not in (None, ""):
                return str(value)
    return None


def get_retry_after_hint(failure: Any) -> Optional[str]:
    """Find a server-supplied retry hint under any alias in ``RETRY_AFTER_HEADERS``."""
    return get_header(failure, *RETRY_AFTER_HEADERS)


def _has_network_code(failure: Any) -> bool:
    if isinstance(failure, NETWORK_EXCEPTION_TYPES):
        return True
    code = _get_field(failure, "code")
    if isinstance(code, str) and code.upper() in NETWORK_ERROR_CODES:
        return True
    return _get_field(failure, "errno") in NETWORK_ERRNOS


def _contains(message: str, patterns: Tuple[str, ...]) -> bool:
    return any(pattern in message for pattern in patterns)


# Ordered (predicate, kind) table, first match wins
_Rule = Callable[[Optional[int], str, Any], bool]
CLASSIFICATION_RULES: List[Tuple[_Rule, ErrorKind]] = [
    (lambda status, message, failure: status == 429 or _contains(message, RATE_LIMIT_PATTERNS),
     ErrorKind.RATE_LIMIT),
    (lambda status, message, failure: status is not None and 500 <= status < 600,
     ErrorKind.SERVER_ERROR),
    (lambda status, message, failure: status in (401, 403),
     ErrorKind.AUTH_ERROR),
    (lambda status, message, failure: status == 413 or _contains(message, CONTEXT_LENGTH_PATTERNS),
     ErrorKind.CONTEXT_LENGTH_ERROR),
    (lambda status, message, failure: _contains(message, NETWORK_PATTERNS) or _has_network_code(failure),
     ErrorKind.NETWORK_ERROR),
]


def classify_error(failure: Any) -> ErrorKind:
    """
    Classify a failure into an ``ErrorKind``.

    Args:
        failure: Exception, mapping or any object with optional
            ``status``/``status_code``, ``message``, ``headers`` and
            ``code`` fields

    Returns:
        The first matching kind, ``ErrorKind.UNKNOWN`` if none match
    """
    status = get_status(failure)
    message = get_message(failure)

    for predicate, kind in CLASSIFICATION_RULES:
        try:
            if predicate(status, message, failure):
                return kind
        except Exception:
            continue
    return ErrorKind.UNKNOWN


class ErrorClassifier:
    """Facade over the classification helpers."""

    @staticmethod
    def classify(failure: Any) -> ErrorKind:
        return classify_error(failure)

    @staticmethod
    def retry_after_hint(failure: Any) -> Optional[str]:
        return get_retry_after_hint(failure)
