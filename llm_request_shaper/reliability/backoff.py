"""
Retry delay calculation.

Delays are expressed in milliseconds. A server-supplied retry hint takes
priority over computed exponential backoff; jitter is applied in both cases
so concurrent callers do not retry in lockstep.
"""

import random
import time
from typing import Dict, Optional, Union

from .error_classifier import ErrorKind

# Longer waits for rate limits, shorter ones for transient network faults
BACKOFF_MULTIPLIERS: Dict[ErrorKind, float] = {
    ErrorKind.RATE_LIMIT: 2.0,
    ErrorKind.SERVER_ERROR: 1.5,
    ErrorKind.NETWORK_ERROR: 1.2,
}

# 2**62 already exceeds any sane max_delay; keeps the float math finite
_MAX_EXPONENT = 62


def parse_retry_after(
    retry_after: Union[str, int, float, None],
    now: Optional[float] = None
) -> Optional[float]:
    """
    Convert a retry hint into a delay in milliseconds.

    A value greater than the current time in epoch seconds is treated as an
    absolute instant; anything else is a relative delay in seconds.

    Args:
        retry_after: Raw header value
        now: Current epoch time in seconds (defaults to ``time.time()``)

    Returns:
        Delay in milliseconds floored at 0, or None if the hint is not numeric
    """
    if retry_after is None or isinstance(retry_after, bool):
        return None
    try:
        value = float(str(retry_after).strip())
    except ValueError:
        return None
    if value != value:  # NaN
        return None

    now = time.time() if now is None else now
    if value > now:
        delay = value * 1000 - now * 1000
    else:
        delay = value * 1000
    return max(0.0, delay)


def calculate_retry_delay(
    attempt: int,
    base_delay: float,
    max_delay: float,
    error_kind: ErrorKind,
    retry_after: Union[str, int, float, None] = None,
    jitter_factor: float = 0.1,
    now: Optional[float] = None
) -> float:
    """
    Calculate the delay before the next retry.

    Args:
        attempt: Zero-based retry attempt
        base_delay: Base delay in milliseconds
        max_delay: Upper bound for the delay before jitter, in milliseconds
        error_kind: Classified kind of the failure
        retry_after: Optional server retry hint (seconds or epoch seconds)
        jitter_factor: Fraction of the delay used for symmetric jitter
        now: Current epoch time in seconds, for hint conversion

    Returns:
        Delay in milliseconds, within ``[0, max_delay * (1 + jitter_factor)]``
    """
    hinted = parse_retry_after(retry_after, now)
    if hinted is not None:
        delay = min(hinted, max_delay)
    else:
        multiplier = BACKOFF_MULTIPLIERS.get(error_kind, 1.0)
        exponent = min(max(int(attempt), 0), _MAX_EXPONENT)
        delay = min(max_delay, base_delay * (2 ** exponent) * multiplier)

    # Symmetric jitter to prevent thundering herd
    jitter = delay * jitter_factor * random.uniform(-1, 1)
    return max(0.0, delay + jitter)
