"""
Circuit breaker pattern implementation for backend resilience.

This module implements the circuit breaker pattern to stop sending requests
to a failing backend until it appears to have recovered. One breaker is
shared by all concurrent calls to the same endpoint, so every state read or
transition happens under a lock; nothing blocks while the lock is held.
"""

import logging
import threading
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    """Circuit breaker states."""
    CLOSED = "closed"        # Normal operation
    OPEN = "open"            # Failing, reject requests
    HALF_OPEN = "half_open"  # Testing recovery


class CircuitBreakerConfig(BaseModel):
    """Circuit breaker configuration."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    failure_threshold: int = Field(5, gt=0, description="Consecutive failures before opening")
    recovery_timeout: float = Field(60.0, ge=0, description="Seconds before a trial request is admitted")


@dataclass
class CircuitStats:
    """Circuit breaker statistics."""
    consecutive_failures: int = 0
    total_failures: int = 0
    total_successes: int = 0
    last_failure_time: Optional[float] = None
    last_success_time: Optional[float] = None
    last_state_change: Optional[float] = None


class CircuitBreaker:
    """
    Circuit breaker for a single backend endpoint.

    Callers check ``allow_request()`` before each network attempt and report
    the outcome with ``record_success()`` / ``record_failure()``. The breaker
    never probes the backend itself.

    While HALF_OPEN every request is admitted until an outcome is recorded,
    so several concurrent trial requests may go through.
    """

    def __init__(
        self,
        name: str = "default",
        config: Optional[CircuitBreakerConfig] = None,
        clock: Callable[[], float] = time.time
    ):
        self.name = name
        self.config = config or CircuitBreakerConfig()
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._stats = CircuitStats()
        self._lock = threading.Lock()

    def allow_request(self) -> bool:
        """
        Check whether a request may be sent.

        Only the state may change here (OPEN -> HALF_OPEN once the recovery
        timeout has elapsed); failure counters are left untouched.
        """
        transition = None
        with self._lock:
            if self._state == CircuitState.CLOSED:
                allowed = True
            elif self._state == CircuitState.OPEN:
                allowed = self._timeout_expired()
                if allowed:
                    transition = self._transition(CircuitState.HALF_OPEN)
            else:
                allowed = True

        if transition:
            self._log_transition(*transition)
        elif not allowed:
            logger.debug(
                f"Circuit breaker {self.name} rejected request",
                extra={"circuit_breaker": self.name, "state": CircuitState.OPEN.value}
            )
        return allowed

    def record_success(self) -> None:
        """Record a successful call: reset the failure count and close."""
        transition = None
        with self._lock:
            self._stats.consecutive_failures = 0
            self._stats.total_successes += 1
            self._stats.last_success_time = self._clock()
            if self._state != CircuitState.CLOSED:
                transition = self._transition(CircuitState.CLOSED)

        if transition:
            self._log_transition(*transition)

    def record_failure(self) -> None:
        """Record a failed call, opening the circuit at the threshold."""
        transition = None
        with self._lock:
            self._stats.consecutive_failures += 1
            self._stats.total_failures += 1
            self._stats.last_failure_time = self._clock()
            consecutive = self._stats.consecutive_failures

            # A failed trial while half-open re-opens immediately
            should_open = (
                consecutive >= self.config.failure_threshold
                or self._state == CircuitState.HALF_OPEN
            )
            if should_open:
                transition = self._transition(CircuitState.OPEN)
            state = self._state

        logger.warning(
            f"Circuit breaker {self.name} recorded failure",
            extra={
                "circuit_breaker": self.name,
                "state": state.value,
                "consecutive_failures": consecutive
            }
        )
        if transition:
            self._log_transition(*transition)

    def _timeout_expired(self) -> bool:
        last_failure = self._stats.last_failure_time
        if last_failure is None:
            return True
        return self._clock() - last_failure >= self.config.recovery_timeout

    def _transition(self, new_state: CircuitState) -> Tuple[CircuitState, CircuitState, int]:
        # Caller holds the lock
        previous = self._state
        self._state = new_state
        self._stats.last_state_change = self._clock()
        return previous, new_state, self._stats.consecutive_failures

    def _log_transition(
        self,
        previous: CircuitState,
        new_state: CircuitState,
        consecutive_failures: int
    ) -> None:
        extra = {
            "circuit_breaker": self.name,
            "previous_state": previous.value,
            "consecutive_failures": consecutive_failures
        }
        if new_state == CircuitState.OPEN:
            logger.error(f"Circuit breaker {self.name} opened", extra=extra)
        elif new_state == CircuitState.HALF_OPEN:
            logger.info(f"Circuit breaker {self.name} half-open", extra=extra)
        else:
            logger.info(f"Circuit breaker {self.name} closed", extra=extra)

    def get_state(self) -> CircuitState:
        """Get current circuit state."""
        with self._lock:
            return self._state

    def get_stats(self) -> CircuitStats:
        """Get a snapshot of circuit statistics."""
        with self._lock:
            return replace(self._stats)

    @property
    def consecutive_failures(self) -> int:
        with self._lock:
            return self._stats.consecutive_failures

    def is_open(self) -> bool:
        return self.get_state() == CircuitState.OPEN

    def is_closed(self) -> bool:
        return self.get_state() == CircuitState.CLOSED

    def is_half_open(self) -> bool:
        return self.get_state() == CircuitState.HALF_OPEN

    def reset(self) -> None:
        """Reset circuit breaker to closed state."""
        with self._lock:
            self._state = CircuitState.CLOSED
            self._stats = CircuitStats()
        logger.info(f"Circuit breaker {self.name} reset")


class CircuitBreakerManager:
    """
    Registry holding one circuit breaker per backend endpoint.

    Constructed by the caller's wiring and passed where needed; there is no
    module-level instance.
    """

    def __init__(
        self,
        default_config: Optional[CircuitBreakerConfig] = None,
        clock: Callable[[], float] = time.time
    ):
        self.default_config = default_config or CircuitBreakerConfig()
        self._clock = clock
        self.circuit_breakers: Dict[str, CircuitBreaker] = {}
        self._lock = threading.Lock()

    def get_or_create(
        self,
        name: str,
        config: Optional[CircuitBreakerConfig] = None
    ) -> CircuitBreaker:
        """Get existing or create new circuit breaker."""
        with self._lock:
            if name not in self.circuit_breakers:
                self.circuit_breakers[name] = CircuitBreaker(
                    name, config or self.default_config, clock=self._clock
                )
            return self.circuit_breakers[name]

    def get(self, name: str) -> Optional[CircuitBreaker]:
        """Get circuit breaker by name."""
        return self.circuit_breakers.get(name)

    def get_all_stats(self) -> Dict[str, Dict[str, Any]]:
        """Get stats for all circuit breakers."""
        with self._lock:
            breakers = list(self.circuit_breakers.items())
        result = {}
        for name, cb in breakers:
            stats = cb.get_stats()
            result[name] = {
                "state": cb.get_state().value,
                "consecutive_failures": stats.consecutive_failures,
                "total_failures": stats.total_failures,
                "total_successes": stats.total_successes
            }
        return result

    def reset_all(self) -> None:
        """Reset all circuit breakers."""
        with self._lock:
            breakers = list(self.circuit_breakers.values())
        for cb in breakers:
            cb.reset()
