"""Circuit breaker for the clinic backend.

Purpose: once the backend keeps failing, stop hammering it. The schedule
fallback chain then drops straight to the next source instead of waiting
out every retry and timeout.

States:
- CLOSED: calls pass through
- OPEN: calls fail immediately with CircuitBreakerOpen
- HALF_OPEN: cool-down elapsed, one trial call decides the next state
"""
import time
from enum import Enum
from typing import Any, Callable, Optional

from clinic_booking.logging_config import get_logger

logger = get_logger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpen(Exception):
    """Raised instead of calling the backend while the circuit is open."""

    def __init__(self, name: str, retry_after: float):
        super().__init__(
            f"Circuit '{name}' is open. Retry after {retry_after:.1f}s"
        )
        self.name = name
        self.retry_after = retry_after


class CircuitBreaker:
    """Counts consecutive failures of one backend and fails fast when it is down."""

    def __init__(
        self,
        name: str = "clinic-api",
        failure_threshold: int = 5,
        timeout: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            name: Label used in logs and errors
            failure_threshold: Consecutive failures before opening
            timeout: Seconds to stay open before allowing a trial call
            clock: Time source (monotonic seconds), injectable for tests
        """
        self.name = name
        self.failure_threshold = failure_threshold
        self.timeout = timeout
        self._clock = clock
        self.failure_count = 0
        self.opened_at: Optional[float] = None
        self._state = CircuitState.CLOSED

    @property
    def state(self) -> str:
        """Current state as string."""
        return self._state.value

    def call(self, func: Callable, *args, **kwargs) -> Any:
        """
        Run ``func`` unless the circuit is open.

        Raises:
            CircuitBreakerOpen: If the circuit is open
            Exception: Whatever ``func`` raises (also counted as a failure)
        """
        self._before_call()
        try:
            result = func(*args, **kwargs)
        except Exception:
            self.record_failure()
            raise
        self.record_success()
        return result

    def _before_call(self):
        if self._state != CircuitState.OPEN:
            return

        remaining = self.retry_after()
        if remaining > 0:
            raise CircuitBreakerOpen(self.name, remaining)

        self._state = CircuitState.HALF_OPEN
        logger.info("circuit_half_open", circuit=self.name)

    def retry_after(self) -> float:
        """Seconds until an open circuit lets a trial call through."""
        if self.opened_at is None:
            return 0.0
        return max(0.0, self.timeout - (self._clock() - self.opened_at))

    def record_success(self):
        self.failure_count = 0
        if self._state != CircuitState.CLOSED:
            self._state = CircuitState.CLOSED
            self.opened_at = None
            logger.info("circuit_closed", circuit=self.name)

    def record_failure(self):
        self.failure_count += 1

        if self._state == CircuitState.HALF_OPEN:
            self._open()
            logger.warning("circuit_reopened", circuit=self.name)
        elif self.failure_count >= self.failure_threshold:
            self._open()
            logger.error(
                "circuit_opened",
                circuit=self.name,
                failures=self.failure_count,
                timeout=self.timeout,
            )

    def reset(self):
        """Force the circuit closed (e.g. after the user changes the backend URL)."""
        self.failure_count = 0
        self.opened_at = None
        self._state = CircuitState.CLOSED

    def _open(self):
        self._state = CircuitState.OPEN
        self.opened_at = self._clock()
