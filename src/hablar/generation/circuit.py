"""Process-wide circuit breaker for quota-limited generation calls."""

import logging
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ..errors import CircuitOpenError, is_rate_limited

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_COOLDOWN = 300.0


class CircuitBreaker:
    """Fail fast for a cooldown period after a rate-limit failure.

    States: CLOSED -> (rate-limit failure) -> OPEN -> (cooldown elapsed)
    -> CLOSED. There is no half-open trial call: every call during the cooldown
    fails immediately with CircuitOpenError.

    The state is a single timestamp; concurrent trips simply overwrite it.
    """

    def __init__(
        self,
        cooldown: float = DEFAULT_COOLDOWN,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the breaker.

        Args:
            cooldown: Seconds to stay open after a trip
            clock: Monotonic clock, injectable for tests
        """
        if cooldown < 0:
            raise ValueError(f"cooldown must be >= 0, got {cooldown}")
        self.cooldown = cooldown
        self._clock = clock
        self._last_trip: float | None = None

    @property
    def last_trip(self) -> float | None:
        return self._last_trip

    def retry_after(self) -> float:
        """Seconds until the breaker closes, 0 when closed."""
        if self._last_trip is None:
            return 0.0
        remaining = self.cooldown - (self._clock() - self._last_trip)
        return max(0.0, remaining)

    def is_open(self) -> bool:
        return self.retry_after() > 0

    def trip(self) -> None:
        self._last_trip = self._clock()
        logger.warning(f"Circuit breaker tripped, cooling down for {self.cooldown:.0f}s")

    def reset(self) -> None:
        self._last_trip = None

    async def guard(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Run ``fn`` unless the breaker is open.

        Args:
            fn: Zero-argument coroutine function to protect

        Returns:
            Whatever ``fn`` returns

        Raises:
            CircuitOpenError: If within the cooldown window; ``fn`` is not
                called
        """
        remaining = self.retry_after()
        if remaining > 0:
            logger.info(f"Circuit open, rejecting call ({remaining:.0f}s left)")
            raise CircuitOpenError(remaining)
        try:
            return await fn()
        except Exception as e:
            if is_rate_limited(e):
                self.trip()
            raise
