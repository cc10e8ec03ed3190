"""
Graceful degradation helpers: a circuit breaker, a timeout wrapper and a
retry-with-backoff utility for calls to unreliable dependencies.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

from agriweather.core.errors import OperationTimeoutError, ServiceUnavailableError
from agriweather.core.logger import logs

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


@dataclass
class CircuitBreakerState:
    failures: int = 0
    last_failure_time: float = 0.0
    state: CircuitState = CircuitState.CLOSED


class CircuitBreaker:
    """
    Stops calling a failing dependency for `recovery_timeout` seconds once
    `failure_threshold` consecutive calls have failed.

    CLOSED -> OPEN after the threshold is reached. OPEN -> HALF_OPEN once the
    recovery timeout has elapsed since the last failure; a single trial call
    then decides between CLOSED (success) and OPEN (failure). While the trial
    is in flight other callers are treated as if the circuit were still open.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
        name: str = "circuit",
        clock: Callable[[], float] = time.monotonic,
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.name = name
        self._clock = clock
        self._state = CircuitBreakerState()
        self._trial_in_flight = False

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        fallback: Optional[Callable[[], Awaitable[T]]] = None,
    ) -> T:
        if self._state.state == CircuitState.OPEN:
            if self._clock() - self._state.last_failure_time > self.recovery_timeout:
                self._state.state = CircuitState.HALF_OPEN
                logs.log(logging.INFO, f"Circuit '{self.name}' HALF_OPEN, allowing one trial call")
            else:
                return await self._reject(fallback)
        elif self._state.state == CircuitState.HALF_OPEN and self._trial_in_flight:
            return await self._reject(fallback)

        is_trial = self._state.state == CircuitState.HALF_OPEN
        if is_trial:
            self._trial_in_flight = True

        try:
            result = await operation()
        except Exception as e:
            self.on_failure()
            logs.log(logging.WARNING, f"Circuit '{self.name}' call failed ({self._state.failures}/{self.failure_threshold}): {str(e)}")
            if fallback is not None:
                return await fallback()
            raise
        else:
            self.on_success()
            return result
        finally:
            if is_trial:
                self._trial_in_flight = False

    async def _reject(self, fallback):
        if fallback is not None:
            logs.log(logging.INFO, f"Circuit '{self.name}' OPEN, serving fallback")
            return await fallback()
        raise ServiceUnavailableError()

    def on_success(self):
        if self._state.state != CircuitState.CLOSED:
            logs.log(logging.INFO, f"Circuit '{self.name}' CLOSED")
        self._state.failures = 0
        self._state.state = CircuitState.CLOSED

    def on_failure(self):
        self._state.failures += 1
        self._state.last_failure_time = self._clock()

        if self._state.failures >= self.failure_threshold:
            if self._state.state != CircuitState.OPEN:
                logs.log(logging.WARNING, f"Circuit '{self.name}' OPEN after {self._state.failures} failures")
            self._state.state = CircuitState.OPEN

    def get_state(self) -> CircuitBreakerState:
        """Returns a copy; callers cannot mutate the breaker through it."""
        return replace(self._state)


async def with_timeout(
    operation: Callable[[], Awaitable[T]],
    timeout: float,
    message: str = "Operation timed out",
) -> T:
    """
    Races `operation()` against `timeout` seconds. The operation is cancelled
    if the deadline wins, so no task or timer outlives the call.
    """
    try:
        return await asyncio.wait_for(operation(), timeout=timeout)
    except asyncio.TimeoutError:
        raise OperationTimeoutError(message) from None


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 10.0,
) -> T:
    """Runs `operation` up to max_retries + 1 times with exponential backoff."""
    last_error: Exception | None = None

    for attempt in range(max_retries + 1):
        try:
            return await operation()
        except Exception as e:
            last_error = e
            if attempt == max_retries:
                break

            delay = min(base_delay * (2 ** attempt), max_delay)
            logs.log(logging.DEBUG, f"Attempt {attempt + 1} failed, retrying in {delay}s: {str(e)}")
            await asyncio.sleep(delay)

    raise last_error
