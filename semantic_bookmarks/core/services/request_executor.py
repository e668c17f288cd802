"""Retry state machine for remote API calls.

A logical request moves through tagged states::

    Attempting(0) -> Attempting(1) -> ... -> Success | FailedFast | Exhausted

``next_state`` is the pure transition used on every failed attempt, so the
policy can be tested without network I/O. ``RequestExecutor`` drives it:
it awaits each attempt, sleeps between retries and reports every retry to
an ``on_retry`` hook.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from ..domain import RetryPolicy
from ..domain.exceptions import RateLimitError, SemanticBookmarksError
from .backoff import calculate_backoff_delay

logger = logging.getLogger(__name__)

T = TypeVar("T")

RetryHook = Callable[[int, float, Exception], None]
SleepFn = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class Attempting:
    """About to issue attempt number ``attempt`` (zero-based)."""

    attempt: int


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T
    attempts: int
    history: tuple[Any, ...] = field(default=(), repr=False)


@dataclass(frozen=True)
class FailedFast:
    """A non-retryable error ended the request."""

    error: Exception
    attempts: int
    history: tuple[Any, ...] = field(default=(), repr=False)


@dataclass(frozen=True)
class Exhausted:
    """Every allowed attempt failed with a retryable error."""

    error: Exception
    attempts: int
    history: tuple[Any, ...] = field(default=(), repr=False)


RetryState = Attempting | Success | FailedFast | Exhausted
TerminalState = Success | FailedFast | Exhausted


def is_retryable(error: Exception) -> bool:
    """Only library errors flagged ``retryable`` earn another attempt."""
    return isinstance(error, SemanticBookmarksError) and error.retryable


def next_state(
    state: Attempting,
    error: Exception,
    policy: RetryPolicy,
    rng: random.Random | None = None,
) -> tuple[RetryState, float]:
    """Transition after a failed attempt.

    Args:
        state: The attempt that failed.
        error: What it failed with.
        policy: Retry budget and backoff bounds.
        rng: Jitter source.

    Returns:
        ``(next_state, delay_ms)``. ``delay_ms`` is only non-zero when the
        next state is another ``Attempting``.
    """
    attempts = state.attempt + 1
    if not is_retryable(error):
        return FailedFast(error=error, attempts=attempts), 0.0
    if state.attempt >= policy.max_retries:
        return Exhausted(error=error, attempts=attempts), 0.0

    delay_ms = calculate_backoff_delay(
        state.attempt,
        policy,
        rate_limited=isinstance(error, RateLimitError),
        rng=rng,
    )
    return Attempting(attempt=attempts), delay_ms


def log_retry(attempt: int, delay_ms: float, error: Exception) -> None:
    """Default retry hook: one WARNING line per retry."""
    code = getattr(error, "error_code", type(error).__name__)
    logger.warning(f"Retry {attempt} in {delay_ms:.0f}ms after [{code}] {error}")


class RequestExecutor:
    """Runs an async operation under a retry policy.

    The executor holds configuration only; all per-call state lives in
    ``drive`` locals, so one executor can serve concurrent requests.
    """

    def __init__(
        self,
        policy: RetryPolicy,
        on_retry: RetryHook | None = log_retry,
        sleep: SleepFn = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            policy: Retry budget and backoff bounds.
            on_retry: Called with (retry number, delay in ms, error) before
                each backoff sleep. Exceptions it raises are logged and ignored.
            sleep: Async sleep taking seconds; injectable for tests.
            rng: Jitter source; injectable for tests.
        """
        self.policy = policy
        self.on_retry = on_retry
        self._sleep = sleep
        self._rng = rng

    async def drive(
        self,
        operation: Callable[[], Awaitable[T]],
        cancel_event: asyncio.Event | None = None,
    ) -> TerminalState:
        """Run ``operation`` to a terminal state without raising its errors.

        Raises:
            asyncio.CancelledError: If the task is cancelled or ``cancel_event`` is set.
        """
        state: RetryState = Attempting(attempt=0)
        history: list[RetryState] = [state]

        while isinstance(state, Attempting):
            self._check_cancelled(cancel_event)
            try:
                value = await operation()
            except Exception as error:
                state, delay_ms = next_state(state, error, self.policy, self._rng)
                history.append(state)
                if isinstance(state, Attempting):
                    self._notify_retry(state.attempt, delay_ms, error)
                    await self._backoff(delay_ms / 1000.0, cancel_event)
                continue
            return Success(value=value, attempts=state.attempt + 1, history=tuple(history))

        return type(state)(error=state.error, attempts=state.attempts, history=tuple(history))

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        cancel_event: asyncio.Event | None = None,
    ) -> T:
        """Run ``operation`` and return its value or raise the terminal error."""
        outcome = await self.drive(operation, cancel_event)
        if isinstance(outcome, Success):
            return outcome.value

        error = outcome.error
        if isinstance(error, SemanticBookmarksError):
            error.extra_context["attempts"] = outcome.attempts
        if isinstance(outcome, Exhausted):
            logger.error(f"Giving up after {outcome.attempts} attempts: {error}")
        raise error

    def _notify_retry(self, attempt: int, delay_ms: float, error: Exception) -> None:
        if self.on_retry is None:
            return
        try:
            self.on_retry(attempt, delay_ms, error)
        except Exception as hook_error:
            logger.debug(f"Retry hook failed: {hook_error}")

    async def _backoff(self, delay_s: float, cancel_event: asyncio.Event | None) -> None:
        if cancel_event is None:
            await self._sleep(delay_s)
            return

        sleeper = asyncio.ensure_future(self._sleep(delay_s))
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, waiter):
                task.cancel()
            await asyncio.gather(sleeper, waiter, return_exceptions=True)
        self._check_cancelled(cancel_event)

    @staticmethod
    def _check_cancelled(cancel_event: asyncio.Event | None) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise asyncio.CancelledError("retry sequence cancelled")
