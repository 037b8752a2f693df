"""RetryExecutor: drives the attempt loop for a single async operation.

Per call:
1. Merge the call's overrides over the executor's default template.
2. Invoke the operation; return its value on the first success.
3. Classify a failure with the config's predicate.
4. Stop with the original error if it is terminal or the budget is spent.
5. Otherwise announce the retry to observers and sleep backoff + jitter.
"""

from __future__ import annotations

import asyncio
import random
import sys
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, TypeVar, Union

from resilient.core.cancellation import CancellationToken
from resilient.core.config import DEFAULT_RETRY_CONFIG, RetryConfig
from resilient.core.exceptions import RetryCancelledError
from resilient.core.interfaces.clock import RandomSource, SleepPort
from resilient.core.interfaces.observers import RetryCallback, RetryObserver
from resilient.core.logging_config import retry_attempt_var
from resilient.core.managers.observers import ObserverGroup
from resilient.core.models.attempt import AttemptState, ExecutorPhase
from resilient.core.settings import get_logger

T = TypeVar("T")

# same ceiling tenacity uses for wait_exponential
MAX_BACKOFF_DELAY = sys.maxsize / 2


def backoff_delay(config: RetryConfig, attempt_index: int) -> float:
    """Jitter-free delay in seconds after the failure of attempt ``attempt_index`` (0-based)."""
    if config.use_exponential_backoff:
        if config.base_delay == 0:
            return 0.0
        try:
            return min(config.base_delay * (2 ** attempt_index), MAX_BACKOFF_DELAY)
        except OverflowError:
            return MAX_BACKOFF_DELAY
    return config.base_delay


def compute_delay(
    config: RetryConfig, attempt_index: int, rng: RandomSource = random.random
) -> float:
    """Full sleep before attempt ``attempt_index + 1``: backoff plus uniform jitter in [0, max_jitter)."""
    return backoff_delay(config, attempt_index) + rng() * config.max_jitter


class RetryExecutor:
    """Re-attempts a failing async operation according to a RetryConfig.

    Attributes:
        defaults: Frozen template every call's overrides are merged over
    """

    def __init__(
        self,
        defaults: RetryConfig = DEFAULT_RETRY_CONFIG,
        sleep: SleepPort = asyncio.sleep,
        rng: RandomSource = random.random,
        observers: Optional[Iterable[RetryObserver]] = None,
    ) -> None:
        self.defaults = defaults
        self._sleep = sleep
        self._rng = rng
        self._observers = ObserverGroup(observers or [])

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        config: Optional[Union[RetryConfig, Mapping[str, Any]]] = None,
        *,
        cancel_token: Optional[CancellationToken] = None,
        on_retry: Optional[RetryCallback] = None,
    ) -> T:
        """Run ``operation`` until it succeeds, fails terminally or runs out of attempts.

        The error of the last attempt is raised unchanged.
        """
        policy = self.defaults.merged(config)
        observers = self._observers.with_callback(on_retry)
        state = AttemptState()
        total = policy.max_retries + 1

        while True:
            if cancel_token is not None and cancel_token.cancelled:
                self._cancel(state, observers, cancel_token)

            try:
                result = await self._invoke(operation, state.attempt_number, total)
            except RetryCancelledError as exc:
                # cancellation from inside the operation bypasses the predicate
                state.last_error = exc
                state.transition(ExecutorPhase.failed)
                observers.notify_give_up(state.attempt_number, exc, "cancelled")
                raise
            except Exception as exc:
                state.record_failure(exc)
            else:
                state.transition(ExecutorPhase.succeeded)
                if state.attempt:
                    get_logger().debug(
                        "[retry:execute] succeeded on attempt %s/%s", state.attempt_number, total
                    )
                return result

            error = state.last_error
            if not policy.is_retryable(error):
                state.transition(ExecutorPhase.failed)
                get_logger().debug(
                    "[retry:execute] non-retryable error on attempt %s/%s: %s",
                    state.attempt_number, total, type(error).__name__,
                )
                observers.notify_give_up(state.attempt_number, error, "not_retryable")
                raise error
            if state.attempt >= policy.max_retries:
                state.transition(ExecutorPhase.failed)
                get_logger().debug(
                    "[retry:execute] attempt budget exhausted after %s attempt(s)", total
                )
                observers.notify_give_up(state.attempt_number, error, "exhausted")
                raise error

            delay = compute_delay(policy, state.attempt, self._rng)
            state.transition(ExecutorPhase.sleeping)
            observers.notify_retry(state.attempt_number, delay, error)
            await self._backoff(delay, state, observers, cancel_token)
            state.transition(ExecutorPhase.attempting)

    async def _invoke(self, operation: Callable[[], Awaitable[T]], number: int, total: int) -> T:
        token = retry_attempt_var.set(f"{number}/{total}")
        try:
            return await operation()
        finally:
            retry_attempt_var.reset(token)

    async def _backoff(
        self,
        delay: float,
        state: AttemptState,
        observers: ObserverGroup,
        cancel_token: Optional[CancellationToken],
    ) -> None:
        if cancel_token is None:
            await self._sleep(delay)
            return

        sleeper = asyncio.ensure_future(self._sleep(delay))
        waiter = asyncio.ensure_future(cancel_token.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, waiter):
                if not task.done():
                    task.cancel()

        if cancel_token.cancelled:
            self._cancel(state, observers, cancel_token)
        # surface a failure of the injected sleep itself
        sleeper.result()

    def _cancel(
        self, state: AttemptState, observers: ObserverGroup, cancel_token: CancellationToken
    ) -> None:
        # attempts made so far; the loop is either before attempt N+1 or sleeping after attempt N
        made = state.attempt if state.phase == ExecutorPhase.attempting else state.attempt_number
        error = RetryCancelledError(cancel_token.reason, attempts=made)
        state.last_error = error
        state.transition(ExecutorPhase.failed)
        observers.notify_give_up(made, error, "cancelled")
        raise error


async def retry(
    operation: Callable[[], Awaitable[T]],
    retries: int = 3,
    delay: float = 1.0,
    sleep: SleepPort = asyncio.sleep,
) -> T:
    """Try ``operation`` up to ``retries + 1`` times with a constant ``delay`` in between.

    Every ``Exception`` is retried and no jitter is added.
    """
    executor = RetryExecutor(sleep=sleep)
    return await executor.execute(
        operation,
        {
            "max_retries": retries,
            "base_delay": delay,
            "use_exponential_backoff": False,
            "max_jitter": 0.0,
            "is_retryable": _always,
        },
    )


def _always(exc: BaseException) -> bool:
    return True
