import asyncio
import random
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, TypeVar, Union

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)
from tenacity.wait import wait_base

from resilient.core.cancellation import CancellationToken
from resilient.core.config import DEFAULT_RETRY_CONFIG, RetryConfig
from resilient.core.exceptions import RetryCancelledError
from resilient.core.interfaces.clock import RandomSource, SleepPort
from resilient.core.interfaces.observers import RetryCallback, RetryObserver
from resilient.core.logging_config import retry_attempt_var
from resilient.core.managers.observers import ObserverGroup
from resilient.core.retry_predicates import never_on_cancel

T = TypeVar("T")


class wait_jitter(wait_base):
    """Uniform jitter in [0, max_jitter) drawn from an injectable random source."""

    def __init__(self, max_jitter: float, rng: RandomSource = random.random) -> None:
        self.max_jitter = max_jitter
        self.rng = rng

    def __call__(self, retry_state: RetryCallState) -> float:
        return self.rng() * self.max_jitter


class TenacityRetryAdapter:
    """Tenacity-based retry adapter implementing RetryPort.

    Mirrors RetryExecutor: same config model, delay bounds, predicate handling,
    cancellation and observer events, with tenacity running the loop.
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

    def _wait(self, policy: RetryConfig) -> wait_base:
        if policy.use_exponential_backoff:
            # multiplier * 2 ** (attempt_number - 1), attempt_number being 1-based
            backoff = wait_exponential(multiplier=policy.base_delay, exp_base=2, min=0)
        else:
            backoff = wait_fixed(policy.base_delay)
        return backoff + wait_jitter(policy.max_jitter, self._rng)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        config: Optional[Union[RetryConfig, Mapping[str, Any]]] = None,
        *,
        cancel_token: Optional[CancellationToken] = None,
        on_retry: Optional[RetryCallback] = None,
    ) -> T:
        policy = self.defaults.merged(config)
        observers = self._observers.with_callback(on_retry)
        total = policy.max_retries + 1
        made = 0
        classify = never_on_cancel(policy.is_retryable)
        last_retryable = True

        def _should_retry(exc: BaseException) -> bool:
            nonlocal last_retryable
            last_retryable = classify(exc)
            return last_retryable

        def _before_sleep(retry_state: RetryCallState) -> None:
            if retry_state.outcome is None or retry_state.next_action is None:
                return
            observers.notify_retry(
                retry_state.attempt_number,
                retry_state.next_action.sleep,
                retry_state.outcome.exception(),
            )

        async def _sleep(delay: float) -> None:
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
            cancel_token.raise_if_cancelled(attempts=made)
            sleeper.result()

        retrying = AsyncRetrying(
            stop=stop_after_attempt(total),
            wait=self._wait(policy),
            retry=retry_if_exception(_should_retry),
            reraise=True,
            before_sleep=_before_sleep,
            sleep=_sleep,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    if cancel_token is not None:
                        cancel_token.raise_if_cancelled(attempts=made)
                    made = attempt.retry_state.attempt_number
                    token = retry_attempt_var.set(f"{made}/{total}")
                    try:
                        return await operation()
                    finally:
                        retry_attempt_var.reset(token)
        except RetryCancelledError as exc:
            observers.notify_give_up(exc.attempts, exc, "cancelled")
            raise
        except Exception as exc:
            reason = "exhausted" if last_retryable else "not_retryable"
            observers.notify_give_up(made, exc, reason)
            raise
