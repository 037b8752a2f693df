"""Observer protocols for retry events.

The executor never writes diagnostics itself: every scheduled retry is
announced to observers, which decide where the event goes (logs, metrics,
a test double). This keeps the attempt loop free of side effects.
"""

from typing import Callable, Protocol


RetryCallback = Callable[[int, float, BaseException], None]


class RetryObserver(Protocol):
    """Observer protocol for the attempt loop.

    - on_retry: before each backoff sleep
    - on_give_up: once, when the call ends with an error

    Observers may be shared between concurrent ``execute()`` calls, so they
    should be stateless or tolerate interleaved events.
    """

    def on_retry(self, attempt_number: int, delay: float, error: BaseException) -> None:
        """Called before sleeping ahead of the next attempt.

        Args:
            attempt_number: 1-based number of the attempt that just failed
            delay: Seconds the executor is about to sleep (backoff plus jitter)
            error: The failure that triggered the retry
        """
        ...

    def on_give_up(self, attempt_number: int, error: BaseException, reason: str) -> None:
        """Called when the call raises instead of retrying.

        Args:
            attempt_number: 1-based number of the last attempt made
            error: The exception propagated to the caller
            reason: "not_retryable", "exhausted" or "cancelled"
        """
        ...
