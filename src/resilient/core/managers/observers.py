"""Concrete observer implementations for retry events.

This module provides the observers shipped with the executor:
- Logging of scheduled retries and give-ups
- Adapting a plain ``on_retry`` callback to the observer protocol
- Notifying a group of observers while isolating their failures
"""

from typing import Iterable, Optional

from resilient.core.interfaces.logging import LoggingPort
from resilient.core.interfaces.observers import RetryCallback, RetryObserver
from resilient.core.settings import get_logger


class LoggingRetryObserver:
    """Routes retry diagnostics to a LoggingPort.

    Scheduled retries are warnings; a final give-up is logged as an error
    unless it came from cancellation, which is logged at info level.
    """

    def __init__(self, logger: Optional[LoggingPort] = None, label: str = "operation"):
        self._logger = logger
        self._label = label

    @property
    def logger(self) -> LoggingPort:
        return self._logger or get_logger()

    def on_retry(self, attempt_number: int, delay: float, error: BaseException) -> None:
        self.logger.warning(
            "[retry:%s] attempt %s failed (%s: %s), retrying in %.3fs",
            self._label,
            attempt_number,
            type(error).__name__,
            error,
            delay,
        )

    def on_give_up(self, attempt_number: int, error: BaseException, reason: str) -> None:
        if reason == "cancelled":
            self.logger.info(
                "[retry:%s] cancelled after %s attempt(s)", self._label, attempt_number
            )
            return
        self.logger.error(
            "[retry:%s] giving up after %s attempt(s) reason=%s error=%s: %s",
            self._label,
            attempt_number,
            reason,
            type(error).__name__,
            error,
        )


class CallbackRetryObserver:
    """Adapts an ``on_retry(attempt_number, delay, error)`` callable."""

    def __init__(self, callback: RetryCallback):
        self._callback = callback

    def on_retry(self, attempt_number: int, delay: float, error: BaseException) -> None:
        self._callback(attempt_number, delay, error)

    def on_give_up(self, attempt_number: int, error: BaseException, reason: str) -> None:
        pass


class ObserverGroup:
    """Fans events out to several observers.

    A failing observer is logged and skipped; it never changes the outcome
    of the retry loop.
    """

    def __init__(self, observers: Iterable[RetryObserver] = ()):
        self._observers = list(observers)

    def with_callback(self, callback: Optional[RetryCallback]) -> "ObserverGroup":
        if callback is None:
            return self
        return ObserverGroup([*self._observers, CallbackRetryObserver(callback)])

    def notify_retry(self, attempt_number: int, delay: float, error: BaseException) -> None:
        for observer in self._observers:
            try:
                observer.on_retry(attempt_number, delay, error)
            except Exception as exc:
                get_logger().error(
                    "[observer:error] on_retry failed observer=%s attempt=%s error=%s",
                    type(observer).__name__,
                    attempt_number,
                    exc,
                )

    def notify_give_up(self, attempt_number: int, error: BaseException, reason: str) -> None:
        for observer in self._observers:
            on_give_up = getattr(observer, "on_give_up", None)
            if on_give_up is None:
                continue
            try:
                on_give_up(attempt_number, error, reason)
            except Exception as exc:
                get_logger().error(
                    "[observer:error] on_give_up failed observer=%s attempt=%s error=%s",
                    type(observer).__name__,
                    attempt_number,
                    exc,
                )
