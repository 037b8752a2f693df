from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol, TypeVar, Union

from resilient.core.cancellation import CancellationToken
from resilient.core.config import RetryConfig
from resilient.core.interfaces.observers import RetryCallback

T = TypeVar("T")


class RetryPort(Protocol):
    """Abstract retry interface for async operations.

    Implementations re-attempt a failing operation according to a RetryConfig.
    The contract keeps callers decoupled from a specific backend (native loop or tenacity).
    """
    defaults: RetryConfig

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        config: Optional[Union[RetryConfig, Mapping[str, Any]]] = None,
        *,
        cancel_token: Optional[CancellationToken] = None,
        on_retry: Optional[RetryCallback] = None,
    ) -> T:  # pragma: no cover - protocol
        """Execute an async zero-argument callable with retry semantics.

        Args:
            operation: Async callable returning a result; must be safe to call again.
            config: Overrides merged over the implementation's default template.
            cancel_token: Checked before each attempt and while sleeping.
            on_retry: Called as on_retry(attempt_number, delay, error) before each backoff sleep.
        Returns:
            Result of the first successful invocation.
        Raises:
            The original exception of the last attempt when it is not retryable or
            the budget is exhausted; RetryCancelledError when cancelled.
        """
        ...
