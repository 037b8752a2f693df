from typing import Any, Optional
from resilient.core.models.error_response import ErrorResponse


class ApiError(Exception):
    """HTTP-style failure raised by operations handed to the executor.

    The retry predicates read ``response.status``; a status of 0 means the
    request never got a response.
    """
    def __init__(
        self,
        message: str,
        status: int = 0,
        data: Optional[Any] = None,
        endpoint: str = "",
        code: str = "UNKNOWN_ERROR",
    ):
        self.message = message
        self.response = ErrorResponse(
            status=status,
            title=message,
            endpoint=endpoint,
            code=code,
            data=data,
        )
        super().__init__(message)

    @property
    def status(self) -> int:
        return self.response.status


# Executor-specific exceptions

class RetryCancelledError(Exception):
    """Raised when a cancellation token fires before an attempt or during backoff.

    Never passed to the retry predicate.

    Attributes:
        reason: Optional text supplied by whoever cancelled
        attempts: Number of attempts made before cancellation was observed
    """
    def __init__(self, reason: Optional[str] = None, attempts: int = 0):
        self.reason = reason
        self.attempts = attempts
        message = "Retry cancelled"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class InvalidStateTransition(RuntimeError):
    """Raised when the attempt loop tries an illegal phase change."""
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Illegal retry phase transition {current} -> {target}")
