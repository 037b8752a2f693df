"""Failure classification for the retry loop.

A predicate takes the exception raised by an attempt and answers whether
another attempt should be made. The default keeps the historical rule of the
dashboard API client: retry when no response was received, or when the server
answered with a 5xx status.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Callable, Optional

import aiohttp

from resilient.core.exceptions import ApiError, RetryCancelledError

RetryPredicate = Callable[[BaseException], bool]


def has_response(exc: BaseException) -> bool:
    """True when ``exc`` carries a response, whether or not its status is readable."""
    if isinstance(exc, ApiError):
        return exc.response.received
    if isinstance(exc, aiohttp.ClientResponseError):
        return True
    return getattr(exc, "response", None) is not None


def response_status(exc: BaseException) -> Optional[int]:
    """Return the HTTP-style status carried by ``exc``, or None when there is none to read.

    None covers both "no response" and "response without a usable status";
    use ``has_response`` to tell them apart.
    """
    if isinstance(exc, ApiError):
        return exc.status if exc.response.received else None
    if isinstance(exc, aiohttp.ClientResponseError):
        return exc.status or None

    response = getattr(exc, "response", None)
    if response is None:
        return None
    if isinstance(response, Mapping):
        status = response.get("status", response.get("status_code"))
    else:
        status = getattr(response, "status", None)
        if status is None:
            status = getattr(response, "status_code", None)
    try:
        status = int(status) if status is not None else None
    except (TypeError, ValueError):
        return None
    # 0 is what browser-style clients report for "never answered"
    return status or None


def default_is_retryable(exc: BaseException) -> bool:
    """Retry when there is no response or the response status is >= 500.

    A response whose status cannot be read is not retried.
    """
    if not has_response(exc):
        return True
    status = response_status(exc)
    return status is not None and status >= 500


def is_transport_error(exc: BaseException) -> bool:
    """True for connection and timeout failures that never produced a response."""
    if isinstance(exc, ApiError):
        return exc.status == 0
    return isinstance(
        exc,
        (
            ConnectionError,
            TimeoutError,
            asyncio.TimeoutError,
            aiohttp.ClientConnectionError,
            aiohttp.ServerTimeoutError,
        ),
    )


def strict_is_retryable(exc: BaseException) -> bool:
    """Like the default, but errors without any response concept are terminal.

    A ``ValueError`` raised by a bug in the operation is not retried here,
    whereas ``default_is_retryable`` would retry it.
    """
    if is_transport_error(exc):
        return True
    status = response_status(exc)
    return status is not None and status >= 500


def retry_on_status(*codes: int) -> RetryPredicate:
    """Build a predicate that retries only the given response statuses."""
    wanted = frozenset(codes)

    def _predicate(exc: BaseException) -> bool:
        return response_status(exc) in wanted

    _predicate.__name__ = f"retry_on_status{tuple(sorted(wanted))}"
    return _predicate


def any_of(*predicates: RetryPredicate) -> RetryPredicate:
    def _predicate(exc: BaseException) -> bool:
        return any(predicate(exc) for predicate in predicates)

    return _predicate


def never_on_cancel(predicate: RetryPredicate) -> RetryPredicate:
    """Wrap ``predicate`` so a cancellation error is never classified as retryable."""
    def _predicate(exc: BaseException) -> bool:
        if isinstance(exc, RetryCancelledError):
            return False
        return predicate(exc)

    return _predicate
