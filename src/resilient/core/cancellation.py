"""Cooperative cancellation for the attempt loop.

A token is created by the caller, handed to ``execute()`` and fired from any
task on the same event loop. The executor checks it before each attempt and
races it against the backoff sleep; it never interrupts a running attempt.
"""

import asyncio
from typing import Optional

from resilient.core.exceptions import RetryCancelledError


class CancellationToken:
    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: Optional[str] = None) -> None:
        """Fire the token. Only the first reason is kept."""
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()

    def raise_if_cancelled(self, attempts: int = 0) -> None:
        if self._event.is_set():
            raise RetryCancelledError(self.reason, attempts=attempts)

    async def wait(self) -> None:
        await self._event.wait()
