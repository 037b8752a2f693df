from typing import Awaitable, Callable, Protocol


class SleepPort(Protocol):
    """Asynchronous sleep used between attempts (``asyncio.sleep`` in production)."""

    def __call__(self, delay: float) -> Awaitable[None]:  # pragma: no cover - protocol
        ...


# Returns a float in [0, 1); random.random in production
RandomSource = Callable[[], float]
