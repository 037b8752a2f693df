import pytest
import aiohttp
from aioresponses import aioresponses

from resilient.core.managers.retry_executor import RetryExecutor

"""
Integration tests: RetryExecutor around real aiohttp requests.

aioresponses intercepts the session so upstream behaviour can be scripted.
Expected outcomes:
- 5xx answers are retried and the first 2xx body is returned.
- 4xx answers are raised at once as aiohttp.ClientResponseError.
- Connection errors are retried until the budget is spent, then raised as-is.
"""


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def executor(sleep):
    return RetryExecutor(sleep=sleep, rng=lambda: 0.0)


def fetch_json(session: aiohttp.ClientSession, url: str):
    async def _fetch():
        async with session.get(url) as response:
            response.raise_for_status()
            return await response.json()

    return _fetch


@pytest.mark.asyncio
async def test_server_errors_retried_until_success(executor, sleep):
    url = "http://example.test/api/courses"
    with aioresponses() as m:
        m.get(url, status=503)
        m.get(url, status=502)
        m.get(url, payload={"courses": [1, 2]}, status=200)

        async with aiohttp.ClientSession() as session:
            data = await executor.execute(fetch_json(session, url), {"base_delay": 0.1})

    assert data == {"courses": [1, 2]}
    assert sleep.delays == [pytest.approx(0.1), pytest.approx(0.2)]


@pytest.mark.asyncio
async def test_client_error_not_retried(executor, sleep):
    url = "http://example.test/api/coupons/unknown"
    with aioresponses() as m:
        m.get(url, status=404)
        m.get(url, payload={"never": "reached"}, status=200)

        async with aiohttp.ClientSession() as session:
            with pytest.raises(aiohttp.ClientResponseError) as excinfo:
                await executor.execute(fetch_json(session, url))

    assert excinfo.value.status == 404
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_connection_error_exhausts_budget(executor, sleep):
    url = "http://example.test/api/notifications"
    with aioresponses() as m:
        for _ in range(3):
            m.get(url, exception=aiohttp.ClientConnectionError("network unreachable"))

        async with aiohttp.ClientSession() as session:
            with pytest.raises(aiohttp.ClientConnectionError):
                await executor.execute(fetch_json(session, url), {"max_retries": 2})

    assert len(sleep.delays) == 2
