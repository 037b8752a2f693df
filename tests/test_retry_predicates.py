"""Tests for failure classification.

Expected outcomes:
- No response at all (network failure, status 0, plain exceptions) is retryable
  under the default predicate.
- 5xx responses are retryable, 4xx responses are terminal.
- The strict predicate only retries transport failures and 5xx.
"""

import asyncio
from types import SimpleNamespace

import aiohttp
import pytest

from resilient.core.exceptions import ApiError, RetryCancelledError
from resilient.core.retry_predicates import (
    any_of,
    default_is_retryable,
    has_response,
    is_transport_error,
    never_on_cancel,
    response_status,
    retry_on_status,
    strict_is_retryable,
)


def client_response_error(status: int) -> aiohttp.ClientResponseError:
    request_info = aiohttp.RequestInfo(
        url=None, method="GET", headers=None, real_url=None
    )
    return aiohttp.ClientResponseError(request_info, (), status=status, message="error")


class ErrorWithResponse(Exception):
    def __init__(self, response):
        super().__init__("upstream")
        self.response = response


class TestResponseStatus:
    def test_api_error_status(self):
        assert response_status(ApiError("Bad Gateway", status=502)) == 502

    def test_api_error_without_response(self):
        assert response_status(ApiError("Network Error", status=0)) is None

    def test_aiohttp_client_response_error(self):
        assert response_status(client_response_error(429)) == 429

    def test_response_object_with_status_code(self):
        exc = ErrorWithResponse(SimpleNamespace(status_code=503))
        assert response_status(exc) == 503

    def test_response_mapping(self):
        assert response_status(ErrorWithResponse({"status": 418})) == 418

    def test_response_none(self):
        assert response_status(ErrorWithResponse(None)) is None

    def test_unparseable_status(self):
        assert response_status(ErrorWithResponse({"status": "n/a"})) is None

    def test_has_response(self):
        assert has_response(ApiError("Not Found", status=404)) is True
        assert has_response(ApiError("Network Error", status=0)) is False
        assert has_response(client_response_error(503)) is True
        assert has_response(ErrorWithResponse(SimpleNamespace())) is True
        assert has_response(ErrorWithResponse(None)) is False
        assert has_response(ConnectionError()) is False

    def test_plain_exception(self):
        assert response_status(ValueError("x")) is None


class TestDefaultPredicate:
    @pytest.mark.parametrize("status", [500, 502, 503, 504, 599])
    def test_server_errors_are_retryable(self, status):
        assert default_is_retryable(ApiError("server", status=status)) is True

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 409, 422, 429])
    def test_client_errors_are_terminal(self, status):
        assert default_is_retryable(ApiError("client", status=status)) is False

    def test_no_response_is_retryable(self):
        assert default_is_retryable(ApiError("network unreachable", status=0)) is True
        assert default_is_retryable(ConnectionRefusedError()) is True

    def test_response_without_readable_status_is_terminal(self):
        class OpaqueResponseError(Exception):
            response = object()

        assert default_is_retryable(OpaqueResponseError()) is False
        assert default_is_retryable(ErrorWithResponse({"status": 0})) is False
        assert default_is_retryable(ErrorWithResponse({"status": "n/a"})) is False

    def test_absent_response_attribute_value_is_retryable(self):
        assert default_is_retryable(ErrorWithResponse(None)) is True
        assert default_is_retryable(ErrorWithResponse({"status": 502})) is True

    def test_error_without_response_concept_is_retryable(self):
        # kept for compatibility; strict_is_retryable treats these as terminal
        assert default_is_retryable(ValueError("malformed")) is True

    def test_aiohttp_errors(self):
        assert default_is_retryable(client_response_error(503)) is True
        assert default_is_retryable(client_response_error(404)) is False
        assert default_is_retryable(aiohttp.ClientConnectionError("refused")) is True


class TestStrictPredicate:
    def test_transport_errors(self):
        assert is_transport_error(asyncio.TimeoutError()) is True
        assert is_transport_error(aiohttp.ServerDisconnectedError()) is True
        assert is_transport_error(ApiError("offline", status=0)) is True
        assert is_transport_error(ApiError("server", status=500)) is False

    def test_programming_errors_are_terminal(self):
        assert strict_is_retryable(ValueError("malformed")) is False
        assert strict_is_retryable(TypeError("bug")) is False

    def test_server_errors_still_retried(self):
        assert strict_is_retryable(ApiError("server", status=502)) is True
        assert strict_is_retryable(ConnectionResetError()) is True
        assert strict_is_retryable(ApiError("client", status=400)) is False


class TestComposers:
    def test_retry_on_status(self):
        predicate = retry_on_status(429, 503)
        assert predicate(ApiError("slow down", status=429)) is True
        assert predicate(ApiError("down", status=503)) is True
        assert predicate(ApiError("boom", status=500)) is False
        assert predicate(ConnectionError()) is False

    def test_any_of(self):
        predicate = any_of(retry_on_status(429), default_is_retryable)
        assert predicate(ApiError("slow down", status=429)) is True
        assert predicate(ApiError("gone", status=410)) is False

    def test_never_on_cancel(self):
        predicate = never_on_cancel(lambda exc: True)
        assert predicate(RetryCancelledError()) is False
        assert predicate(ValueError()) is True
