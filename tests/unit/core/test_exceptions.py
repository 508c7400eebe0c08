"""Тесты иерархии HttpError и нормализации ошибок."""

import httpx
import pytest

from quickrequest.core.cancellation import TIMEOUT_REASON, RequestCancelled
from quickrequest.core.error_handler import ErrorHandler, normalize_error
from quickrequest.core.exceptions import (
    AbortError,
    HttpError,
    HttpStatusError,
    NetworkError,
    TimeoutError,
)


class TestTaxonomy:

    def test_timeout_is_abort(self):
        error = TimeoutError(url="https://api.test/x")
        assert isinstance(error, AbortError)
        assert error.is_abort and error.is_timeout
        assert error.status == 0
        assert error.retryable

    def test_abort_not_retryable(self):
        error = AbortError()
        assert error.is_abort and not error.is_timeout
        assert not error.retryable

    def test_network_error(self):
        error = NetworkError("connection refused")
        assert error.is_network
        assert error.status == 0
        assert error.retryable
        assert "connection refused" in str(error)

    @pytest.mark.parametrize("status, retryable", [
        (500, True),
        (503, True),
        (599, True),
        (429, True),
        (400, False),
        (404, False),
        (499, False),
    ])
    def test_status_retryability(self, status, retryable):
        assert HttpStatusError(status).retryable is retryable

    def test_status_error_fields(self):
        response = object()
        error = HttpStatusError(404, "Not Found", response, response_text="missing")
        assert error.status == 404
        assert error.status_text == "Not Found"
        assert error.response is response
        assert error.response_text == "missing"
        assert "404" in str(error)
        assert not (error.is_abort or error.is_timeout or error.is_network)

    def test_all_are_http_errors(self):
        for error in (AbortError(), TimeoutError(), NetworkError(), HttpStatusError(500)):
            assert isinstance(error, HttpError)


class TestNormalize:

    def test_http_error_passthrough(self):
        error = HttpStatusError(503)
        assert normalize_error(error, had_caller_signal=False) is error

    def test_idempotent(self):
        first = normalize_error(ValueError("boom"), False)
        assert normalize_error(first, False) is first

    def test_timer_cancel_without_signal_is_timeout(self):
        error = normalize_error(RequestCancelled(TIMEOUT_REASON), had_caller_signal=False)
        assert isinstance(error, TimeoutError)

    def test_timer_cancel_with_signal_is_abort(self):
        error = normalize_error(RequestCancelled(TIMEOUT_REASON), had_caller_signal=True)
        assert type(error) is AbortError

    def test_caller_cancel_is_abort(self):
        error = normalize_error(RequestCancelled("user"), had_caller_signal=True)
        assert type(error) is AbortError
        assert not error.is_timeout

    def test_transport_error_is_network(self):
        raw = httpx.ConnectError("connection refused")
        error = normalize_error(raw, False, "https://api.test")
        assert isinstance(error, NetworkError)
        assert error.message == "connection refused"
        assert error.__cause__ is raw

    def test_empty_message_gets_default(self):
        error = normalize_error(RuntimeError(), False)
        assert isinstance(error, NetworkError)
        assert error.message == "Network failure"

    def test_is_retryable_error(self):
        assert ErrorHandler.is_retryable_error(HttpStatusError(502))
        assert not ErrorHandler.is_retryable_error(ValueError("x"))
