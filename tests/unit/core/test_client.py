"""Тесты QuickRequestClient."""

import asyncio
import json
import logging

import pytest

from quickrequest import create_client
from quickrequest.core.cancellation import CancellationToken
from quickrequest.core.client import ClientClosedError, QuickRequestClient
from quickrequest.core.config import ClientConfig, RequestOptions, RetryPolicy
from quickrequest.core.exceptions import (
    AbortError,
    HttpStatusError,
    NetworkError,
    TimeoutError,
)
from quickrequest.transports.httpx_transport import HttpxTransport
from fakes import FakeClock, FakeTransport, SleepRecorder, json_response


def make_client(transport, **kwargs):
    kwargs.setdefault("sleep", SleepRecorder())
    return QuickRequestClient("https://api.test", transport=transport, **kwargs)


class TestClientInit:

    def test_init_with_base_url(self):
        client = QuickRequestClient("https://api.example.com")
        assert client.base_url == "https://api.example.com"
        assert isinstance(client.transport, HttpxTransport)

    def test_init_with_config(self):
        config = ClientConfig.create(base_url="https://api.test", timeout_ms=500)
        client = QuickRequestClient(config=config, timeout_ms=9999)
        assert client.config is config
        assert client.config.timeout_ms == 500

    def test_create_client(self):
        client = create_client("https://api.test", cache_ttl_ms=1000, retry={"max_attempts": 2})
        assert client.config.cache_enabled
        assert client.config.retry == RetryPolicy(max_attempts=2)

    def test_repr(self):
        assert "https://api.test" in repr(make_client(FakeTransport()))


class TestVerbs:

    @pytest.mark.asyncio
    async def test_get_resolves_url_and_query(self):
        transport = FakeTransport(json_response({"id": 5}))
        client = make_client(transport)

        data = await client.get("/items", query={"id": "5"})

        assert data == {"id": 5}
        assert transport.calls[0].url == "https://api.test/items?id=5"

    @pytest.mark.asyncio
    async def test_absolute_url_bypasses_base(self):
        transport = FakeTransport(json_response({}))
        await make_client(transport).get("http://other.test/x")
        assert transport.calls[0].url == "http://other.test/x"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("verb", ["post", "put", "patch"])
    async def test_body_verbs(self, verb):
        transport = FakeTransport(json_response({"ok": True}))
        client = make_client(transport)

        await getattr(client, verb)("/items", {"name": "x"}, headers={"X-Req": "1"})

        request = transport.calls[0]
        assert request.method == verb.upper()
        assert json.loads(request.body) == {"name": "x"}
        assert request.headers["X-Req"] == "1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("verb", ["delete", "head", "options"])
    async def test_bodyless_verbs(self, verb):
        transport = FakeTransport(json_response(None))
        await getattr(make_client(transport), verb)("/items/1")
        assert transport.calls[0].method == verb.upper()

    @pytest.mark.asyncio
    async def test_request_with_options_object(self):
        transport = FakeTransport(json_response({}))
        client = make_client(transport)

        await client.request(RequestOptions(url="/a"), method="DELETE")

        assert transport.calls[0].method == "DELETE"
        assert transport.calls[0].url == "https://api.test/a"


class TestHooks:

    @pytest.mark.asyncio
    async def test_before_request_runs_once_per_call(self):
        calls = []

        def before(options):
            calls.append(options.url)
            options.headers = {"Authorization": "Bearer t"}
            return options

        transport = FakeTransport(json_response({}, status=503), json_response({"ok": True}))
        client = make_client(transport, before_request=before, retry={"max_attempts": 3})

        assert await client.get("/items") == {"ok": True}
        assert calls == ["/items"]
        assert all(r.headers["Authorization"] == "Bearer t" for r in transport.calls)

    @pytest.mark.asyncio
    async def test_before_request_returning_none_keeps_options(self):
        transport = FakeTransport(json_response({}))
        client = make_client(transport, before_request=lambda options: None)

        await client.get("/items")
        assert transport.calls[0].url == "https://api.test/items"

    @pytest.mark.asyncio
    async def test_before_request_receives_copy(self):
        original_headers = {"X-A": "1"}

        def before(options):
            options.headers["X-A"] = "changed"

        transport = FakeTransport(json_response({}))
        await make_client(transport, before_request=before).get("/x", headers=original_headers)

        assert original_headers == {"X-A": "1"}
        assert transport.calls[0].headers["X-A"] == "changed"

    @pytest.mark.asyncio
    async def test_async_before_request(self):
        async def before(options):
            return RequestOptions(method=options.method, url="/rewritten")

        transport = FakeTransport(json_response({}))
        await make_client(transport, before_request=before).get("/original")
        assert transport.calls[0].url == "https://api.test/rewritten"

    @pytest.mark.asyncio
    async def test_before_request_error_propagates(self):
        def before(options):
            raise PermissionError("no token")

        transport = FakeTransport()
        with pytest.raises(PermissionError):
            await make_client(transport, before_request=before).get("/x")
        assert transport.calls == []


class TestErrors:

    @pytest.mark.asyncio
    async def test_timeout_error(self):
        client = make_client(FakeTransport(FakeTransport.HANG), timeout_ms=50)

        with pytest.raises(TimeoutError) as exc_info:
            await client.get("/slow")
        assert exc_info.value.is_abort and exc_info.value.is_timeout
        assert exc_info.value.status == 0

    @pytest.mark.asyncio
    async def test_caller_abort(self):
        client = make_client(FakeTransport(FakeTransport.HANG))
        signal = CancellationToken()
        asyncio.get_running_loop().call_later(0.02, signal.cancel)

        with pytest.raises(AbortError) as exc_info:
            await client.get("/slow", signal=signal)
        assert not exc_info.value.is_timeout

    @pytest.mark.asyncio
    async def test_network_error(self):
        client = make_client(FakeTransport(ConnectionRefusedError("refused")))
        with pytest.raises(NetworkError) as exc_info:
            await client.get("/x")
        assert exc_info.value.status == 0

    @pytest.mark.asyncio
    async def test_status_error(self):
        client = make_client(FakeTransport(json_response({}, status=404)))
        with pytest.raises(HttpStatusError) as exc_info:
            await client.get("/x")
        assert exc_info.value.status == 404


class TestRetry:

    @pytest.mark.asyncio
    async def test_retry_5xx_with_backoff(self):
        sleep = SleepRecorder()
        transport = FakeTransport(
            json_response({}, status=503),
            json_response({}, status=503),
            json_response({"ok": True}),
        )
        client = make_client(transport, sleep=sleep)

        data = await client.get("/items", retry={"max_attempts": 3, "base_delay_ms": 800})

        assert data == {"ok": True}
        assert len(transport.calls) == 3
        assert sleep.delays_ms == [800, 1600]

    @pytest.mark.asyncio
    async def test_client_default_retry_policy(self):
        transport = FakeTransport(json_response({}, status=500), json_response({"ok": True}))
        client = make_client(transport, retry=RetryPolicy(max_attempts=2, base_delay_ms=1))
        assert await client.get("/x") == {"ok": True}

    @pytest.mark.asyncio
    async def test_404_not_retried(self):
        transport = FakeTransport(json_response({}, status=404), json_response({"ok": True}))
        client = make_client(transport)

        with pytest.raises(HttpStatusError):
            await client.get("/x", retry={"max_attempts": 5})
        assert len(transport.calls) == 1

    @pytest.mark.asyncio
    async def test_zero_max_attempts_runs_once(self):
        transport = FakeTransport(json_response({"ok": True}))
        client = make_client(transport)

        assert await client.get("/x", retry={"max_attempts": 0}) == {"ok": True}
        assert len(transport.calls) == 1

    @pytest.mark.asyncio
    async def test_zero_max_attempts_failure_not_retried(self):
        sleep = SleepRecorder()
        transport = FakeTransport(json_response({}, status=503), json_response({"ok": True}))
        client = make_client(transport, sleep=sleep)

        with pytest.raises(HttpStatusError) as exc_info:
            await client.get("/x", retry={"max_attempts": 0})
        assert exc_info.value.status == 503
        assert len(transport.calls) == 1
        assert sleep.delays_ms == []

    @pytest.mark.asyncio
    async def test_timeout_retried(self):
        transport = FakeTransport(FakeTransport.HANG, json_response({"ok": True}))
        client = make_client(transport, timeout_ms=20)

        assert await client.get("/x", retry={"max_attempts": 2}) == {"ok": True}
        assert len(transport.calls) == 2


class TestCacheControl:

    @pytest.mark.asyncio
    async def test_get_cached(self):
        transport = FakeTransport(json_response({"v": 1}), json_response({"v": 2}))
        client = make_client(transport, cache_ttl_ms=1000, clock=FakeClock())

        assert await client.get("/items") == {"v": 1}
        assert await client.get("/items") == {"v": 1}
        assert len(transport.calls) == 1

    @pytest.mark.asyncio
    async def test_clear_cache(self):
        transport = FakeTransport(json_response({"v": 1}), json_response({"v": 2}))
        client = make_client(transport, cache_ttl_ms=1000)

        await client.get("/items")
        client.clear_cache()
        assert len(client.cache) == 0
        assert await client.get("/items") == {"v": 2}


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_context_manager_closes_owned_transport(self):
        async with QuickRequestClient("https://api.test") as client:
            transport = client.transport
        assert client.closed
        assert transport._client is None

    @pytest.mark.asyncio
    async def test_injected_transport_not_closed(self):
        transport = FakeTransport()
        client = make_client(transport)
        await client.close()
        await client.close()
        assert not transport.closed

    @pytest.mark.asyncio
    async def test_request_after_close(self):
        client = make_client(FakeTransport())
        await client.close()
        with pytest.raises(ClientClosedError):
            await client.get("/x")


class TestLogging:

    @pytest.mark.asyncio
    async def test_lifecycle_records(self, logging_config, caplog):
        client = make_client(FakeTransport(json_response({})), logging=logging_config)
        client._logger.logger.propagate = True
        try:
            with caplog.at_level(logging.INFO, logger=client._logger.name):
                await client.get("/items", query={"token": "secret"})
        finally:
            await client.close()

        records = [r for r in caplog.records if r.name == client._logger.name]
        assert [r.getMessage() for r in records] == ["Request started", "Request completed"]
        started, completed = records
        assert completed.method == "GET"
        assert completed.attempt == 1
        assert "secret" not in completed.url
        assert completed.correlation_id
        assert completed.correlation_id == started.correlation_id

    @pytest.mark.asyncio
    async def test_failure_record(self, logging_config, caplog):
        client = make_client(FakeTransport(json_response({}, status=500)), logging=logging_config)
        client._logger.logger.propagate = True
        try:
            with caplog.at_level(logging.INFO, logger=client._logger.name):
                with pytest.raises(HttpStatusError):
                    await client.get("/items")
        finally:
            await client.close()

        failed = [r for r in caplog.records if r.getMessage() == "Request failed"][0]
        assert failed.levelno == logging.ERROR
        assert failed.status == 500
        assert failed.error == "HttpStatusError"
        assert failed.correlation_id

    @pytest.mark.asyncio
    async def test_correlation_id_differs_per_request(self, logging_config, caplog):
        client = make_client(FakeTransport(json_response({})), logging=logging_config)
        client._logger.logger.propagate = True
        try:
            with caplog.at_level(logging.INFO, logger=client._logger.name):
                await client.get("/a")
                await client.get("/b")
        finally:
            await client.close()

        completed = [r for r in caplog.records if r.getMessage() == "Request completed"]
        assert len(completed) == 2
        assert completed[0].correlation_id != completed[1].correlation_id

    @pytest.mark.asyncio
    async def test_clients_keep_separate_handlers(self, logging_config):
        first = make_client(FakeTransport(json_response({})), logging=logging_config)
        second = make_client(FakeTransport(json_response({})), logging=logging_config)
        try:
            assert first._logger.name != second._logger.name
            assert first._logger.logger.handlers

            await second.close()

            assert first._logger.logger.handlers
            assert await first.get("/x") == {}
        finally:
            await first.close()
            await second.close()
        assert first._logger.logger.handlers == []
