"""Tests for HttpxTransport using respx mocks."""

import json

import httpx
import pytest
import respx

from quickrequest.core.cancellation import CancellationToken, RequestCancelled
from quickrequest.transports.base import TransportRequest
from quickrequest.transports.httpx_transport import HttpxResponse, HttpxTransport


def make_request(method="GET", url="https://api.test/items", headers=None, body=None):
    return TransportRequest(method=method, url=url, headers=headers or {}, body=body)


class TestSend:

    @pytest.mark.asyncio
    async def test_get_json(self):
        transport = HttpxTransport()
        with respx.mock:
            route = respx.get("https://api.test/items").mock(
                return_value=httpx.Response(200, json={"a": 1})
            )
            response = await transport.send(make_request(headers={"X-App": "1"}), CancellationToken())

            assert isinstance(response, HttpxResponse)
            assert response.status == 200
            assert response.ok
            assert response.headers.get("Content-Type") == "application/json"
            assert await response.json() == {"a": 1}
            await response.aclose()

        assert route.calls.last.request.headers["X-App"] == "1"
        await transport.aclose()

    @pytest.mark.asyncio
    async def test_status_and_reason(self):
        transport = HttpxTransport()
        with respx.mock:
            respx.get("https://api.test/items").mock(return_value=httpx.Response(503, text="down"))
            response = await transport.send(make_request(), CancellationToken())

        assert response.status == 503
        assert response.status_text == "Service Unavailable"
        assert not response.ok
        assert await response.text() == "down"
        await transport.aclose()

    @pytest.mark.asyncio
    async def test_body_sent(self):
        transport = HttpxTransport()
        with respx.mock:
            route = respx.post("https://api.test/items").mock(return_value=httpx.Response(201))
            await transport.send(
                make_request("POST", body='{"name":"x"}', headers={"Content-Type": "application/json"}),
                CancellationToken(),
            )

        sent = route.calls.last.request
        assert json.loads(sent.content) == {"name": "x"}
        await transport.aclose()

    @pytest.mark.asyncio
    async def test_streamed_chunks(self):
        transport = HttpxTransport()
        with respx.mock:
            respx.get("https://api.test/file").mock(return_value=httpx.Response(200, content=b"x" * 1000))
            response = await transport.send(make_request(url="https://api.test/file"), CancellationToken())
            data = b"".join([chunk async for chunk in response.aiter_bytes()])

        assert data == b"x" * 1000
        await transport.aclose()

    @pytest.mark.asyncio
    async def test_connect_error_raised_raw(self):
        transport = HttpxTransport()
        with respx.mock:
            respx.get("https://api.test/items").mock(side_effect=httpx.ConnectError("refused"))
            with pytest.raises(httpx.ConnectError):
                await transport.send(make_request(), CancellationToken())
        await transport.aclose()

    @pytest.mark.asyncio
    async def test_cancelled_token_short_circuits(self):
        token = CancellationToken()
        token.cancel("user")
        with pytest.raises(RequestCancelled):
            await HttpxTransport().send(make_request(), token)


class TestUpload:

    @pytest.mark.asyncio
    async def test_upload_reports_chunks(self):
        received = {}

        async def handler(request: httpx.Request) -> httpx.Response:
            received["body"] = await request.aread()
            received["length"] = request.headers.get("Content-Length")
            return httpx.Response(200, json={"ok": True})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        transport = HttpxTransport(client)
        progress = []

        async def on_chunk(loaded, total):
            progress.append((loaded, total))

        payload = b"z" * 150_000
        response = await transport.send_with_upload_progress(
            make_request("POST", body=payload), CancellationToken(), on_chunk,
        )

        assert response.status == 200
        assert received["body"] == payload
        assert received["length"] == "150000"
        assert progress == [(65536, 150000), (131072, 150000), (150000, 150000)]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_unsized_body_falls_back(self):
        async def handler(request):
            return httpx.Response(200)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        progress = []

        async def on_chunk(loaded, total):
            progress.append((loaded, total))

        await HttpxTransport(client).send_with_upload_progress(
            make_request("POST", body={"field": "value"}), CancellationToken(), on_chunk,
        )

        assert progress == [(0, 0)]
        await client.aclose()


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_lazy_client(self):
        transport = HttpxTransport()
        assert transport._client is None
        assert transport._get_client() is transport._get_client()
        await transport.aclose()
        assert transport._client is None

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self):
        client = httpx.AsyncClient()
        transport = HttpxTransport(client)
        await transport.aclose()
        assert not client.is_closed
        await client.aclose()
