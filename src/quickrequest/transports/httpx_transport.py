# src/quickrequest/transports/httpx_transport.py
"""
Транспорт на базе httpx.

Ответы читаются потоком (stream=True), чтобы исполнитель мог сообщать
прогресс загрузки. Собственные таймауты httpx по умолчанию выключены:
дедлайн попытки задаёт таймер исполнителя.
"""

from typing import Any, AsyncIterator, Dict, Mapping, Optional, Union

import httpx

from ..core.cancellation import CancellationToken
from ..core.utils import body_as_bytes
from .base import Transport, TransportRequest, TransportResponse, UploadChunkCallback

# Размер chunk при отправке тела с прогрессом
UPLOAD_CHUNK_SIZE = 64 * 1024


class HttpxResponse(TransportResponse):
    """Обёртка над потоковым httpx.Response."""

    def __init__(self, response: httpx.Response):
        self.raw = response
        self.status = response.status_code
        self.status_text = response.reason_phrase
        self.headers = response.headers

    async def json(self) -> Any:
        await self.raw.aread()
        return self.raw.json()

    async def text(self) -> str:
        await self.raw.aread()
        return self.raw.text

    def aiter_bytes(self) -> AsyncIterator[bytes]:
        return self.raw.aiter_bytes()

    async def aclose(self) -> None:
        await self.raw.aclose()


class HttpxTransport(Transport):
    """
    Транспорт через httpx.AsyncClient.

    Args:
        client: Готовый httpx.AsyncClient (не закрывается транспортом)
        timeout: Таймауты httpx (None = выключены)
        verify_ssl: Проверять SSL сертификаты
        **client_kwargs: Дополнительные параметры httpx.AsyncClient

    Example:
        >>> transport = HttpxTransport(verify_ssl=False)
        >>> client = QuickRequestClient("https://api.example.com", transport=transport)
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        timeout: Union[httpx.Timeout, float, None] = None,
        verify_ssl: bool = True,
        **client_kwargs: Any,
    ):
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._verify_ssl = verify_ssl
        self._client_kwargs = client_kwargs

    def _get_client(self) -> httpx.AsyncClient:
        """Получить или лениво создать httpx клиент."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                verify=self._verify_ssl,
                **self._client_kwargs,
            )
        return self._client

    def _build_request(
        self,
        request: TransportRequest,
        content: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Request:
        kwargs: Dict[str, Any] = {}
        body = request.body if content is None else content
        if isinstance(body, Mapping):
            kwargs["data"] = body
        elif body is not None:
            kwargs["content"] = body
        return self._get_client().build_request(
            request.method,
            request.url,
            headers=dict(headers if headers is not None else request.headers),
            **kwargs,
        )

    async def send(
        self,
        request: TransportRequest,
        token: CancellationToken,
    ) -> TransportResponse:
        token.raise_if_cancelled()
        http_request = self._build_request(request)
        response = await self._get_client().send(http_request, stream=True)
        return HttpxResponse(response)

    async def send_with_upload_progress(
        self,
        request: TransportRequest,
        token: CancellationToken,
        on_upload_chunk: UploadChunkCallback,
    ) -> TransportResponse:
        payload = body_as_bytes(request.body)
        if payload is None:
            return await super().send_with_upload_progress(request, token, on_upload_chunk)

        token.raise_if_cancelled()
        total = len(payload)

        async def stream_body() -> AsyncIterator[bytes]:
            sent = 0
            for offset in range(0, total, UPLOAD_CHUNK_SIZE):
                chunk = payload[offset:offset + UPLOAD_CHUNK_SIZE]
                yield chunk
                sent += len(chunk)
                await on_upload_chunk(sent, total)

        # Явная длина: иначе httpx отправит async тело chunked
        headers = dict(request.headers)
        headers["Content-Length"] = str(total)
        http_request = self._build_request(request, content=stream_body(), headers=headers)
        response = await self._get_client().send(http_request, stream=True)
        return HttpxResponse(response)

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
