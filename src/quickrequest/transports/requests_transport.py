# src/quickrequest/transports/requests_transport.py
"""
Транспорт на базе requests.

requests синхронный, поэтому каждый блокирующий шаг (отправка, чтение
chunk) выполняется в executor event loop и не блокирует другие вызовы.
Отмена прерывает ожидание, но не поток, который уже отправляет запрос.
"""

import asyncio
import functools
from typing import Any, AsyncIterator, Iterator, Optional, Tuple, Union

import requests
from requests.adapters import HTTPAdapter

from ..core.cancellation import CancellationToken
from ..core.utils import body_as_bytes
from .base import Transport, TransportRequest, TransportResponse, UploadChunkCallback

UPLOAD_CHUNK_SIZE = 64 * 1024
DOWNLOAD_CHUNK_SIZE = 8192


async def _run_sync(func, *args, **kwargs):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))


def _close_abandoned(future: asyncio.Future) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    future.result().close()


async def _send_sync(func, *args):
    """
    Отправить запрос в executor.

    Отмена ожидающей задачи не останавливает поток: он доводит запрос
    до конца, и такой ответ (stream=True) закрывается по завершении,
    чтобы соединение вернулось в pool.
    """
    loop = asyncio.get_running_loop()
    future = loop.run_in_executor(None, functools.partial(func, *args))
    try:
        return await asyncio.shield(future)
    except asyncio.CancelledError:
        future.add_done_callback(_close_abandoned)
        raise


class RequestsResponse(TransportResponse):
    """Обёртка над requests.Response, открытым с stream=True."""

    def __init__(self, response: requests.Response, chunk_size: int = DOWNLOAD_CHUNK_SIZE):
        self.raw = response
        self.status = response.status_code
        self.status_text = response.reason or ""
        self.headers = response.headers  # CaseInsensitiveDict
        self._chunk_size = chunk_size

    async def json(self) -> Any:
        await _run_sync(lambda: self.raw.content)
        return self.raw.json()

    async def text(self) -> str:
        await _run_sync(lambda: self.raw.content)
        return self.raw.text

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        iterator = self.raw.iter_content(self._chunk_size)
        while True:
            chunk = await _run_sync(next, iterator, None)
            if chunk is None:
                break
            if chunk:
                yield chunk

    async def aclose(self) -> None:
        self.raw.close()


class _ProgressBody:
    """
    Тело с известной длиной, сообщающее об отправленных chunks.

    __len__ нужен requests для Content-Length вместо chunked encoding.
    Callback асинхронный, а итерация идёт в потоке executor, поэтому
    callback передаётся обратно в event loop.
    """

    def __init__(self, payload: bytes, on_chunk: UploadChunkCallback, loop: asyncio.AbstractEventLoop):
        self._payload = payload
        self._on_chunk = on_chunk
        self._loop = loop

    def __len__(self) -> int:
        return len(self._payload)

    def __iter__(self) -> Iterator[bytes]:
        total = len(self._payload)
        sent = 0
        for offset in range(0, total, UPLOAD_CHUNK_SIZE):
            chunk = self._payload[offset:offset + UPLOAD_CHUNK_SIZE]
            yield chunk
            sent += len(chunk)
            asyncio.run_coroutine_threadsafe(self._on_chunk(sent, total), self._loop).result()


class RequestsTransport(Transport):
    """
    Транспорт через requests.Session.

    Args:
        session: Готовая сессия (не закрывается транспортом)
        timeout: Таймаут requests (сек или (connect, read)), None = без таймаута
        verify_ssl: Проверять SSL сертификаты
        pool_maxsize: Размер connection pool

    Example:
        >>> client = QuickRequestClient("https://api.example.com", transport=RequestsTransport())
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        timeout: Union[float, Tuple[float, float], None] = None,
        verify_ssl: bool = True,
        pool_maxsize: int = 10,
    ):
        self._owns_session = session is None
        self._session = session or self._create_session(pool_maxsize)
        self._timeout = timeout
        self._verify_ssl = verify_ssl

    @staticmethod
    def _create_session(pool_maxsize: int) -> requests.Session:
        session = requests.Session()
        adapter = HTTPAdapter(pool_maxsize=pool_maxsize, max_retries=0)  # Ретраи через RetryEngine
        session.mount('http://', adapter)
        session.mount('https://', adapter)
        return session

    def _request(self, request: TransportRequest, data: Any) -> requests.Response:
        if isinstance(data, str):
            # http.client кодирует str как latin-1
            data = data.encode("utf-8")
        return self._session.request(
            method=request.method,
            url=request.url,
            headers=request.headers,
            data=data,
            stream=True,
            timeout=self._timeout,
            verify=self._verify_ssl,
        )

    async def send(
        self,
        request: TransportRequest,
        token: CancellationToken,
    ) -> TransportResponse:
        token.raise_if_cancelled()
        response = await _send_sync(self._request, request, request.body)
        return RequestsResponse(response)

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
        body = _ProgressBody(payload, on_upload_chunk, asyncio.get_running_loop())
        response = await _send_sync(self._request, request, body)
        return RequestsResponse(response)

    async def aclose(self) -> None:
        if self._owns_session:
            self._session.close()
