# src/quickrequest/transports/base.py
"""
Транспорт: одна HTTP операция без политики.

Ядро клиента зависит только от этих интерфейсов; конкретные реализации
(httpx, requests) и тестовые подделки подставляются снаружи.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Iterable, Mapping, Optional, Union

import httpx

from ..core.cancellation import CancellationToken
from ..core.utils import body_as_bytes

# on_upload_chunk(loaded_bytes, total_bytes)
UploadChunkCallback = Callable[[int, int], Awaitable[None]]


@dataclass
class TransportRequest:
    """Подготовленный запрос: URL разрешён, заголовки объединены, тело готово."""

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None


class TransportResponse(ABC):
    """
    Ответ транспорта.

    headers должны поддерживать регистронезависимый .get().
    Тело читается один раз: json(), text() или aiter_bytes().
    """

    status: int
    status_text: str
    headers: Mapping[str, str]

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @abstractmethod
    async def json(self) -> Any:
        """Тело как JSON"""

    @abstractmethod
    async def text(self) -> str:
        """Тело как текст"""

    @abstractmethod
    def aiter_bytes(self) -> AsyncIterator[bytes]:
        """Тело потоком байтовых chunks"""

    async def aclose(self) -> None:
        """Освободить соединение."""


class BufferedResponse(TransportResponse):
    """
    Ответ целиком в памяти.

    Годится для подделок транспорта и для after_response хуков,
    которые переписывают статус, заголовки или тело.

    Args:
        status: HTTP статус
        headers: Заголовки
        content: Тело (bytes/str) или None
        json_data: Тело как объект (сериализуется, ставит application/json)
        status_text: Текст статуса (по умолчанию из HTTPStatus)
        chunks: Тело по частям (sync или async iterable bytes)

    Example:
        >>> BufferedResponse(200, json_data={"ok": True})
        >>> BufferedResponse(200, headers={"Content-Length": "1000"}, chunks=[b"a" * 500, b"b" * 500])
    """

    def __init__(
        self,
        status: int = 200,
        headers: Optional[Mapping[str, str]] = None,
        content: Union[bytes, str, None] = None,
        json_data: Any = None,
        status_text: Optional[str] = None,
        chunks: Union[Iterable[bytes], AsyncIterator[bytes], None] = None,
    ):
        self.status = status
        self.status_text = status_text if status_text is not None else _reason_phrase(status)
        self.headers = httpx.Headers(headers or {})
        if json_data is not None:
            content = json.dumps(json_data)
            if "content-type" not in self.headers:
                self.headers["Content-Type"] = "application/json"
        if isinstance(content, str):
            content = content.encode("utf-8")
        self._content = content or b""
        self._chunks = chunks
        self.closed = False

    async def read(self) -> bytes:
        if self._chunks is None:
            return self._content
        parts = []
        async for chunk in self.aiter_bytes():
            parts.append(chunk)
        self._content = b"".join(parts)
        self._chunks = None
        return self._content

    async def json(self) -> Any:
        return json.loads(await self.read())

    async def text(self) -> str:
        return (await self.read()).decode("utf-8", errors="replace")

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        if self._chunks is None:
            if self._content:
                yield self._content
            return
        if hasattr(self._chunks, "__aiter__"):
            async for chunk in self._chunks:
                yield chunk
        else:
            for chunk in self._chunks:
                yield chunk

    async def aclose(self) -> None:
        self.closed = True


def _reason_phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return ""


class Transport(ABC):
    """
    Базовый класс транспорта.

    send() выполняет один обмен. send_with_upload_progress() - вторая форма
    вызова, сообщающая о переданных байтах тела; реализация по умолчанию
    отправляет обычным путём и сообщает одно событие о завершении отправки.
    """

    @abstractmethod
    async def send(
        self,
        request: TransportRequest,
        token: CancellationToken,
    ) -> TransportResponse:
        """Выполнить обмен"""

    async def send_with_upload_progress(
        self,
        request: TransportRequest,
        token: CancellationToken,
        on_upload_chunk: UploadChunkCallback,
    ) -> TransportResponse:
        """Выполнить обмен с прогрессом отправки."""
        payload = body_as_bytes(request.body)
        total = len(payload) if payload is not None else 0
        response = await self.send(request, token)
        await on_upload_chunk(total, total)
        return response

    async def aclose(self) -> None:
        """Закрыть ресурсы транспорта."""
