# src/quickrequest/core/executor.py
"""
Исполнитель одной попытки запроса.

perform_once() делает ровно один обмен с транспортом (или отдаёт данные
из кэша) и выбрасывает сырые ошибки: нормализация происходит уровнем выше,
в RetryEngine.
"""

import asyncio
import logging
from typing import Any, List, Optional

from .cache import MISSING, DebugSink, MemoryCache, save_to_cache, try_get_from_cache
from .cancellation import TIMEOUT_REASON, CancellationToken, RequestCancelled, run_cancellable
from .config import ClientConfig, RequestOptions
from .exceptions import AbortError, HttpStatusError, TimeoutError
from .progress import (
    cached_event,
    completed_event,
    emit,
    make_progress_event,
    maybe_await,
    parse_content_length,
)
from .utils import (
    body_as_bytes,
    decode_payload,
    is_get_request,
    merge_headers,
    parse_text,
    prepare_body,
    resolve_url,
)
from ..transports.base import Transport, TransportRequest, TransportResponse

logger = logging.getLogger(__name__)

# Методы, для которых имеет смысл прогресс отправки
UPLOAD_METHODS = frozenset({"POST", "PUT", "PATCH"})


class RequestExecutor:
    """
    Single-attempt executor.

    Шаги попытки:
        1. Разрешить URL; для GET попробовать кэш
        2. Объединить заголовки, подготовить тело
        3. Обмен с транспортом под таймером/токеном отмены
        4. after_response хук, проверка статуса
        5. Чтение тела (с прогрессом), разбор JSON/текста
        6. Запись в кэш для GET

    Args:
        config: Конфигурация клиента
        transport: Транспорт
        cache: Хранилище кэша клиента
        debug_sink: Получатель debug событий кэша
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: Transport,
        cache: MemoryCache,
        debug_sink: Optional[DebugSink] = None,
    ):
        self._config = config
        self._transport = transport
        self._cache = cache
        self._debug_sink = debug_sink

    # ==================== Публичный API ====================

    async def perform_once(self, options: RequestOptions) -> Any:
        """
        Выполнить одну попытку.

        Args:
            options: Эффективные опции (после before_request)

        Returns:
            Распарсенное тело ответа

        Raises:
            Exception: Сырая ошибка попытки (RequestCancelled, ошибка
                транспорта, HttpStatusError, ошибка разбора тела)
        """
        url = self.resolve_url(options)
        use_cache = self.uses_cache(options)

        if use_cache:
            cached = try_get_from_cache(
                self._cache, url, self._config.cache_ttl_ms, self._debug_sink
            )
            if cached is not MISSING:
                await emit(options.on_download_progress, cached_event())
                return cached

        headers = merge_headers(self._config.headers, options.headers)
        body = prepare_body(headers, options.body)
        request = TransportRequest(method=options.method, url=url, headers=headers, body=body)

        try:
            if self._needs_upload_progress(options, body):
                data = await self._perform_upload(request, options)
            else:
                data = await self._perform_plain(request, options)
        except Exception as error:
            await self._notify_failure(options, error)
            raise

        if use_cache:
            save_to_cache(self._cache, url, data, self._debug_sink)
        return data

    def resolve_url(self, options: RequestOptions) -> str:
        return resolve_url(self._config.base_url, options.url, options.query)

    def uses_cache(self, options: RequestOptions) -> bool:
        """Кэш участвует в этом вызове (чтение и запись)."""
        if not is_get_request(options.method) or not self._config.cache_enabled:
            return False
        if options.use_cache is not None:
            return options.use_cache
        return options.on_download_progress is None

    def resolve_timeout(self, options: RequestOptions) -> float:
        if options.timeout_ms is not None:
            return options.timeout_ms
        return self._config.timeout_ms or 0

    # ==================== Обычный путь ====================

    async def _perform_plain(self, request: TransportRequest, options: RequestOptions) -> Any:
        internal = CancellationToken()
        token = options.signal or internal
        timer = None
        timeout_ms = self.resolve_timeout(options)
        if options.signal is None and timeout_ms > 0:
            timer = asyncio.get_running_loop().call_later(
                timeout_ms / 1000, internal.cancel, TIMEOUT_REASON
            )
        try:
            return await run_cancellable(self._exchange(request, options, token), token)
        finally:
            if timer is not None:
                timer.cancel()

    async def _exchange(
        self,
        request: TransportRequest,
        options: RequestOptions,
        token: CancellationToken,
    ) -> Any:
        original = await self._transport.send(request, token)
        response = original
        try:
            response = await self._apply_after_response(original, options)
            if not response.ok:
                raise HttpStatusError(response.status, response.status_text, response)
            return await self._read_body(response, options)
        finally:
            await original.aclose()
            if response is not original:
                await response.aclose()

    async def _read_body(self, response: TransportResponse, options: RequestOptions) -> Any:
        content_type = response.headers.get("content-type")
        callback = options.on_download_progress
        if callback is None:
            return parse_text(await response.text(), content_type)

        total = parse_content_length(response.headers)
        loaded = 0
        chunks: List[bytes] = []
        last = None
        async for chunk in response.aiter_bytes():
            if not chunk:
                continue
            chunks.append(chunk)
            loaded += len(chunk)
            last = make_progress_event(loaded, total)
            await emit(callback, last)

        if total > 0 and (last is None or last.percent < 100):
            await emit(callback, completed_event(loaded, total))

        return decode_payload(b"".join(chunks), content_type)

    # ==================== Upload путь ====================

    def _needs_upload_progress(self, options: RequestOptions, body: Any) -> bool:
        return (
            options.on_upload_progress is not None
            and options.method in UPLOAD_METHODS
            and body is not None
        )

    async def _perform_upload(self, request: TransportRequest, options: RequestOptions) -> Any:
        """
        Обмен с прогрессом отправки.

        Таймаут здесь действует и при caller signal: дедлайн отправки
        ставится всегда, а ошибки классифицируются сразу.
        """
        internal = CancellationToken()
        tokens = [internal] if options.signal is None else [internal, options.signal]
        timer = None
        timeout_ms = self.resolve_timeout(options)
        if timeout_ms > 0:
            timer = asyncio.get_running_loop().call_later(
                timeout_ms / 1000, internal.cancel, TIMEOUT_REASON
            )
        try:
            return await run_cancellable(
                self._upload_exchange(request, options, options.signal or internal),
                *tokens,
            )
        except RequestCancelled as exc:
            if exc.by_timer and internal.cancelled:
                raise TimeoutError(url=request.url, timeout_ms=timeout_ms) from exc
            raise AbortError(url=request.url) from exc
        finally:
            if timer is not None:
                timer.cancel()

    async def _upload_exchange(
        self,
        request: TransportRequest,
        options: RequestOptions,
        token: CancellationToken,
    ) -> Any:
        payload = body_as_bytes(request.body)
        declared_total = len(payload) if payload is not None else 0

        async def on_upload_chunk(loaded: int, total: int) -> None:
            await emit(options.on_upload_progress, make_progress_event(loaded, total or declared_total))

        original = await self._transport.send_with_upload_progress(request, token, on_upload_chunk)
        response = original
        try:
            response = await self._apply_after_response(original, options)
            if not response.ok:
                raise HttpStatusError(
                    response.status,
                    response.status_text,
                    response,
                    response_text=await response.text(),
                )
            return parse_text(await response.text(), response.headers.get("content-type"))
        finally:
            await original.aclose()
            if response is not original:
                await response.aclose()

    # ==================== Хуки ====================

    async def _apply_after_response(
        self,
        response: TransportResponse,
        options: RequestOptions,
    ) -> TransportResponse:
        hook = self._config.after_response
        if hook is None:
            return response
        replaced = await maybe_await(hook(response, options))
        return replaced if replaced is not None else response

    async def _notify_failure(self, options: RequestOptions, error: Exception) -> None:
        """Сообщить after_response об ошибке. Ошибки хука не пробрасываются."""
        hook = self._config.after_response
        if hook is None:
            return
        try:
            await maybe_await(hook(None, options, error))
        except Exception as hook_error:
            logger.debug(
                "after_response hook failed on error path: %s", hook_error,
                exc_info=True,
            )
