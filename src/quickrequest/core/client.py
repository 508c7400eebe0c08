# src/quickrequest/core/client.py
"""
QuickRequestClient - фасад клиента.

Связывает конфигурацию, транспорт, кэш, исполнитель попытки и retry engine.
Каждый вызов - одна корутина; конкурентные вызовы к одному клиенту
разделяют только кэш.
"""

import dataclasses
import time
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from .cache import DebugSink, MemoryCache, logging_debug_sink
from .config import (
    AfterResponseHook,
    BeforeRequestHook,
    ClientConfig,
    RequestOptions,
    RetryPolicy,
)
from .exceptions import HttpError
from .executor import RequestExecutor
from .logging import (
    DEFAULT_LOGGER_NAME,
    LoggingConfig,
    QuickRequestLogger,
    new_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from .progress import maybe_await
from .retry_engine import RetryEngine
from ..transports.base import Transport
from ..transports.httpx_transport import HttpxTransport
from ..utils.sanitizer import mask_url


class ClientClosedError(RuntimeError):
    """Вызов на закрытом клиенте."""


class QuickRequestClient:
    """
    Асинхронный HTTP клиент с base URL, кэшем GET, таймаутами и retry.

    Example:
        >>> async with QuickRequestClient(
        ...     "https://api.example.com",
        ...     timeout_ms=8000,
        ...     cache_ttl_ms=30_000,
        ... ) as client:
        ...     items = await client.get("/items", query={"id": 5})
        ...     created = await client.post("/items", {"name": "x"}, retry={"max_attempts": 3})

    Features:
        - Разрешение относительных путей относительно base_url
        - JSON тела и ответы по умолчанию
        - Таймаут и отмена через CancellationToken
        - Retry с exponential backoff (5xx, 429, таймаут, сеть)
        - In-memory кэш GET ответов с TTL
        - Прогресс отправки и загрузки
        - Хуки before_request / after_response
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        config: Optional[ClientConfig] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout_ms: float = 0,
        cache_ttl_ms: float = 0,
        before_request: Optional[BeforeRequestHook] = None,
        after_response: Optional[AfterResponseHook] = None,
        retry: Union[RetryPolicy, Mapping[str, Any], None] = None,
        logging: Optional[LoggingConfig] = None,
        transport: Optional[Transport] = None,
        cache: Optional[MemoryCache] = None,
        debug_sink: Optional[DebugSink] = logging_debug_sink,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        """
        Args:
            base_url: Базовый URL для относительных путей
            config: Готовый ClientConfig (если указан, параметры конфигурации игнорируются)
            headers: Заголовки по умолчанию
            timeout_ms: Таймаут попытки (мс, 0 = выключен)
            cache_ttl_ms: TTL кэша GET (мс, 0 = выключен)
            before_request: Хук перед запросом
            after_response: Хук после ответа / при ошибке
            retry: Политика повторов по умолчанию
            logging: Конфигурация логгера клиента
            transport: Транспорт (по умолчанию собственный HttpxTransport)
            cache: Хранилище кэша (по умолчанию новое)
            debug_sink: Получатель debug событий кэша (None = выключен)
            clock: Часы кэша в мс (для тестов)
            sleep: Функция ожидания между попытками (для тестов)
        """
        if config is None:
            config = ClientConfig.create(
                base_url=base_url,
                headers=headers,
                timeout_ms=timeout_ms,
                cache_ttl_ms=cache_ttl_ms,
                before_request=before_request,
                after_response=after_response,
                retry=retry,
                logging=logging,
            )
        self._config = config

        self._owns_transport = transport is None
        self._transport = transport or HttpxTransport()
        self._cache = cache if cache is not None else MemoryCache(clock=clock)
        self._executor = RequestExecutor(config, self._transport, self._cache, debug_sink)
        self._sleep = sleep
        self._closed = False

        self._logger: Optional[QuickRequestLogger] = None
        if config.logging is not None:
            # Отдельный logging.Logger на каждый клиент
            self._logger = QuickRequestLogger(
                config.logging, name=f"{DEFAULT_LOGGER_NAME}.{id(self):x}"
            )

    # ==================== Свойства ====================

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def base_url(self) -> str:
        return self._config.base_url

    @property
    def cache(self) -> MemoryCache:
        """Хранилище кэша клиента."""
        return self._cache

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def closed(self) -> bool:
        return self._closed

    def clear_cache(self) -> None:
        """Очистить кэш GET ответов."""
        self._cache.clear()

    # ==================== Жизненный цикл ====================

    async def __aenter__(self) -> "QuickRequestClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Закрыть собственный транспорт и логгер. Повторные вызовы игнорируются."""
        if self._closed:
            return
        self._closed = True
        if self._owns_transport:
            await self._transport.aclose()
        if self._logger is not None:
            self._logger.close()

    # ==================== Запрос ====================

    async def request(self, options: Optional[RequestOptions] = None, **kwargs: Any) -> Any:
        """
        Выполнить запрос.

        Args:
            options: RequestOptions (поля kwargs перекрывают его поля)
            **kwargs: Поля RequestOptions (method, url, query, headers, body,
                timeout_ms, signal, retry, on_upload_progress,
                on_download_progress, use_cache, metadata)

        Returns:
            Распарсенное тело ответа (JSON объект или текст)

        Raises:
            HttpError: AbortError, TimeoutError, NetworkError или HttpStatusError
            ClientClosedError: Клиент закрыт
        """
        if self._closed:
            raise ClientClosedError("QuickRequestClient is closed")

        if options is None:
            options = RequestOptions(**kwargs)
        elif kwargs:
            options = dataclasses.replace(options, **kwargs)

        options = await self._apply_before_request(options)

        policy = RetryPolicy.from_value(options.retry, self._config.retry)
        engine = RetryEngine(policy, sleep=self._sleep)
        url = self._executor.resolve_url(options)

        if self._logger is None:
            return await engine.execute(
                lambda: self._executor.perform_once(options),
                had_caller_signal=options.signal is not None,
                url=url,
            )

        token = set_correlation_id(new_correlation_id())
        start = time.perf_counter()
        self._logger.info("Request started", method=options.method, url=mask_url(url))
        try:
            data = await engine.execute(
                lambda: self._executor.perform_once(options),
                had_caller_signal=options.signal is not None,
                url=url,
            )
        except HttpError as e:
            self._logger.error(
                "Request failed",
                method=options.method,
                url=mask_url(url),
                error=e.__class__.__name__,
                status=e.status,
                attempt=engine.attempt,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            raise
        else:
            self._logger.info(
                "Request completed",
                method=options.method,
                url=mask_url(url),
                attempt=engine.attempt,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            return data
        finally:
            # Сброс после обеих финальных записей
            reset_correlation_id(token)

    async def _apply_before_request(self, options: RequestOptions) -> RequestOptions:
        """
        Применить before_request один раз на вызов.

        Хук получает копию; если он ничего не вернул, используется эта копия.
        Ошибки хука пробрасываются как есть.
        """
        hook = self._config.before_request
        if hook is None:
            return options
        candidate = options.copy()
        result = await maybe_await(hook(candidate))
        return result if result is not None else candidate

    # ==================== Удобные методы ====================

    async def get(self, url: str, **kwargs: Any) -> Any:
        """GET запрос."""
        return await self.request(method="GET", url=url, **kwargs)

    async def post(self, url: str, body: Any = None, **kwargs: Any) -> Any:
        """POST запрос."""
        return await self.request(method="POST", url=url, body=body, **kwargs)

    async def put(self, url: str, body: Any = None, **kwargs: Any) -> Any:
        """PUT запрос."""
        return await self.request(method="PUT", url=url, body=body, **kwargs)

    async def patch(self, url: str, body: Any = None, **kwargs: Any) -> Any:
        """PATCH запрос."""
        return await self.request(method="PATCH", url=url, body=body, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> Any:
        """DELETE запрос."""
        return await self.request(method="DELETE", url=url, **kwargs)

    async def head(self, url: str, **kwargs: Any) -> Any:
        """HEAD запрос."""
        return await self.request(method="HEAD", url=url, **kwargs)

    async def options(self, url: str, **kwargs: Any) -> Any:
        """OPTIONS запрос."""
        return await self.request(method="OPTIONS", url=url, **kwargs)

    def __repr__(self) -> str:
        return f"QuickRequestClient(base_url={self._config.base_url!r})"


def create_client(base_url: Optional[str] = None, **kwargs: Any) -> QuickRequestClient:
    """
    Создать клиент.

    Example:
        >>> client = create_client("https://api.example.com", timeout_ms=5000)
    """
    return QuickRequestClient(base_url, **kwargs)
