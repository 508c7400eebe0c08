"""
Иерархия исключений QuickRequest.

Каждый вызов клиента завершается либо данными ответа, либо ровно одним
экземпляром HttpError. Классификация задаётся классом:

- AbortError (is_abort=True) - отмена запроса (caller signal или таймер)
- TimeoutError (is_abort=True, is_timeout=True) - сработал внутренний таймер
- NetworkError (is_network=True) - сбой транспорта, не связанный с HTTP
- HttpStatusError - ответ получен, но статус не 2xx

Retryable: таймаут, сетевая ошибка, 5xx и 429.
"""

from typing import Any, Optional

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# BASE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class HttpError(Exception):
    """
    Базовая ошибка QuickRequest.

    Args:
        message: Сообщение об ошибке
        status: HTTP статус (0 для abort/network)
        status_text: Текст статуса
        response: Исходный объект ответа (если есть)
        response_text: Тело ответа для диагностики (если прочитано)
    """

    is_abort: bool = False
    is_timeout: bool = False
    is_network: bool = False

    def __init__(
        self,
        message: str,
        status: int = 0,
        status_text: str = "",
        response: Any = None,
        response_text: Optional[str] = None,
    ):
        self.message = message
        self.status = status
        self.status_text = status_text
        self.response = response
        self.response_text = response_text
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        """Можно ли повторить запрос после этой ошибки."""
        return (
            self.is_timeout
            or self.is_network
            or 500 <= self.status < 600
            or self.status == 429
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(status={self.status}, "
            f"status_text={self.status_text!r}, message={self.message!r})"
        )

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ОТМЕНА
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class AbortError(HttpError):
    """Запрос отменён (caller signal или внутренний таймер)."""

    is_abort = True

    def __init__(self, message: str = "Request aborted", url: Optional[str] = None):
        self.url = url
        if url:
            message += f" (url: {url})"
        super().__init__(message, status=0, status_text="Aborted")

class TimeoutError(AbortError):
    """
    Таймаут запроса.

    Частный случай отмены: сработал таймер самого клиента,
    а не сигнал вызывающего кода.

    Args:
        message: Сообщение об ошибке
        url: URL запроса
        timeout_ms: Значение таймаута (мс)
    """

    is_timeout = True

    def __init__(
        self,
        message: str = "Request timeout",
        url: Optional[str] = None,
        timeout_ms: Optional[float] = None,
    ):
        self.timeout_ms = timeout_ms
        if timeout_ms:
            message += f" ({timeout_ms:g} ms)"
        super().__init__(message, url)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# СЕТЬ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class NetworkError(HttpError):
    """
    Сетевая ошибка.

    Примеры:
    - Connection refused
    - DNS resolution failed
    - Битое тело ответа
    """

    is_network = True

    def __init__(self, message: str = "Network failure", url: Optional[str] = None):
        self.url = url
        super().__init__(message, status=0, status_text="Network Error")

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# HTTP СТАТУС
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class HttpStatusError(HttpError):
    """
    Ответ получен, но статус не 2xx.

    Args:
        status: HTTP статус код
        status_text: Текст статуса
        response: Исходный ответ транспорта
        response_text: Тело ответа (только upload путь)
    """

    def __init__(
        self,
        status: int,
        status_text: str = "",
        response: Any = None,
        response_text: Optional[str] = None,
    ):
        message = f"HTTP {status} {status_text}".rstrip()
        super().__init__(
            message,
            status=status,
            status_text=status_text,
            response=response,
            response_text=response_text,
        )
