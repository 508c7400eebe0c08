# src/quickrequest/core/error_handler.py

from typing import Optional

from .cancellation import RequestCancelled
from .exceptions import AbortError, HttpError, NetworkError, TimeoutError


class ErrorHandler:
    """Приводит сырые ошибки попытки к таксономии HttpError"""

    @staticmethod
    def normalize(
        error: BaseException,
        had_caller_signal: bool,
        url: Optional[str] = None,
    ) -> HttpError:
        """
        Нормализует ошибку.

        - HttpError возвращается как есть (идемпотентно)
        - Отмена: AbortError, или TimeoutError если сработал таймер
          исполнителя и caller signal не использовался
        - Всё остальное: NetworkError со статусом 0 и исходным сообщением
        """

        if isinstance(error, HttpError):
            return error

        if isinstance(error, RequestCancelled):
            if error.by_timer and not had_caller_signal:
                normalized: HttpError = TimeoutError(url=url)
            else:
                normalized = AbortError(url=url)
        else:
            normalized = NetworkError(str(error) or "Network failure", url)

        normalized.__cause__ = error
        return normalized

    @staticmethod
    def is_retryable_error(error: Exception) -> bool:
        """Проверяет, можно ли повторить запрос после этой ошибки"""

        return isinstance(error, HttpError) and error.retryable


def normalize_error(
    error: BaseException,
    had_caller_signal: bool,
    url: Optional[str] = None,
) -> HttpError:
    """Shortcut для ErrorHandler.normalize()."""
    return ErrorHandler.normalize(error, had_caller_signal, url)
