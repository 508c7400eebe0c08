"""
Retry engine: цикл повторов вокруг одной попытки.

Включает:
- Exponential backoff без jitter с ограничением сверху
- Классификацию retryable ошибок (таймаут, сеть, 5xx, 429)
- Конечный автомат Attempting -> Delaying -> ... -> Succeeded/Failed
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from .config import RetryPolicy
from .error_handler import normalize_error
from .exceptions import HttpError

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[Any]]


class RetryState(str, Enum):
    """Состояния цикла повторов."""
    ATTEMPTING = "attempting"
    DELAYING = "delaying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class RetryEngine:
    """
    Механизм retry для одного вызова.

    Экземпляр создаётся на каждый вызов: счётчик попыток и состояние
    не разделяются между конкурентными запросами.

    Examples:
        >>> engine = RetryEngine(RetryPolicy(max_attempts=3))
        >>> data = await engine.execute(lambda: executor.perform_once(options))
    """

    def __init__(self, policy: RetryPolicy, sleep: Optional[SleepFunc] = None):
        """
        Args:
            policy: Политика повторов
            sleep: Функция ожидания в секундах (по умолчанию asyncio.sleep)
        """
        self.policy = policy
        self._sleep = sleep
        self._attempt = 1
        self._state = RetryState.ATTEMPTING

    def should_retry(self, error: HttpError) -> bool:
        """
        Решить нужен ли retry.

        Args:
            error: Нормализованная ошибка текущей попытки

        Returns:
            True если ошибка retryable и попытки не исчерпаны
        """
        if self._attempt >= self.policy.max_attempts:
            return False
        return error.retryable

    def get_wait_time(self) -> float:
        """
        Задержка перед следующей попыткой (мс).

        min(base_delay_ms * backoff_factor ** (attempt - 1), max_delay_ms)
        """
        wait = self.policy.base_delay_ms * (
            self.policy.backoff_factor ** (self._attempt - 1)
        )
        return min(wait, self.policy.max_delay_ms)

    async def wait(self) -> None:
        """Асинхронное ожидание перед retry."""
        delay_ms = self.get_wait_time()
        sleep = self._sleep or asyncio.sleep
        await sleep(delay_ms / 1000)

    async def execute(
        self,
        operation: Callable[[], Awaitable[Any]],
        had_caller_signal: bool = False,
        url: Optional[str] = None,
    ) -> Any:
        """
        Выполнить операцию с повторами.

        Args:
            operation: Фабрика одной попытки (вызывается заново на каждую)
            had_caller_signal: В опциях был токен вызывающего кода
            url: URL для сообщений об ошибках

        Returns:
            Результат успешной попытки

        Raises:
            HttpError: Нормализованная ошибка последней попытки
        """
        if not self.policy.enabled:
            try:
                result = await operation()
            except Exception as error:
                self._state = RetryState.FAILED
                normalized = normalize_error(error, had_caller_signal, url)
                if normalized is error:
                    raise
                raise normalized from error
            self._state = RetryState.SUCCEEDED
            return result

        while True:
            self._state = RetryState.ATTEMPTING
            try:
                result = await operation()
            except Exception as error:
                normalized = normalize_error(error, had_caller_signal, url)
                if not self.should_retry(normalized):
                    self._state = RetryState.FAILED
                    if normalized is error:
                        raise
                    raise normalized from error

                self._state = RetryState.DELAYING
                logger.debug(
                    "Retrying request after %s (attempt %d/%d, delay %.0f ms)",
                    normalized.__class__.__name__,
                    self._attempt,
                    self.policy.max_attempts,
                    self.get_wait_time(),
                )
                await self.wait()
                self.increment()
                continue

            self._state = RetryState.SUCCEEDED
            return result

    def increment(self) -> None:
        """Увеличить счётчик попыток."""
        self._attempt += 1

    def reset(self) -> None:
        """Сбросить счётчик."""
        self._attempt = 1
        self._state = RetryState.ATTEMPTING

    @property
    def attempt(self) -> int:
        """Текущая попытка (с 1)."""
        return self._attempt

    @property
    def state(self) -> RetryState:
        return self._state
