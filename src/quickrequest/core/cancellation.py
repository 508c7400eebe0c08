"""
Токены отмены для asyncio.

CancellationToken играет роль signal из опций запроса: вызывающий код
может отменить текущую попытку, а исполнитель использует собственный
токен для таймаута.
"""

import asyncio
import contextlib
from typing import Any, Awaitable, Optional

# Причина, с которой внутренний таймер отменяет свой токен
TIMEOUT_REASON = "timeout"


class RequestCancelled(Exception):
    """
    Попытка прервана срабатыванием токена отмены.

    Сырая (не нормализованная) ошибка: классификацию делает
    normalize_error() уровнем выше.

    Args:
        reason: Причина, переданная в CancellationToken.cancel()
    """

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        msg = "Request cancelled"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)

    @property
    def by_timer(self) -> bool:
        """Отмена пришла от таймера исполнителя."""
        return self.reason == TIMEOUT_REASON


class CancellationToken:
    """
    Токен отмены запроса.

    Example:
        >>> token = CancellationToken()
        >>> task = asyncio.create_task(client.get("/slow", signal=token))
        >>> token.cancel()
        >>> await task  # AbortError(is_abort=True, is_timeout=False)
    """

    def __init__(self):
        self._event = asyncio.Event()
        self._reason: Optional[str] = None

    def cancel(self, reason: Optional[str] = None) -> None:
        """Отменить. Повторные вызовы игнорируются."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    async def wait(self) -> None:
        """Дождаться отмены."""
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise RequestCancelled(self._reason)


async def run_cancellable(operation: Awaitable[Any], *tokens: CancellationToken) -> Any:
    """
    Выполнить операцию, пока ни один из токенов не отменён.

    Если первым срабатывает токен, задача операции отменяется и
    выбрасывается RequestCancelled с причиной сработавшего токена.

    Args:
        operation: Корутина попытки
        *tokens: Токены, любой из которых прерывает операцию

    Returns:
        Результат операции
    """
    for token in tokens:
        if token.cancelled:
            # Корутину не запускаем, но и не оставляем "never awaited"
            if asyncio.iscoroutine(operation):
                operation.close()
            raise RequestCancelled(token.reason)

    task = asyncio.ensure_future(operation)
    waiters = [asyncio.ensure_future(token.wait()) for token in tokens]
    try:
        done, _ = await asyncio.wait(
            [task, *waiters],
            return_when=asyncio.FIRST_COMPLETED,
        )
        if task in done:
            return task.result()

        task.cancel()
        # Ошибки при сворачивании отменённой попытки не важнее самой отмены
        with contextlib.suppress(asyncio.CancelledError, Exception):
            await task
        fired = next(token for token in tokens if token.cancelled)
        raise RequestCancelled(fired.reason)
    finally:
        for waiter in waiters:
            waiter.cancel()
        if not task.done():
            task.cancel()
