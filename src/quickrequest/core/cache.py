"""
In-memory кэш GET ответов.

Ключ - полностью разрешённый URL (с query). Значение - распарсенные
данные и время сохранения. Истёкшие записи удаляются лениво при чтении,
фонового очищения нет.

Конкурентные вызовы не сериализуются: при гонке записи побеждает последний.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional

logger = logging.getLogger(__name__)

# Маркер промаха: None - допустимые данные ответа (JSON null)
MISSING = object()


@dataclass(frozen=True)
class CacheEntry:
    """Запись кэша."""
    data: Any
    stored_at_ms: float


@dataclass(frozen=True)
class DebugEvent:
    """
    Структурированное debug событие кэша.

    Attributes:
        event: "cache hit" | "cache expired" | "cache saved"
        key: Ключ кэша (URL)
        age_seconds: Возраст записи (для hit/expired)
    """
    event: str
    key: str
    age_seconds: Optional[float] = None


DebugSink = Callable[[DebugEvent], None]


def logging_debug_sink(event: DebugEvent) -> None:
    """Debug sink по умолчанию: пишет событие в логгер quickrequest."""
    extra = {"cache_key": event.key}
    if event.age_seconds is not None:
        extra["age_seconds"] = event.age_seconds
    logger.debug(event.event, extra=extra)


def _now_ms() -> float:
    return time.time() * 1000


class MemoryCache:
    """
    Хранилище записей кэша.

    Args:
        clock: Источник времени в миллисекундах (для тестов)

    Example:
        >>> cache = MemoryCache()
        >>> cache.set("https://api.test/items", [1, 2])
        >>> cache.get("https://api.test/items").data
        [1, 2]
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._entries: Dict[str, CacheEntry] = {}
        self._clock = clock or _now_ms

    def now(self) -> float:
        return self._clock()

    def get(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def set(self, key: str, data: Any) -> CacheEntry:
        entry = CacheEntry(data=data, stored_at_ms=self._clock())
        self._entries[key] = entry
        return entry

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))


def try_get_from_cache(
    cache: MemoryCache,
    key: str,
    ttl_ms: float,
    sink: Optional[DebugSink] = None,
) -> Any:
    """
    Попытаться получить данные из кэша.

    Args:
        cache: Хранилище
        key: Ключ кэша (полный URL)
        ttl_ms: Время жизни (мс); <= 0 - кэш выключен
        sink: Получатель debug событий

    Returns:
        Данные или MISSING. Истёкшая запись удаляется и считается промахом.
    """
    if ttl_ms <= 0:
        return MISSING

    entry = cache.get(key)
    if entry is None:
        return MISSING

    age_ms = cache.now() - entry.stored_at_ms
    age_seconds = round(age_ms / 1000)
    if age_ms < ttl_ms:
        if sink:
            sink(DebugEvent("cache hit", key, age_seconds))
        return entry.data

    if sink:
        sink(DebugEvent("cache expired", key, age_seconds))
    cache.delete(key)
    return MISSING


def save_to_cache(
    cache: MemoryCache,
    key: str,
    data: Any,
    sink: Optional[DebugSink] = None,
) -> None:
    """Сохранить данные, перезаписывая запись с текущим временем."""
    cache.set(key, data)
    if sink:
        sink(DebugEvent("cache saved", key))
