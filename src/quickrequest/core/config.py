"""
Система конфигурации QuickRequest.

ClientConfig и RetryPolicy immutable (frozen dataclasses): один конфиг
принадлежит одному клиенту на всё время его жизни.
RequestOptions создаётся на каждый вызов; хуки получают копию.
"""

import copy
from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Mapping,
    Optional,
    TYPE_CHECKING,
    Union,
)

if TYPE_CHECKING:
    from .cancellation import CancellationToken
    from .logging import LoggingConfig
    from .progress import ProgressCallback

# before_request(options) -> options | None (может быть корутиной)
BeforeRequestHook = Callable[["RequestOptions"], Union[Optional["RequestOptions"], Awaitable[Optional["RequestOptions"]]]]

# after_response(response | None, options, error=None) -> response | None
AfterResponseHook = Callable[..., Any]

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# RETRY POLICY
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class RetryPolicy:
    """
    Политика повторов.

    Args:
        max_attempts: Максимум попыток (включая первую). <= 1 = без повторов
        base_delay_ms: Базовая задержка (мс)
        max_delay_ms: Максимальная задержка (мс)
        backoff_factor: Множитель exponential backoff

    Examples:
        >>> RetryPolicy(max_attempts=3, base_delay_ms=800)
        >>> RetryPolicy.from_value({"maxAttempts": 5})
    """
    max_attempts: int = 1
    base_delay_ms: float = 1000
    max_delay_ms: float = 10000
    backoff_factor: float = 2

    def __post_init__(self):
        """Валидация. max_attempts <= 1 означает одну попытку без повторов."""
        if self.max_attempts < 1:
            object.__setattr__(self, 'max_attempts', 1)
        if self.base_delay_ms < 0:
            raise ValueError("base_delay_ms must be non-negative")
        if self.max_delay_ms < 0:
            raise ValueError("max_delay_ms must be non-negative")
        if self.backoff_factor < 1:
            raise ValueError("backoff_factor must be >= 1")

    @property
    def enabled(self) -> bool:
        """Включён ли цикл повторов."""
        return self.max_attempts > 1

    @classmethod
    def from_value(
        cls,
        value: Union['RetryPolicy', Mapping[str, Any], None],
        default: Optional['RetryPolicy'] = None,
    ) -> 'RetryPolicy':
        """
        Привести значение опции retry к RetryPolicy.

        Принимает RetryPolicy, словарь (snake_case или camelCase ключи)
        или None. Отсутствующие ключи берутся из default.

        Args:
            value: Значение из опций запроса
            default: Политика клиента по умолчанию

        Returns:
            RetryPolicy
        """
        base = default or cls()
        if value is None:
            return base
        if isinstance(value, RetryPolicy):
            return value

        aliases = {
            "maxAttempts": "max_attempts",
            "baseDelayMs": "base_delay_ms",
            "maxDelayMs": "max_delay_ms",
            "backoffFactor": "backoff_factor",
        }
        known = {f.name for f in fields(cls)}
        updates = {}
        for key, item in value.items():
            name = aliases.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown retry option: {key}")
            if item is not None:
                updates[name] = item
        return replace(base, **updates)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CLIENT CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _freeze_dict(d: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    """Convert mapping to immutable MappingProxyType."""
    if d is None:
        return MappingProxyType({})
    return MappingProxyType(dict(d))

@dataclass(frozen=True)
class ClientConfig:
    """
    Конфигурация клиента.

    Args:
        base_url: Базовый URL для относительных путей
        headers: Заголовки по умолчанию
        timeout_ms: Таймаут попытки по умолчанию (мс, 0 = выключен)
        cache_ttl_ms: Время жизни кэша GET ответов (мс, 0 = кэш выключен)
        before_request: Хук перед запросом (один раз на вызов)
        after_response: Хук после ответа / при ошибке
        retry: Политика повторов по умолчанию
        logging: Конфигурация логирования (None = без логгера клиента)

    Examples:
        >>> config = ClientConfig(base_url="https://api.example.com")
        >>> config = ClientConfig.create(timeout_ms=8000, cache_ttl_ms=30_000)
    """
    base_url: str = ""
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    timeout_ms: float = 0
    cache_ttl_ms: float = 0
    before_request: Optional[BeforeRequestHook] = None
    after_response: Optional[AfterResponseHook] = None
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    logging: Optional['LoggingConfig'] = None

    def __post_init__(self):
        """Валидация и заморозка заголовков."""
        if not isinstance(self.headers, MappingProxyType):
            object.__setattr__(self, 'headers', _freeze_dict(self.headers))
        if self.base_url is None:
            object.__setattr__(self, 'base_url', "")
        if self.timeout_ms is None:
            object.__setattr__(self, 'timeout_ms', 0)
        if self.cache_ttl_ms is None:
            object.__setattr__(self, 'cache_ttl_ms', 0)
        if self.timeout_ms < 0:
            raise ValueError("timeout_ms must be non-negative")
        if self.cache_ttl_ms < 0:
            raise ValueError("cache_ttl_ms must be non-negative")

    @property
    def cache_enabled(self) -> bool:
        return self.cache_ttl_ms > 0

    @classmethod
    def create(
        cls,
        base_url: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout_ms: float = 0,
        cache_ttl_ms: float = 0,
        before_request: Optional[BeforeRequestHook] = None,
        after_response: Optional[AfterResponseHook] = None,
        retry: Union[RetryPolicy, Mapping[str, Any], None] = None,
        logging: Optional['LoggingConfig'] = None,
    ) -> 'ClientConfig':
        """
        Удобный конструктор конфигурации.

        Args:
            base_url: Базовый URL
            headers: Заголовки по умолчанию
            timeout_ms: Таймаут (мс)
            cache_ttl_ms: TTL кэша (мс)
            before_request: Хук перед запросом
            after_response: Хук после ответа
            retry: RetryPolicy или словарь опций повтора
            logging: Конфигурация логирования

        Returns:
            ClientConfig instance

        Examples:
            >>> ClientConfig.create(base_url="https://api.test", retry={"max_attempts": 3})
        """
        return cls(
            base_url=base_url or "",
            headers=headers or {},
            timeout_ms=timeout_ms or 0,
            cache_ttl_ms=cache_ttl_ms or 0,
            before_request=before_request,
            after_response=after_response,
            retry=RetryPolicy.from_value(retry),
            logging=logging,
        )

    def with_headers(self, headers: Mapping[str, str]) -> 'ClientConfig':
        """
        Создать новый конфиг с дополнительными заголовками.

        Example:
            >>> new_config = config.with_headers({"X-API-Key": "secret"})
        """
        merged = dict(self.headers)
        merged.update(headers)
        return replace(self, headers=merged)

    def with_timeout(self, timeout_ms: float) -> 'ClientConfig':
        """Создать новый конфиг с изменённым таймаутом."""
        return replace(self, timeout_ms=timeout_ms)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# REQUEST OPTIONS
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass
class RequestOptions:
    """
    Опции одного вызова.

    После before_request не изменяются: одни и те же опции переиспользуются
    во всех попытках.

    Attributes:
        method: HTTP метод
        url: Абсолютный URL или путь относительно base_url
        query: Query параметры (None значения пропускаются)
        headers: Заголовки запроса (перекрывают заголовки клиента)
        body: Тело (сериализуется в JSON для application/json)
        timeout_ms: Таймаут попытки (перекрывает таймаут клиента)
        signal: Токен отмены вызывающего кода
        retry: Политика повторов (RetryPolicy или словарь)
        on_upload_progress: Callback прогресса отправки
        on_download_progress: Callback прогресса загрузки
        use_cache: None - по правилам клиента, False - мимо кэша,
                   True - кэш даже при on_download_progress
        metadata: Свободное место для данных хуков
    """

    method: str = "GET"
    url: str = ""
    query: Optional[Mapping[str, Any]] = None
    headers: Optional[Mapping[str, Optional[str]]] = None
    body: Any = None
    timeout_ms: Optional[float] = None
    signal: Optional['CancellationToken'] = None
    retry: Union[RetryPolicy, Mapping[str, Any], None] = None
    on_upload_progress: Optional['ProgressCallback'] = None
    on_download_progress: Optional['ProgressCallback'] = None
    use_cache: Optional[bool] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.method = (self.method or "GET").upper()

    def copy(self) -> 'RequestOptions':
        """
        Создать копию для передачи в хук.

        Словари копируются, тело, токен и callbacks - по ссылке.
        """
        return replace(
            self,
            query=dict(self.query) if self.query is not None else None,
            headers=dict(self.headers) if self.headers is not None else None,
            metadata=copy.copy(self.metadata),
        )
