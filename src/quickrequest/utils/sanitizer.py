"""
Маскирование чувствительных данных перед записью в лог.

Логгер клиента пропускает через mask_sensitive_data() все поля записи,
так что токены из заголовков и query не попадают в лог.
"""

import re
from typing import Any, Dict, Iterable, Mapping
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

REDACTED = "***REDACTED***"

# Чувствительные ключи (сравнение без учёта регистра, '-' == '_')
SENSITIVE_KEYS = {
    'password', 'passwd', 'pwd',
    'token', 'access_token', 'refresh_token', 'id_token', 'jwt',
    'secret', 'client_secret', 'api_secret',
    'api_key', 'apikey', 'x_api_key', 'private_key',
    'authorization', 'proxy_authorization', 'auth',
    'cookie', 'set_cookie', 'session', 'session_id', 'csrf_token', 'xsrf_token',
    'credentials',
}

# Значения внутри произвольных строк
SENSITIVE_PATTERNS = [
    (re.compile(r'(Bearer\s+)[A-Za-z0-9\-._~+/]+=*', re.IGNORECASE), r'\1' + REDACTED),
    (re.compile(r'(Basic\s+)[A-Za-z0-9+/]+=*', re.IGNORECASE), r'\1' + REDACTED),
    (re.compile(r'((?:api[_-]?key|token|password)=)[^\s&,;]+', re.IGNORECASE), r'\1' + REDACTED),
]


def _normalize_key(key: Any) -> str:
    return str(key).lower().replace('-', '_')


def is_sensitive_key(key: Any) -> bool:
    return _normalize_key(key) in SENSITIVE_KEYS


def add_sensitive_keys(keys: Iterable[str]) -> None:
    """
    Расширить набор чувствительных ключей.

    Example:
        >>> add_sensitive_keys(["X-Tenant-Secret"])
    """
    SENSITIVE_KEYS.update(_normalize_key(key) for key in keys)


def mask_sensitive_data(data: Any, mask: str = REDACTED) -> Any:
    """
    Рекурсивно замаскировать словари, списки и строки.

    Исходные данные не изменяются.

    Examples:
        >>> mask_sensitive_data({"user": "alice", "password": "s3cret"})
        {'user': 'alice', 'password': '***REDACTED***'}
        >>> mask_sensitive_data("Authorization: Bearer abc.def")
        'Authorization: Bearer ***REDACTED***'
    """
    if data is None or isinstance(data, (bool, int, float)):
        return data
    if isinstance(data, str):
        for pattern, replacement in SENSITIVE_PATTERNS:
            data = pattern.sub(replacement.replace(REDACTED, mask), data)
        return data
    if isinstance(data, Mapping):
        return {
            key: mask if is_sensitive_key(key) else mask_sensitive_data(value, mask)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return type(data)(mask_sensitive_data(item, mask) for item in data)
    return data


def mask_headers(headers: Mapping[str, Any], mask: str = REDACTED) -> Dict[str, Any]:
    """Заголовки с замаскированными значениями (Authorization, Cookie, ...)."""
    return {
        name: mask if is_sensitive_key(name) else value
        for name, value in headers.items()
    }


def mask_url(url: str, mask: str = REDACTED) -> str:
    """
    Замаскировать пароль в userinfo и чувствительные query параметры.

    Examples:
        >>> mask_url("https://api.test/items?token=abc&page=2")
        'https://api.test/items?token=%2A%2A%2AREDACTED%2A%2A%2A&page=2'
    """
    parts = urlsplit(url)
    netloc = parts.netloc
    if parts.password:
        netloc = netloc.replace(f":{parts.password}@", f":{mask}@", 1)

    query = parts.query
    if query:
        pairs = parse_qsl(query, keep_blank_values=True)
        if any(is_sensitive_key(key) for key, _ in pairs):
            query = urlencode([
                (key, mask if is_sensitive_key(key) else value)
                for key, value in pairs
            ])

    return urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))
