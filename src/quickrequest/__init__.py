"""QuickRequest - asyncio HTTP client with base URL, retry, GET cache and progress."""

import logging
from importlib.metadata import version, PackageNotFoundError

from .core.client import ClientClosedError, QuickRequestClient, create_client
from .core.config import ClientConfig, RequestOptions, RetryPolicy
from .core.exceptions import (
    HttpError,
    AbortError,
    TimeoutError,
    NetworkError,
    HttpStatusError,
)
from .core.cache import CacheEntry, DebugEvent, MemoryCache
from .core.cancellation import CancellationToken, RequestCancelled
from .core.error_handler import normalize_error
from .core.progress import ProgressEvent
from .core.env_config import load_from_env, load_from_file
from .core.logging import LoggingConfig
from .transports import (
    BufferedResponse,
    HttpxTransport,
    RequestsTransport,
    Transport,
    TransportRequest,
    TransportResponse,
)

# NullHandler: библиотека не пишет в лог, пока приложение не настроит logging
logging.getLogger('quickrequest').addHandler(logging.NullHandler())

try:
    __version__ = version("quickrequest")
except PackageNotFoundError:
    # Package is not installed (development mode)
    __version__ = "0.0.0-dev"

__all__ = [
    # Client
    "QuickRequestClient",
    "create_client",
    "ClientClosedError",
    # Config
    "ClientConfig",
    "RequestOptions",
    "RetryPolicy",
    "LoggingConfig",
    "load_from_env",
    "load_from_file",
    # Exceptions
    "HttpError",
    "AbortError",
    "TimeoutError",
    "NetworkError",
    "HttpStatusError",
    "normalize_error",
    # Cache
    "CacheEntry",
    "DebugEvent",
    "MemoryCache",
    # Cancellation / progress
    "CancellationToken",
    "RequestCancelled",
    "ProgressEvent",
    # Transports
    "BufferedResponse",
    "HttpxTransport",
    "RequestsTransport",
    "Transport",
    "TransportRequest",
    "TransportResponse",
]
