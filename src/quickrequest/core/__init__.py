"""Core QuickRequest модули."""

from .config import (
    ClientConfig,
    RequestOptions,
    RetryPolicy,
)
from .exceptions import (
    HttpError,
    AbortError,
    TimeoutError,
    NetworkError,
    HttpStatusError,
)
from .cache import (
    MISSING,
    CacheEntry,
    DebugEvent,
    DebugSink,
    MemoryCache,
)
from .cancellation import CancellationToken, RequestCancelled
from .error_handler import ErrorHandler, normalize_error
from .progress import ProgressEvent, ProgressCallback

__all__ = [
    # Config
    "ClientConfig",
    "RequestOptions",
    "RetryPolicy",
    # Exceptions
    "HttpError",
    "AbortError",
    "TimeoutError",
    "NetworkError",
    "HttpStatusError",
    # Cache
    "MISSING",
    "CacheEntry",
    "DebugEvent",
    "DebugSink",
    "MemoryCache",
    # Cancellation
    "CancellationToken",
    "RequestCancelled",
    # Errors
    "ErrorHandler",
    "normalize_error",
    # Progress
    "ProgressEvent",
    "ProgressCallback",
]
