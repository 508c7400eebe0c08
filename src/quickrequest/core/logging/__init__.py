"""
Logging for QuickRequest clients.

Example:
    >>> from quickrequest import QuickRequestClient
    >>> from quickrequest.core.logging import LoggingConfig
    >>>
    >>> client = QuickRequestClient(
    ...     "https://api.example.com",
    ...     logging=LoggingConfig.create(level="DEBUG", format="json"),
    ... )
"""

from .config import LoggingConfig, LogLevel, LogFormat
from .logger import QuickRequestLogger, DEFAULT_LOGGER_NAME
from .formatters import JSONFormatter, TextFormatter, get_formatter
from .filters import (
    CorrelationIdFilter,
    ExtraFieldsFilter,
    get_correlation_id,
    new_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from .handlers import create_console_handler, create_file_handler

__all__ = [
    # Config
    "LoggingConfig",
    "LogLevel",
    "LogFormat",
    # Logger
    "QuickRequestLogger",
    "DEFAULT_LOGGER_NAME",
    # Formatters
    "JSONFormatter",
    "TextFormatter",
    "get_formatter",
    # Filters
    "CorrelationIdFilter",
    "ExtraFieldsFilter",
    "get_correlation_id",
    "new_correlation_id",
    "reset_correlation_id",
    "set_correlation_id",
    # Handlers
    "create_console_handler",
    "create_file_handler",
]
