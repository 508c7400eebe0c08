"""
Log filters: correlation id and static fields.

The correlation id lives in a ContextVar, so every asyncio task (one per
client call) sees its own value.
"""

import contextvars
import logging
import uuid
from typing import Any, Dict, Optional

_correlation_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "quickrequest_correlation_id", default=None
)


def new_correlation_id() -> str:
    return uuid.uuid4().hex


def set_correlation_id(correlation_id: Optional[str]) -> contextvars.Token:
    """
    Set correlation id for the current context.

    Returns:
        Token for reset_correlation_id()
    """
    return _correlation_id.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


def reset_correlation_id(token: contextvars.Token) -> None:
    _correlation_id.reset(token)


class CorrelationIdFilter(logging.Filter):
    """Adds `correlation_id` to records logged inside a client call."""

    def filter(self, record: logging.LogRecord) -> bool:
        correlation_id = get_correlation_id()
        if correlation_id:
            record.correlation_id = correlation_id
        return True


class ExtraFieldsFilter(logging.Filter):
    """
    Adds static fields (service, environment, ...) to every record.

    Fields already present on the record are not overwritten.
    """

    def __init__(self, extra_fields: Dict[str, Any]):
        super().__init__()
        self.extra_fields = extra_fields

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.extra_fields.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
