"""Progress events for uploads and downloads."""

import inspect
import math
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, Union


@dataclass(frozen=True)
class ProgressEvent:
    """
    Progress of one transfer.

    Attributes:
        loaded_bytes: Bytes transferred so far
        total_bytes: Declared size (0 if unknown)
        percent: 0-100, always 0 while the size is unknown
        from_cache: Synthetic event for a cache hit
        estimated_total: True when total_bytes comes from a declared length
    """

    loaded_bytes: int
    total_bytes: int = 0
    percent: int = 0
    from_cache: bool = False
    estimated_total: bool = False


ProgressCallback = Callable[[ProgressEvent], Union[None, Awaitable[None]]]


def compute_percent(loaded: int, total: int) -> int:
    """Round half up like a browser progress bar would."""
    if total <= 0:
        return 0
    return min(100, int(math.floor(loaded * 100 / total + 0.5)))


def make_progress_event(loaded: int, total: int) -> ProgressEvent:
    return ProgressEvent(
        loaded_bytes=loaded,
        total_bytes=max(total, 0),
        percent=compute_percent(loaded, total),
        estimated_total=total > 0,
    )


def completed_event(loaded: int, total: int) -> ProgressEvent:
    """Final 100% event once a transfer with a known size is done."""
    return ProgressEvent(
        loaded_bytes=loaded,
        total_bytes=total,
        percent=100,
        estimated_total=True,
    )


def cached_event() -> ProgressEvent:
    """Single synthetic event for data served from the cache."""
    return ProgressEvent(loaded_bytes=0, total_bytes=0, percent=100, from_cache=True)


def parse_content_length(headers: Optional[Mapping[str, str]]) -> int:
    """Read Content-Length, 0 when absent or malformed."""
    if headers is None:
        return 0
    value = headers.get("content-length")
    if not value:
        return 0
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


async def maybe_await(value: Any) -> Any:
    """Await hook/callback results that are awaitable, pass others through."""
    if inspect.isawaitable(value):
        return await value
    return value


async def emit(callback: Optional[ProgressCallback], event: ProgressEvent) -> None:
    if callback is not None:
        await maybe_await(callback(event))
