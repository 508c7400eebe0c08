"""Transports: one HTTP exchange each, no policy."""

from .base import (
    BufferedResponse,
    Transport,
    TransportRequest,
    TransportResponse,
    UploadChunkCallback,
)
from .httpx_transport import HttpxResponse, HttpxTransport
from .requests_transport import RequestsResponse, RequestsTransport

__all__ = [
    "BufferedResponse",
    "Transport",
    "TransportRequest",
    "TransportResponse",
    "UploadChunkCallback",
    "HttpxResponse",
    "HttpxTransport",
    "RequestsResponse",
    "RequestsTransport",
]
