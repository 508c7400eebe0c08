from .sanitizer import (
    REDACTED,
    add_sensitive_keys,
    is_sensitive_key,
    mask_headers,
    mask_sensitive_data,
    mask_url,
)

__all__ = [
    "REDACTED",
    "add_sensitive_keys",
    "is_sensitive_key",
    "mask_headers",
    "mask_sensitive_data",
    "mask_url",
]
