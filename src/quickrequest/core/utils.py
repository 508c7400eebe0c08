"""
Request assembly helpers.

Includes:
- URL resolution against base_url with query string
- Layered header merge
- Body preparation (JSON by default)
- Response payload decoding
"""

import json
import re
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlencode

DEFAULT_CONTENT_TYPE = "application/json"

_SCHEME_RE = re.compile(r'^[a-zA-Z][a-zA-Z0-9+.\-]*://')


def has_scheme(url: str) -> bool:
    """True for absolute URLs like ``https://host/path``."""
    return bool(_SCHEME_RE.match(url))


def build_query_string(query: Optional[Mapping[str, Any]]) -> str:
    """
    Encode query mapping, skipping None values.

    Keys keep mapping iteration order; list/tuple values repeat the key.

    Examples:
        >>> build_query_string({"id": "5", "skip": None})
        'id=5'
    """
    if not query:
        return ""

    pairs = []
    for key, value in query.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            pairs.extend((key, _query_value(item)) for item in value if item is not None)
        else:
            pairs.append((key, _query_value(value)))
    return urlencode(pairs)


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def resolve_url(base_url: str, path: str, query: Optional[Mapping[str, Any]] = None) -> str:
    """
    Build the full request URL.

    Absolute URLs bypass base_url. Relative paths are joined with exactly
    one '/' between base and path.

    Args:
        base_url: Client base URL (may be empty)
        path: Absolute URL or path
        query: Query parameters

    Returns:
        Resolved URL (the cache key for GET requests)

    Examples:
        >>> resolve_url("https://api.test", "/items", {"id": "5"})
        'https://api.test/items?id=5'
        >>> resolve_url("https://api.test", "http://other.test/x")
        'http://other.test/x'
    """
    path = path or ""
    if has_scheme(path) or not base_url:
        url = path
    else:
        url = f"{base_url.rstrip('/')}/{path.lstrip('/')}"

    query_string = build_query_string(query)
    if not query_string:
        return url
    separator = '&' if '?' in url else '?'
    return f"{url}{separator}{query_string}"


def merge_headers(
    defaults: Optional[Mapping[str, str]],
    per_request: Optional[Mapping[str, Optional[str]]],
) -> Dict[str, str]:
    """
    Merge header layers: JSON content type -> client defaults -> per request.

    Later layers win key by key, compared case-insensitively; the later
    spelling of the name is kept. A None value removes the header.

    Examples:
        >>> merge_headers({"X-App": "1"}, {"content-type": "text/plain"})
        {'X-App': '1', 'content-type': 'text/plain'}
    """
    merged: Dict[str, str] = {"Content-Type": DEFAULT_CONTENT_TYPE}
    for layer in (defaults, per_request):
        if not layer:
            continue
        for name, value in layer.items():
            for existing in [k for k in merged if k.lower() == name.lower()]:
                del merged[existing]
            if value is not None:
                merged[name] = value
    return merged


def get_header(headers: Optional[Mapping[str, Any]], name: str) -> Optional[Any]:
    """Case-insensitive header lookup for plain dicts."""
    if not headers:
        return None
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def is_json_content_type(content_type: Optional[str]) -> bool:
    return bool(content_type) and "application/json" in content_type.lower()


def prepare_body(headers: Mapping[str, str], body: Any) -> Any:
    """
    Prepare the request body for the transport.

    Under an application/json content type the body is serialized to JSON
    text; already encoded bytes are sent as is. Any other content type
    passes the body through unchanged.
    """
    if body is None:
        return None
    content_type = get_header(headers, "Content-Type")
    if not is_json_content_type(content_type):
        return body
    if isinstance(body, (bytes, bytearray)):
        return body
    return json.dumps(body, ensure_ascii=False, separators=(',', ':'))


def _charset(content_type: Optional[str]) -> str:
    if content_type:
        for part in content_type.split(';')[1:]:
            key, _, value = part.strip().partition('=')
            if key.lower() == 'charset' and value:
                return value.strip('"\'')
    return 'utf-8'


def parse_text(text: str, content_type: Optional[str]) -> Any:
    """
    Parse body text: JSON when declared, text otherwise.

    An empty JSON body (HEAD, 204) parses to None.

    Raises:
        ValueError: Body declared as JSON is not valid JSON
    """
    if not is_json_content_type(content_type):
        return text
    if not text.strip():
        return None
    return json.loads(text)


def decode_payload(payload: bytes, content_type: Optional[str]) -> Any:
    """Decode a fully read body with the declared charset and parse it."""
    return parse_text(payload.decode(_charset(content_type), errors="replace"), content_type)


def is_get_request(method: Optional[str]) -> bool:
    return (method or "GET").upper() == "GET"


def body_as_bytes(body: Any) -> Optional[bytes]:
    """Bytes of a prepared body when its size is knowable, else None."""
    if isinstance(body, str):
        return body.encode('utf-8')
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    return None
