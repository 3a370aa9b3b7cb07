"""Response header policy - what upstream headers the client gets to see.

Upstream responses carry all sorts of things we don't want to relay: cookies,
server identity, their own CORS policy. Everything outside a short allowlist
is dropped, and our own CORS header is always set on the way out.
"""

from collections.abc import Iterable, Mapping

# Headers that survive the trip back to the client
SAFE_RESPONSE_HEADERS = frozenset({
    "content-type",
    "cache-control",
    "accept-ranges",
    "content-length",
    "content-range",
    "etag",
    "last-modified",
    "expires",
})

DEFAULT_CACHE_CONTROL = "no-store"

ALLOWED_METHODS = "GET,HEAD,OPTIONS"
PREFLIGHT_MAX_AGE = "86400"

HeaderSource = Mapping[str, str] | Iterable[tuple[str, str]] | None


def _header_items(headers: HeaderSource) -> Iterable[tuple[str, str]]:
    """Yield (name, value) pairs from whatever header container we were given."""
    if headers is None:
        return ()
    if hasattr(headers, "multi_items"):
        # httpx.Headers / starlette Headers keep repeated names apart
        return headers.multi_items()
    if isinstance(headers, Mapping):
        return headers.items()
    return headers


def sanitize_headers(
    headers: HeaderSource,
    default_cache_control: str = DEFAULT_CACHE_CONTROL,
) -> dict[str, str]:
    """Build the client-facing header set from upstream headers.

    Args:
        headers: Upstream headers, or None when there is no upstream response
        default_cache_control: Used when no Cache-Control survives filtering

    Returns:
        New dict keyed by lowercased header name. Always contains
        cache-control and access-control-allow-origin.
    """
    safe: dict[str, str] = {}
    for name, value in _header_items(headers):
        key = name.lower()
        if key not in SAFE_RESPONSE_HEADERS:
            continue
        if key in safe:
            safe[key] = f"{safe[key]}, {value}"
        else:
            safe[key] = value

    safe.setdefault("cache-control", default_cache_control)
    safe["access-control-allow-origin"] = "*"
    return safe


def preflight_headers() -> dict[str, str]:
    """Headers for the OPTIONS preflight answer."""
    headers = sanitize_headers(None)
    headers.update({
        "access-control-allow-methods": ALLOWED_METHODS,
        "access-control-allow-headers": "*",
        "access-control-max-age": PREFLIGHT_MAX_AGE,
    })
    return headers
