"""Request routing - decides which relay handles each request."""

import logging
from collections.abc import Iterable

import httpx
from fastapi import Request, Response

from .audio import proxy_audio
from .headers import preflight_headers
from .metadata import proxy_metadata
from .protocol import AudioIntent, MetadataIntent, ProxyRejection, RequestIntent

logger = logging.getLogger(__name__)

RELAYED_METHODS = ("GET", "HEAD")


def flatten_query(items: Iterable[tuple[str, str]]) -> dict[str, str]:
    """Collapse repeated query keys, keeping the first value seen."""
    params: dict[str, str] = {}
    for key, value in items:
        params.setdefault(key, value)
    return params


def decide_intent(params: dict[str, str]) -> RequestIntent:
    """Pick the relay for a request.

    Selection:
    1. Non-empty `target` parameter -> audio relay
    2. Anything else -> metadata relay with the full parameter set
    """
    target = params.get("target")
    if target:
        return AudioIntent(target=target)
    return MetadataIntent(params=params)


def preflight_response() -> Response:
    """Answer a CORS preflight without going upstream."""
    return Response(status_code=204, headers=preflight_headers())


async def route_request(
    request: Request,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Response:
    """Dispatch one inbound request by method, then by intent."""
    method = request.method.upper()

    if method == "OPTIONS":
        return preflight_response()

    if method not in RELAYED_METHODS:
        raise ProxyRejection(405, "Method not allowed")

    intent = decide_intent(flatten_query(request.query_params.multi_items()))
    logger.debug(f"Routing {method} as {type(intent).__name__}")

    if isinstance(intent, AudioIntent):
        return await proxy_audio(intent.target, method, request.headers, transport=transport)
    return await proxy_metadata(intent.params, request.headers, transport=transport)
