"""HTTP relay logic for forwarding one request upstream and streaming it back."""

import logging
import os
from collections.abc import AsyncIterator

import httpx
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from .headers import DEFAULT_CACHE_CONTROL, sanitize_headers
from .protocol import UpstreamCall

logger = logging.getLogger(__name__)

# Sent upstream when the client didn't tell us who it is
FALLBACK_USER_AGENT = os.environ.get("FALLBACK_USER_AGENT", "Mozilla/5.0")

# No timeout of our own - the hosting environment decides how long a request lives
UPSTREAM_TIMEOUT = httpx.Timeout(None)


def user_agent_for(inbound_headers) -> str:
    """The client's User-Agent, or our fallback if it sent none."""
    user_agent = inbound_headers.get("user-agent")
    return user_agent if user_agent is not None else FALLBACK_USER_AGENT


async def _release(response: httpx.Response, client: httpx.AsyncClient) -> None:
    """Close the upstream response and its client. Safe to call more than once."""
    await response.aclose()
    await client.aclose()


async def _stream_body(
    response: httpx.Response,
    client: httpx.AsyncClient,
) -> AsyncIterator[bytes]:
    """Yield upstream chunks as they arrive, then release the connection.

    The finally block also runs when the downstream goes away mid-stream,
    which stops the upstream read.
    """
    try:
        async for chunk in response.aiter_bytes():
            yield chunk
    finally:
        await _release(response, client)


async def relay(
    call: UpstreamCall,
    *,
    default_cache_control: str = DEFAULT_CACHE_CONTROL,
    default_content_type: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> StreamingResponse:
    """Issue `call` upstream and relay the response without buffering it.

    Args:
        call: The upstream request to make
        default_cache_control: Cache-Control to use when upstream sends none
        default_content_type: Content-Type to use when upstream sends none
        transport: Optional httpx transport (tests swap in a MockTransport)

    Upstream transport errors are not translated; they propagate to the caller.
    """
    # One client per request: nothing is shared between invocations
    client = httpx.AsyncClient(transport=transport, timeout=UPSTREAM_TIMEOUT)
    request = client.build_request(
        method=call.method,
        url=call.url,
        headers=dict(call.headers),
        params=dict(call.params) if call.params is not None else None,
    )

    try:
        upstream = await client.send(request, stream=True)
    except BaseException:
        await client.aclose()
        raise

    headers = sanitize_headers(upstream.headers, default_cache_control=default_cache_control)
    if default_content_type is not None:
        headers.setdefault("content-type", default_content_type)

    # httpx decodes content-encoding while streaming, so the upstream length
    # no longer describes the bytes we send
    if "content-encoding" in upstream.headers:
        headers.pop("content-length", None)

    logger.debug(f"Upstream {call.method} {request.url} -> {upstream.status_code}")

    return StreamingResponse(
        _stream_body(upstream, client),
        status_code=upstream.status_code,
        headers=headers,
        # Runs even if the client leaves before the first chunk is pulled
        background=BackgroundTask(_release, upstream, client),
    )
