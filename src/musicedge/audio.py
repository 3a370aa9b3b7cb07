"""Audio relay - streams bytes from the allowed audio host family."""

import logging
import os

import httpx
from fastapi.responses import StreamingResponse

from .hosts import validate_audio_url
from .protocol import ProxyRejection, UpstreamCall
from .proxy import relay, user_agent_for

logger = logging.getLogger(__name__)

# The audio origin refuses requests that don't look like they came from its own site
AUDIO_REFERER = os.environ.get("AUDIO_REFERER", "https://www.kuwo.cn/")

# Audio bytes for a given URL never change
AUDIO_CACHE_CONTROL = "public, max-age=3600"


def build_audio_call(target: str, method: str, inbound_headers) -> UpstreamCall:
    """Turn an audio target into the upstream request we will make.

    Raises:
        ProxyRejection: 400 if the target is not an allowed audio URL
    """
    url = validate_audio_url(target)
    if url is None:
        raise ProxyRejection(400, "Invalid target")

    headers = {
        "User-Agent": user_agent_for(inbound_headers),
        "Referer": AUDIO_REFERER,
        # Byte ranges must describe the bytes we relay, so no transfer compression
        "Accept-Encoding": "identity",
    }

    # Pass Range through so players can seek
    range_header = inbound_headers.get("range")
    if range_header:
        headers["Range"] = range_header

    return UpstreamCall(method=method, url=str(url), headers=headers)


async def proxy_audio(
    target: str,
    method: str,
    inbound_headers,
    transport: httpx.AsyncBaseTransport | None = None,
) -> StreamingResponse:
    """Validate, forward, and stream an audio request."""
    call = build_audio_call(target, method, inbound_headers)
    logger.info(f"Audio relay: {method} {call.url} (range={call.headers.get('Range', 'none')})")
    return await relay(
        call,
        default_cache_control=AUDIO_CACHE_CONTROL,
        transport=transport,
    )
