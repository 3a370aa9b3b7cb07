"""Metadata relay - maps our query vocabulary onto the Meting API's.

Callers speak in `types`/`source`/`count`/`pages`; Meting wants
`type`/`server`/`limit`/`page`. This module owns that translation,
including every default, so nothing else has to know about it.
"""

import logging
import os
from collections.abc import Mapping

import httpx
from fastapi.responses import StreamingResponse

from .protocol import ProxyRejection, UpstreamCall
from .proxy import relay, user_agent_for

logger = logging.getLogger(__name__)

# The aggregation API we front
API_BASE_URL = os.environ.get("METING_API_URL", "https://api.injahow.cn/meting/")

DEFAULT_SERVER = "netease"
ALTERNATE_SERVERS = frozenset({"tencent"})

DEFAULT_COUNT = "30"
DEFAULT_PAGES = "1"

DEFAULT_CONTENT_TYPE = "application/json; charset=utf-8"

# types value -> Meting type, for the lookups keyed by song id
ID_LOOKUP_TYPES = {
    "url": "url",
    "lyric": "lrc",
    "pic": "pic",
}


def _param(params: Mapping[str, str], key: str, default: str | None = None) -> str | None:
    """Get a parameter, treating empty strings as absent."""
    value = params.get(key)
    return value if value else default


def resolve_server(source: str | None) -> str:
    """Unknown or missing sources quietly fall back to netease."""
    return source if source in ALTERNATE_SERVERS else DEFAULT_SERVER


def resolve_metadata_params(params: Mapping[str, str]) -> dict[str, str]:
    """Translate inbound query parameters into Meting API parameters.

    Raises:
        ProxyRejection: 400 for unknown `types` or a missing name/id
    """
    types = _param(params, "types")
    upstream: dict[str, str] = {}

    if types == "search":
        name = _param(params, "name")
        if name is None:
            raise ProxyRejection(400, "Missing search name")
        upstream["type"] = "name"
        upstream["name"] = name
        upstream["limit"] = _param(params, "count", DEFAULT_COUNT)
        upstream["page"] = _param(params, "pages", DEFAULT_PAGES)

    elif types in ID_LOOKUP_TYPES:
        song_id = _param(params, "id")
        if song_id is None:
            raise ProxyRejection(400, "Missing song id")
        upstream["type"] = ID_LOOKUP_TYPES[types]
        upstream["id"] = song_id

        # Bitrate selection only means something when resolving a playable URL
        bitrate = _param(params, "br")
        if types == "url" and bitrate is not None:
            upstream["br"] = bitrate

    else:
        raise ProxyRejection(400, "Unsupported API type")

    upstream["server"] = resolve_server(_param(params, "source"))
    return upstream


def build_metadata_call(params: Mapping[str, str], inbound_headers) -> UpstreamCall:
    """Build the upstream Meting request for a metadata lookup."""
    return UpstreamCall(
        method="GET",
        url=API_BASE_URL,
        params=resolve_metadata_params(params),
        headers={
            "User-Agent": user_agent_for(inbound_headers),
            "Accept": "application/json",
        },
    )


async def proxy_metadata(
    params: Mapping[str, str],
    inbound_headers,
    transport: httpx.AsyncBaseTransport | None = None,
) -> StreamingResponse:
    """Map, forward, and stream a metadata request."""
    call = build_metadata_call(params, inbound_headers)
    logger.info(f"Metadata relay: {dict(call.params)}")
    return await relay(
        call,
        default_content_type=DEFAULT_CONTENT_TYPE,
        transport=transport,
    )
