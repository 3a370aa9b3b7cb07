"""Audio host allowlist.

This is the one thing standing between us and being an open relay, so the
check is deliberately narrow: kuwo.cn or a subdomain of it, over http(s).
"""

import logging
import re

import httpx

logger = logging.getLogger(__name__)

ALLOWED_AUDIO_DOMAIN = "kuwo.cn"
AUDIO_HOST_PATTERN = re.compile(r"(^|\.)" + re.escape(ALLOWED_AUDIO_DOMAIN) + r"$", re.IGNORECASE)

FORWARDABLE_SCHEMES = ("http", "https")


def is_allowed_audio_host(hostname: str | None) -> bool:
    """True for the bare allowed domain or any subdomain of it."""
    if not hostname:
        return False
    return AUDIO_HOST_PATTERN.search(hostname) is not None


def validate_audio_url(raw_url: str) -> httpx.URL | None:
    """Validate a candidate audio URL and force it onto plain http.

    The audio origin only speaks plain HTTP, so https targets are rewritten
    rather than rejected. Parsing goes through httpx.URL because that is the
    parser that will actually send the request.

    Returns the normalized URL, or None if the target is not allowed.
    """
    try:
        url = httpx.URL(raw_url)
    except (httpx.InvalidURL, TypeError) as e:
        logger.debug(f"Unparsable audio target {raw_url!r}: {e}")
        return None

    if not url.is_absolute_url:
        return None
    if url.scheme not in FORWARDABLE_SCHEMES:
        return None
    if not is_allowed_audio_host(url.host):
        logger.debug(f"Audio host not allowed: {url.host!r}")
        return None

    return url.copy_with(scheme="http")
