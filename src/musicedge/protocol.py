"""The request model - intents, upstream calls, and rejections.

A request is decided once, at the door: either it wants audio bytes from an
allowed host, or it wants metadata from the aggregation API. Everything
downstream works from that decision instead of re-reading the query string.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


@dataclass(frozen=True)
class AudioIntent:
    """Relay audio bytes from `target` (not yet validated)."""

    target: str


@dataclass(frozen=True)
class MetadataIntent:
    """Relay a metadata lookup described by the inbound query parameters."""

    params: Mapping[str, str]

    def __post_init__(self):
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    def __eq__(self, other):
        if not isinstance(other, MetadataIntent):
            return NotImplemented
        return dict(self.params) == dict(other.params)

    def __hash__(self):
        return hash(tuple(sorted(self.params.items())))


RequestIntent = AudioIntent | MetadataIntent


@dataclass(frozen=True)
class UpstreamCall:
    """Everything needed to issue one upstream request. Built fresh per request."""

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    # None means "use the URL's query string as-is"
    params: Mapping[str, str] | None = None


class ProxyRejection(Exception):
    """The client asked for something we won't forward.

    Raised before any upstream contact; the app turns it into a short
    plain-text response.
    """

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
