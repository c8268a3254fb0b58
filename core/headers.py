"""Header policy for upstream requests and outbound responses."""

from collections.abc import Iterable, Mapping

# Never forwarded in either direction; the transports recompute them
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "host",
        "content-length",
        "keep-alive",
        "transfer-encoding",
        "te",
        "trailer",
        "upgrade",
        "proxy-authorization",
        "proxy-authenticate",
    }
)

# httpx has already decoded the body, so the upstream encoding no longer applies
FRAMING_HEADERS = frozenset({"content-length", "content-encoding", "transfer-encoding", "connection"})

INBOUND_HEADERS = ("authorization", "content-type")

OUTBOUND_HEADERS = (
    "content-type",
    "cache-control",
    "etag",
    "expires",
    "last-modified",
    "pragma",
    "vary",
    "age",
)

CORS_METHODS = "GET, POST, PUT, PATCH, DELETE, OPTIONS"
CORS_BASE_HEADERS = ("Content-Type", "Authorization")


class HeaderPolicy:
    """Decide which headers cross the proxy in each direction."""

    def __init__(
        self,
        forward_headers: Iterable[str] = (),
        expose_headers: Iterable[str] = (),
    ) -> None:
        self._forward_extra = tuple(h.lower() for h in forward_headers)
        self._inbound = frozenset(INBOUND_HEADERS + self._forward_extra) - HOP_BY_HOP_HEADERS
        self._outbound = (
            frozenset(OUTBOUND_HEADERS + tuple(h.lower() for h in expose_headers)) - FRAMING_HEADERS
        )

    def filter_inbound(self, headers: Mapping[str, str]) -> dict[str, str]:
        """Keep auth, content-type and allow-listed headers; values are copied unchanged."""
        return self._filter(headers, self._inbound)

    def filter_outbound(self, headers: Mapping[str, str]) -> dict[str, str]:
        """Keep content-type and caching headers from an upstream response."""
        return self._filter(headers, self._outbound)

    def cors_headers(self) -> dict[str, str]:
        """CORS headers attached to every response the proxy produces."""
        allow_headers = list(CORS_BASE_HEADERS)
        allow_headers.extend(h for h in self._forward_extra if h not in INBOUND_HEADERS)
        return {
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": CORS_METHODS,
            "Access-Control-Allow-Headers": ", ".join(allow_headers),
        }

    @staticmethod
    def _filter(headers: Mapping[str, str], allowed: frozenset[str]) -> dict[str, str]:
        filtered: dict[str, str] = {}
        for key, value in headers.items():
            key_lower = key.lower()
            if key_lower in allowed:
                filtered[key_lower] = str(value)
        return filtered
