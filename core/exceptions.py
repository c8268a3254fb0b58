"""Custom exception hierarchy for the mount proxy."""

INVALID_JSON_MESSAGE = "Invalid JSON from API"


class ProxyError(Exception):
    """Base exception for all proxy errors.

    Attributes:
        status_code: HTTP status reported to the caller for this failure
    """

    status_code = 500


class ConfigurationError(ProxyError):
    """Raised when configuration is missing or invalid."""


class UpstreamError(ProxyError):
    """Raised when the upstream exchange fails.

    Attributes:
        message: Error message
        mount: Name of the mount the request was routed through (optional)
    """

    status_code = 502

    def __init__(self, message: str, mount: str | None = None) -> None:
        super().__init__(message)
        self.mount = mount


class UpstreamUnreachable(UpstreamError):
    """Raised when a connection to the upstream could not be established."""


class UpstreamTimeout(UpstreamError):
    """Raised when the upstream does not answer within the timeout."""

    status_code = 504

    def __init__(
        self,
        message: str,
        timeout: float | None = None,
        mount: str | None = None,
    ) -> None:
        super().__init__(message, mount=mount)
        self.timeout = timeout


class InvalidUpstreamBody(ProxyError):
    """Upstream responded but its body is not valid JSON.

    The upstream status is kept; only the body is substituted.
    """

    def __init__(self, upstream_status: int, message: str = INVALID_JSON_MESSAGE) -> None:
        super().__init__(message)
        self.status_code = upstream_status


class RequestTooLarge(ProxyError):
    """Request body exceeds size limit."""

    status_code = 413


class ClientDisconnected(ProxyError):
    """Caller closed the connection before the upstream answered."""

    status_code = 499
