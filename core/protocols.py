"""Shared protocol definitions."""

from typing import Protocol


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard)."""

    def log_request(
        self,
        mount: str,
        method: str,
        url: str,
        status: int,
        *,
        duration_ms: float,
        request_id: str,
    ) -> None: ...
    def log_error(self, route: str, status: int, message: str) -> None: ...
