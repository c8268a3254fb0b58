"""Shared request data types."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class MountConfig:
    """A registered route family and the upstream prefix it maps onto."""

    name: str
    prefix: str
    base_path: str


@dataclass(frozen=True)
class ProxyRequestContext:
    """Everything the pipeline needs from one inbound request."""

    request_id: str
    method: str
    path_segments: tuple[str, ...]
    query: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None

    @property
    def path(self) -> str:
        return "/".join(self.path_segments)


@dataclass(frozen=True)
class UpstreamTarget:
    """Resolved upstream location for a single request."""

    base_url: str
    resolved_path: str
    resolved_query: str = ""

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.resolved_path}{self.resolved_query}"


@dataclass(frozen=True)
class ProxyResponse:
    """Outbound response produced by the proxy."""

    status: int
    headers: dict[str, str]
    body: bytes | None = None
    parsed_json: Any = None
    invalid_body: bool = False
