"""FastAPI route handlers."""

import time
from datetime import UTC, datetime
from urllib.parse import quote
from uuid import uuid4

from fastapi import Request, Response

from core.config import Config
from core.exceptions import ProxyError, RequestTooLarge
from core.headers import HeaderPolicy
from core.protocols import RequestLogger
from core.request_types import MountConfig, ProxyRequestContext, ProxyResponse
from ui.log_utils import write_incoming_log

SERVICE_NAME = "mount-proxy"


def to_response(proxy_response: ProxyResponse) -> Response:
    """Convert a ProxyResponse into a Starlette response."""
    return Response(
        content=proxy_response.body,
        status_code=proxy_response.status,
        headers=proxy_response.headers,
    )


# Characters kept as-is in a path segment; "%" keeps existing escapes intact
SEGMENT_SAFE = "!$&'()*+,;=:@-._~%"
# Query strings additionally keep their separators
QUERY_SAFE = SEGMENT_SAFE + "/?"


async def _read_body(request: Request, limit: int) -> bytes:
    """Read the body, refusing it as soon as it passes ``limit`` bytes."""
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        raise RequestTooLarge("Request body too large")

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise RequestTooLarge("Request body too large")
    return bytes(body)


def _raw_segments(request: Request, mount: MountConfig, path: str) -> tuple[str, ...]:
    """Captured segments exactly as they arrived on the wire, escapes included."""
    raw_path = request.scope.get("raw_path") or b""
    raw = raw_path.split(b"?", 1)[0].decode("latin-1")
    prefix = mount.prefix.rstrip("/")
    if raw.startswith(prefix + "/") or raw == prefix:
        remainder = raw[len(prefix):].lstrip("/")
        segments = remainder.split("/") if remainder else []
        return tuple(quote(s, safe=SEGMENT_SAFE, encoding="latin-1") for s in segments)

    # Prefix itself was escaped on the wire: re-encode the decoded segments
    if not path:
        return ()
    return tuple(quote(s, safe=SEGMENT_SAFE.replace("%", "")) for s in path.split("/"))


def _raw_query(request: Request) -> str:
    query = request.scope.get("query_string", b"").decode("latin-1")
    return quote(query, safe=QUERY_SAFE, encoding="latin-1")


async def _build_context(
    request: Request,
    mount: MountConfig,
    path: str,
    config: Config,
) -> ProxyRequestContext:
    """Read the inbound request into a per-request context."""
    raw_body = await _read_body(request, config.limits.max_body_size)

    headers: dict[str, str] = {}
    for key, value in request.headers.items():
        headers[key.lower()] = value  # last write wins

    context = ProxyRequestContext(
        request_id=uuid4().hex[:8],
        method=request.method,
        path_segments=_raw_segments(request, mount, path),
        query=_raw_query(request),
        headers=headers,
        body=raw_body or None,
    )
    if config.proxy.debug:
        write_incoming_log(
            request.method,
            request.url.path,
            headers,
            raw_body.decode("utf-8", errors="replace"),
        )
    return context


async def handle_proxy(
    request: Request,
    mount: MountConfig,
    path: str,
    config: Config,
    logger: RequestLogger,
) -> Response:
    """Forward a request received on a mount to the upstream."""
    translator = request.app.state.translator
    try:
        context = await _build_context(request, mount, path, config)
    except ProxyError as e:
        logger.log_error(mount.name, e.status_code, str(e))
        return to_response(translator.error(e.status_code, str(e)))

    proxy_service = request.app.state.proxy_service
    try:
        result = await proxy_service.handle(mount, context, request.is_disconnected)
    except Exception as e:
        # Unexpected failures still end as JSON with CORS headers
        logger.log_error(mount.name, 500, f"{type(e).__name__}: {e} [{context.request_id}]")
        result = translator.error(
            500,
            "Proxy request failed",
            details=str(e) or type(e).__name__,
            request_id=context.request_id,
        )
    return to_response(result)


def handle_options(header_policy: HeaderPolicy) -> Response:
    """Answer a CORS preflight without contacting the upstream."""
    return Response(status_code=204, headers=header_policy.cors_headers())


async def handle_health(request: Request, version: str) -> Response:
    """Report liveness of the proxy process itself."""
    payload = {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "uptime": int(time.monotonic() - request.app.state.started_at),
        "service": SERVICE_NAME,
        "version": version,
    }
    return to_response(request.app.state.translator.json(200, payload))
