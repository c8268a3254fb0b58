"""Proxy pipeline shared by every mount."""

import time

from core.exceptions import ProxyError, UpstreamTimeout
from core.headers import HeaderPolicy
from core.protocols import RequestLogger
from core.request_types import MountConfig, ProxyRequestContext, ProxyResponse
from core.router import PathResolver
from core.timeouts import TimeoutPolicy
from core.transform import ResponseTranslator
from services.upstream import DisconnectCheck, UpstreamClient


class ProxyService:
    """Resolve, filter, forward and translate one request for a mount."""

    def __init__(
        self,
        upstream: UpstreamClient,
        logger: RequestLogger,
        resolver: PathResolver,
        header_policy: HeaderPolicy,
        translator: ResponseTranslator,
        timeouts: TimeoutPolicy,
    ) -> None:
        self._upstream = upstream
        self._logger = logger
        self._resolver = resolver
        self._headers = header_policy
        self._translator = translator
        self._timeouts = timeouts

    async def handle(
        self,
        mount: MountConfig,
        context: ProxyRequestContext,
        is_disconnected: DisconnectCheck | None = None,
    ) -> ProxyResponse:
        """Run the pipeline; failures come back as JSON error responses."""
        start = time.perf_counter()
        target = self._resolver.resolve(mount, context.path_segments, context.query)
        headers = self._headers.filter_inbound(context.headers)
        timeout = self._timeouts.timeout_for(context.method, context.path)

        try:
            raw = await self._upstream.forward(
                context.method,
                target,
                headers,
                context.body,
                timeout=timeout,
                is_disconnected=is_disconnected,
            )
        except UpstreamTimeout as e:
            self._logger.log_error(mount.name, e.status_code, f"{e} ({target.url})")
            return self._translator.error(
                e.status_code,
                "Request timeout",
                details=f"The upstream request took too long to respond (timeout: {timeout:g}s)",
                url=target.url,
                request_id=context.request_id,
            )
        except ProxyError as e:
            self._logger.log_error(mount.name, e.status_code, f"{e} ({target.url})")
            return self._translator.error(
                e.status_code,
                "Proxy request failed",
                details=str(e),
                request_id=context.request_id,
            )

        response = self._translator.translate(raw)
        if response.invalid_body:
            self._logger.log_error(
                mount.name, response.status, f"Invalid JSON from {target.url}"
            )
        elif response.status >= 400:
            self._logger.log_error(mount.name, response.status, raw.text[:200])

        self._logger.log_request(
            mount.name,
            context.method,
            target.url,
            response.status,
            duration_ms=(time.perf_counter() - start) * 1000,
            request_id=context.request_id,
        )
        return response
