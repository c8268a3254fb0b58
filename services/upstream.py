"""HTTP forwarding to the upstream API."""

import asyncio
from collections.abc import Awaitable, Callable

import httpx

from core.exceptions import ClientDisconnected, UpstreamTimeout, UpstreamUnreachable
from core.request_types import UpstreamTarget

DisconnectCheck = Callable[[], Awaitable[bool]]

# Headers httpx adds on its own; only sent when the caller's request carried them
CLIENT_DEFAULT_HEADERS = ("accept", "accept-encoding", "user-agent")


def wire_url(target: UpstreamTarget) -> httpx.URL:
    """Upstream URL with the resolved path and query placed as-is, escapes untouched."""
    base = httpx.URL(target.base_url)
    base_path = base.raw_path.split(b"?", 1)[0].rstrip(b"/")
    raw_path = (target.resolved_path + target.resolved_query).encode("ascii")
    return base.copy_with(raw_path=base_path + raw_path)


class UpstreamClient:
    """Forward a single request to the upstream, one call per request, never retried."""

    disconnect_poll_interval = 0.25

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def forward(
        self,
        method: str,
        target: UpstreamTarget,
        headers: dict[str, str],
        body: bytes | None,
        *,
        timeout: float,
        is_disconnected: DisconnectCheck | None = None,
    ) -> httpx.Response:
        """Send the request and return the fully read upstream response.

        Raises:
            UpstreamTimeout: no response within ``timeout`` seconds
            UpstreamUnreachable: the upstream could not be reached
            ClientDisconnected: the caller went away while waiting
        """
        request = self._client.build_request(
            method,
            wire_url(target),
            headers=headers,
            content=body or None,
            timeout=timeout,
        )
        for name in CLIENT_DEFAULT_HEADERS:
            if name not in headers:
                request.headers.pop(name, None)

        try:
            return await self._send(request, timeout, is_disconnected)
        except httpx.TimeoutException as e:
            raise UpstreamTimeout(
                f"Upstream did not respond within {timeout:g}s",
                timeout=timeout,
            ) from e
        except httpx.RequestError as e:
            raise UpstreamUnreachable(f"Upstream connection error: {e}") from e

    async def _send(
        self,
        request: httpx.Request,
        timeout: float,
        is_disconnected: DisconnectCheck | None,
    ) -> httpx.Response:
        """Race the upstream call against the timeout and a caller disconnect."""
        sending = asyncio.ensure_future(self._client.send(request))
        tasks = {sending}
        if is_disconnected is not None:
            tasks.add(asyncio.ensure_future(self._wait_for_disconnect(is_disconnected)))

        try:
            done, _ = await asyncio.wait(
                tasks, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        for task in done:
            if task is not sending:
                task.result()  # re-raises a failed disconnect check

        if sending in done:
            return sending.result()
        if done:
            raise ClientDisconnected("Caller closed the connection before the upstream responded")
        raise UpstreamTimeout(f"Upstream did not respond within {timeout:g}s", timeout=timeout)

    async def _wait_for_disconnect(self, is_disconnected: DisconnectCheck) -> None:
        while not await is_disconnected():
            await asyncio.sleep(self.disconnect_poll_interval)
