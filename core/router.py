"""Upstream path resolution for mounted routes."""

import re
from collections.abc import Sequence

from core.request_types import MountConfig, UpstreamTarget

_DUPLICATE_SLASHES = re.compile(r"/{2,}")


class PathResolver:
    """Map a mount and captured path segments onto the upstream URL."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")

    def resolve(
        self,
        mount: MountConfig,
        path_segments: Sequence[str],
        query: str = "",
    ) -> UpstreamTarget:
        """Build the upstream target; segments and query are passed through as received."""
        return UpstreamTarget(
            base_url=self.base_url,
            resolved_path=self.resolve_path(mount.base_path, path_segments),
            resolved_query=f"?{query}" if query else "",
        )

    @staticmethod
    def resolve_path(base_path: str, path_segments: Sequence[str]) -> str:
        if path_segments:
            path = f"/{base_path}/" + "/".join(path_segments)
        else:
            # Proxy root: keep the base path exactly, no added trailing slash
            path = f"/{base_path}"
        return _DUPLICATE_SLASHES.sub("/", path)
