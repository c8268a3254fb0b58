"""FastAPI application factory."""

import time
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.handlers import handle_health, handle_options, handle_proxy, to_response
from core.config import Config
from core.headers import HeaderPolicy
from core.protocols import RequestLogger
from core.request_types import MountConfig
from core.router import PathResolver
from core.timeouts import TimeoutPolicy
from core.transform import ResponseTranslator
from services.routing_service import ProxyService
from services.upstream import UpstreamClient

VERSION = "0.1.0"
PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def create_app(
    config: Config,
    logger: RequestLogger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    header_policy = HeaderPolicy(
        forward_headers=config.headers.forward_headers,
        expose_headers=config.headers.expose_headers,
    )
    translator = ResponseTranslator(header_policy)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        limits = httpx.Limits(
            max_connections=config.upstream.max_connections,
            max_keepalive_connections=config.upstream.max_keepalive_connections,
        )
        upstream_client = httpx.AsyncClient(
            timeout=config.timeouts.default,
            limits=limits,
            transport=transport,
        )
        app.state.proxy_service = ProxyService(
            upstream=UpstreamClient(upstream_client),
            logger=logger,
            resolver=PathResolver(config.upstream.base_url),
            header_policy=header_policy,
            translator=translator,
            timeouts=TimeoutPolicy(config.timeouts),
        )
        try:
            yield
        finally:
            await upstream_client.aclose()

    app = FastAPI(title="Mount Proxy", version=VERSION, lifespan=lifespan)
    app.state.translator = translator
    app.state.started_at = time.monotonic()

    @app.exception_handler(StarletteHTTPException)
    async def http_exception(request: Request, exc: StarletteHTTPException):
        return to_response(translator.error(exc.status_code, str(exc.detail)))

    @app.exception_handler(RequestValidationError)
    async def validation_exception(request: Request, exc: RequestValidationError):
        return to_response(translator.error(422, "Invalid request"))

    @app.get("/api/health")
    async def health(request: Request):
        return await handle_health(request, VERSION)

    @app.options("/api/health")
    async def health_options():
        return handle_options(header_policy)

    for mount in config.mount_configs():
        _register_mount(app, mount, config, logger, header_policy)

    return app


def _register_mount(
    app: FastAPI,
    mount: MountConfig,
    config: Config,
    logger: RequestLogger,
    header_policy: HeaderPolicy,
) -> None:
    """Bind one mount prefix to the shared proxy pipeline."""

    async def proxy_root(request: Request):
        return await handle_proxy(request, mount, "", config, logger)

    async def proxy_path(request: Request, path: str):
        return await handle_proxy(request, mount, path, config, logger)

    async def preflight():
        return handle_options(header_policy)

    root = mount.prefix.rstrip("/")
    for route_path, endpoint in ((root or "/", proxy_root), (f"{root}/{{path:path}}", proxy_path)):
        app.add_api_route(
            route_path,
            endpoint,
            methods=PROXY_METHODS,
            name=f"proxy_{mount.name}_{endpoint.__name__}",
            include_in_schema=False,
        )
        app.add_api_route(
            route_path,
            preflight,
            methods=["OPTIONS"],
            name=f"preflight_{mount.name}_{endpoint.__name__}",
            include_in_schema=False,
        )
