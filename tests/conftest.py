import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from core.config import Config, UpstreamSettings

UPSTREAM = "http://upstream.test"


class RecordingLogger:
    """RequestLogger that keeps everything in memory."""

    def __init__(self):
        self.requests = []
        self.errors = []

    def log_request(self, mount, method, url, status, *, duration_ms, request_id):
        self.requests.append((mount, method, url, status))

    def log_error(self, route, status, message):
        self.errors.append((route, status, message))


class FakeUpstream:
    """Mock upstream that records every request it receives."""

    def __init__(self, handler=None):
        self.calls: list[httpx.Request] = []
        self.handler = handler or (lambda request: httpx.Response(200, json={"ok": True}))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        return self.handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def config():
    return Config(upstream=UpstreamSettings(base_url=UPSTREAM))


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def client(config, logger, upstream):
    app = create_app(config, logger, transport=upstream.transport)
    with TestClient(app) as test_client:
        yield test_client
