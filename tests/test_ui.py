import json

import pytest

import ui.dashboard as dashboard_module
from cli import validate_upstream
from core.config import Config, UpstreamSettings
from core.exceptions import ConfigurationError
from ui.dashboard import Dashboard
from ui.log_utils import clear_logs, redact_headers, write_cli_log, write_incoming_log


def test_redact_headers_masks_secrets():
    redacted = redact_headers(
        {
            "authorization": "Bearer 0123456789abcdef",
            "x-api-key": "short",
            "content-type": "application/json",
        }
    )
    assert redacted["authorization"] == "Bearer...cdef"
    assert redacted["x-api-key"] == "***"
    assert redacted["content-type"] == "application/json"


def test_incoming_log_is_redacted(tmp_path):
    path = write_incoming_log(
        "POST",
        "/proxy/auth/login",
        {"authorization": "Bearer 0123456789abcdef"},
        '{"email":"a@b.co"}',
        log_root=tmp_path,
    )
    entry = json.loads(path.read_text())
    assert entry["method"] == "POST"
    assert entry["headers"]["authorization"] == "Bearer...cdef"
    assert clear_logs(tmp_path) == 1
    assert not path.exists()


def test_cli_log_appends_lines(tmp_path):
    log_file = tmp_path / "proxy.log"
    write_cli_log("STARTUP", "Proxy started", log_file=log_file, port=5173)
    write_cli_log("ERROR", "boom", log_file=log_file)
    lines = log_file.read_text().splitlines()
    assert len(lines) == 2
    assert lines[0].endswith("STARTUP: Proxy started port=5173")


def test_dashboard_tracks_requests_and_errors(monkeypatch):
    lines = []
    monkeypatch.setattr(dashboard_module, "write_cli_log", lambda *a, **kw: lines.append(a))

    dashboard = Dashboard(Config())
    dashboard.log_request(
        "auth", "POST", "http://upstream/api/v1/platform/auth/login", 200,
        duration_ms=12.5, request_id="abc",
    )
    dashboard.log_error("api", 502, "Upstream connection error: refused")

    assert dashboard._request_count["auth"] == 1
    assert dashboard._recent[0].method == "POST"
    assert dashboard._errors == ["api 502: Upstream connection error: refused"]
    assert lines[0][0] == "AUTH"
    assert dashboard._build_layout() is not None


@pytest.mark.parametrize("base_url", ["", "localhost:3000/api", "ftp://files.example.com"])
def test_validate_upstream_rejects_bad_urls(base_url):
    with pytest.raises(ConfigurationError):
        validate_upstream(Config(upstream=UpstreamSettings(base_url=base_url)))


def test_validate_upstream_accepts_http_url():
    validate_upstream(Config(upstream=UpstreamSettings(base_url="https://api.example.com")))
