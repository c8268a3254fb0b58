import pytest

from core.request_types import MountConfig
from core.router import PathResolver

API = MountConfig(name="api", prefix="/proxy", base_path="api")
AUTH = MountConfig(name="auth", prefix="/proxy/auth", base_path="api/v1/platform/auth")


@pytest.fixture
def resolver():
    return PathResolver("http://backend:3000")


def test_joins_base_path_and_segments(resolver):
    target = resolver.resolve(API, ["products", "42"], "")
    assert target.resolved_path == "/api/products/42"
    assert target.resolved_query == ""
    assert target.url == "http://backend:3000/api/products/42"


def test_appends_raw_query_unchanged(resolver):
    target = resolver.resolve(API, ["search"], "tag=a&tag=b&q=caf%C3%A9 x")
    assert target.resolved_query == "?tag=a&tag=b&q=caf%C3%A9 x"
    assert target.url.endswith("/api/search?tag=a&tag=b&q=caf%C3%A9 x")


def test_nested_base_path(resolver):
    target = resolver.resolve(AUTH, ["login"], "")
    assert target.resolved_path == "/api/v1/platform/auth/login"


def test_empty_segments_do_not_add_trailing_slash(resolver):
    assert resolver.resolve(API, [], "").resolved_path == "/api"


def test_base_path_trailing_slash_is_kept_for_root(resolver):
    mount = MountConfig(name="x", prefix="/x", base_path="api/")
    assert resolver.resolve(mount, [], "").resolved_path == "/api/"


@pytest.mark.parametrize(
    "base_path,segments,expected",
    [
        ("/api/", ["products"], "/api/products"),
        ("api", ["", "products", "", "7"], "/api/products/7"),
        ("//api//v1", ["a", "b"], "/api/v1/a/b"),
        ("", ["health"], "/health"),
        ("", [], "/"),
    ],
)
def test_duplicate_slashes_are_collapsed(resolver, base_path, segments, expected):
    mount = MountConfig(name="x", prefix="/x", base_path=base_path)
    assert resolver.resolve(mount, segments, "").resolved_path == expected


def test_segments_keep_order_and_encoding(resolver):
    target = resolver.resolve(API, ["files", "a%2Fb", "z", "a"], "")
    assert target.resolved_path == "/api/files/a%2Fb/z/a"


def test_base_url_trailing_slash_is_dropped():
    resolver = PathResolver("http://backend:3000/")
    assert resolver.resolve(API, ["x"]).url == "http://backend:3000/api/x"
