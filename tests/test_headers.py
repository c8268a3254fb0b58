from core.headers import HeaderPolicy


def test_forwards_authorization_unchanged():
    policy = HeaderPolicy()
    token = "Bearer eyJhbGciOi.JIUzI1NiJ9==  "
    filtered = policy.filter_inbound({"Authorization": token})
    assert filtered == {"authorization": token}


def test_never_synthesizes_authorization():
    policy = HeaderPolicy()
    filtered = policy.filter_inbound({"accept": "application/json"})
    assert "authorization" not in filtered


def test_content_type_is_forwarded_as_given_and_never_defaulted():
    policy = HeaderPolicy()
    assert policy.filter_inbound({"Content-Type": "text/plain; charset=latin-1"}) == {
        "content-type": "text/plain; charset=latin-1"
    }
    assert "content-type" not in policy.filter_inbound({"x-other": "1"})


def test_drops_hop_by_hop_and_unlisted_headers():
    policy = HeaderPolicy()
    filtered = policy.filter_inbound(
        {
            "host": "frontend.local",
            "connection": "keep-alive",
            "content-length": "12",
            "x-forwarded-for": "10.0.0.1",
            "cookie": "session=abc",
            "x-api-key": "key",
        }
    )
    assert filtered == {}


def test_allow_listed_headers_are_forwarded():
    policy = HeaderPolicy(forward_headers=["X-Api-Key", "x-app-secret", "Host"])
    filtered = policy.filter_inbound(
        {"x-api-key": "pk_live", "X-App-Secret": "sk_live", "host": "frontend.local"}
    )
    assert filtered == {"x-api-key": "pk_live", "x-app-secret": "sk_live"}


def test_duplicate_keys_last_write_wins():
    policy = HeaderPolicy()
    filtered = policy.filter_inbound({"Authorization": "Bearer old", "authorization": "Bearer new"})
    assert filtered == {"authorization": "Bearer new"}


def test_outbound_keeps_content_type_and_caching_headers():
    policy = HeaderPolicy()
    filtered = policy.filter_outbound(
        {
            "Content-Type": "application/json",
            "Cache-Control": "max-age=60",
            "ETag": '"abc"',
            "Content-Length": "100",
            "Content-Encoding": "gzip",
            "Transfer-Encoding": "chunked",
            "Set-Cookie": "a=b",
            "Server": "nginx",
        }
    )
    assert filtered == {
        "content-type": "application/json",
        "cache-control": "max-age=60",
        "etag": '"abc"',
    }


def test_outbound_expose_headers_cannot_reintroduce_framing():
    policy = HeaderPolicy(expose_headers=["x-total-count", "content-length"])
    filtered = policy.filter_outbound({"X-Total-Count": "3", "content-length": "10"})
    assert filtered == {"x-total-count": "3"}


def test_cors_headers():
    assert HeaderPolicy().cors_headers() == {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type, Authorization",
    }


def test_cors_allow_headers_include_forwarded_headers():
    policy = HeaderPolicy(forward_headers=["x-api-key", "Authorization"])
    assert (
        policy.cors_headers()["Access-Control-Allow-Headers"]
        == "Content-Type, Authorization, x-api-key"
    )
