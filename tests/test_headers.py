import httpx

from musicedge.headers import SAFE_RESPONSE_HEADERS, preflight_headers, sanitize_headers


def test_drops_headers_outside_allowlist():
    headers = sanitize_headers({
        "Content-Type": "audio/mpeg",
        "Set-Cookie": "session=abc",
        "X-Powered-By": "PHP/7.4",
        "Server": "nginx",
    })

    assert headers["content-type"] == "audio/mpeg"
    assert "set-cookie" not in headers
    assert "x-powered-by" not in headers
    assert "server" not in headers


def test_keeps_every_safe_header():
    upstream = {name.title(): f"value-{name}" for name in SAFE_RESPONSE_HEADERS}

    headers = sanitize_headers(upstream)

    for name in SAFE_RESPONSE_HEADERS:
        assert headers[name] == f"value-{name}"


def test_upstream_cors_is_replaced():
    headers = sanitize_headers({
        "Access-Control-Allow-Origin": "https://only-me.example",
        "Access-Control-Allow-Credentials": "true",
    })

    assert headers["access-control-allow-origin"] == "*"
    assert "access-control-allow-credentials" not in headers


def test_missing_cache_control_defaults_to_no_store():
    assert sanitize_headers({"Content-Type": "text/plain"})["cache-control"] == "no-store"


def test_missing_cache_control_uses_caller_default():
    headers = sanitize_headers({}, default_cache_control="public, max-age=3600")

    assert headers["cache-control"] == "public, max-age=3600"


def test_upstream_cache_control_wins_over_default():
    headers = sanitize_headers({"Cache-Control": "max-age=60"}, default_cache_control="public, max-age=3600")

    assert headers["cache-control"] == "max-age=60"


def test_no_upstream_headers():
    assert sanitize_headers(None) == {
        "cache-control": "no-store",
        "access-control-allow-origin": "*",
    }


def test_accepts_httpx_headers_with_repeats():
    upstream = httpx.Headers([
        ("Cache-Control", "public"),
        ("Cache-Control", "max-age=10"),
        ("Set-Cookie", "a=1"),
    ])

    headers = sanitize_headers(upstream)

    assert headers["cache-control"] == "public, max-age=10"
    assert "set-cookie" not in headers


def test_accepts_pairs():
    headers = sanitize_headers([("ETag", '"abc"'), ("Via", "1.1 cdn")])

    assert headers["etag"] == '"abc"'
    assert "via" not in headers


def test_does_not_mutate_input():
    upstream = {"Content-Type": "audio/mpeg", "X-Powered-By": "PHP"}

    sanitize_headers(upstream)

    assert upstream == {"Content-Type": "audio/mpeg", "X-Powered-By": "PHP"}


def test_preflight_headers():
    headers = preflight_headers()

    assert headers["access-control-allow-origin"] == "*"
    assert headers["access-control-allow-methods"] == "GET,HEAD,OPTIONS"
    assert headers["access-control-allow-headers"] == "*"
    assert headers["access-control-max-age"] == "86400"
    assert "cache-control" in headers
