"""Tests for ssrgate.http.url — immutable URL and origin rewrites."""

from ssrgate.http.url import URL


def _scope(**overrides: object) -> dict[str, object]:
    base: dict[str, object] = {
        "type": "http",
        "path": "/",
        "raw_path": b"/",
        "query_string": b"",
        "server": ("localhost", 3000),
    }
    base.update(overrides)
    return base


class TestParse:
    def test_parts(self) -> None:
        url = URL.parse("https://Example.com:8443/a/b?x=1")
        assert url.scheme == "https"
        assert url.netloc == "example.com:8443"
        assert url.path == "/a/b"
        assert url.query == "x=1"
        assert url.origin == "https://example.com:8443"
        assert url.hostname == "example.com"
        assert url.port == 8443
        assert url.search == "?x=1"

    def test_default_port_dropped(self) -> None:
        assert URL.parse("https://example.com:443").netloc == "example.com"
        assert URL.parse("http://example.com:80").netloc == "example.com"
        assert URL.parse("http://example.com:443").netloc == "example.com:443"

    def test_empty_path_becomes_root(self) -> None:
        url = URL.parse("http://example.com")
        assert url.path == "/"
        assert url.search == ""
        assert url.port == 80

    def test_str(self) -> None:
        assert str(URL.parse("http://example.com/p?q=1")) == "http://example.com/p?q=1"

    def test_ipv6_host_keeps_brackets(self) -> None:
        url = URL.parse("http://[::1]:8080/")
        assert url.netloc == "[::1]:8080"
        assert url.hostname == "::1"


class TestFromScope:
    def test_host_header_wins(self) -> None:
        url = URL.from_scope(_scope(), "example.com")
        assert url.origin == "http://example.com"

    def test_server_tuple_fallback(self) -> None:
        url = URL.from_scope(_scope())
        assert url.origin == "http://localhost:3000"

    def test_raw_path_stays_encoded(self) -> None:
        url = URL.from_scope(_scope(path="/a b", raw_path=b"/a%20b"), "h")
        assert url.path == "/a%20b"

    def test_path_quoted_without_raw_path(self) -> None:
        url = URL.from_scope(_scope(path="/a b", raw_path=None), "h")
        assert url.path == "/a%20b"

    def test_query_string(self) -> None:
        url = URL.from_scope(_scope(query_string=b"a=1&b=2"), "h")
        assert url.query == "a=1&b=2"

    def test_websocket_scheme_default(self) -> None:
        url = URL.from_scope(_scope(type="websocket"), "h")
        assert url.scheme == "ws"

    def test_explicit_scheme(self) -> None:
        url = URL.from_scope(_scope(scheme="https"), "example.com:443")
        assert url.origin == "https://example.com"


class TestRewrites:
    def test_with_origin_keeps_path_and_query(self) -> None:
        url = URL.parse("http://internal:3000/blog/post?page=2")
        rewritten = url.with_origin(URL.parse("https://example.com"))
        assert str(rewritten) == "https://example.com/blog/post?page=2"
        # Original untouched
        assert url.origin == "http://internal:3000"

    def test_with_host(self) -> None:
        url = URL.parse("http://internal:3000/x").with_host("Example.com:8080")
        assert url.netloc == "example.com:8080"
        assert url.path == "/x"

    def test_with_host_takes_host_part_only(self) -> None:
        url = URL.parse("http://internal:3000/p")
        assert str(url.with_host("evil.com/x")) == "http://evil.com/p"
        assert url.with_host("example.com:8080?q").netloc == "example.com:8080"
        assert url.with_host("example.com#frag").netloc == "example.com"
        assert url.with_host("user@evil.com").netloc == "user"

    def test_with_host_empty_host_part_unchanged(self) -> None:
        url = URL.parse("http://internal:3000/p")
        assert url.with_host("/evil") == url
        assert url.with_host("  ") == url

    def test_with_scheme_strips_colon(self) -> None:
        url = URL.parse("http://example.com/").with_scheme("HTTPS:")
        assert url.scheme == "https"
        assert url.origin == "https://example.com"

    def test_with_scheme_renormalizes_default_port(self) -> None:
        url = URL.parse("http://example.com:443/").with_scheme("https")
        assert url.netloc == "example.com"
