"""Tests for redirect_back.http.request — frozen Request built from ASGI scope."""

import dataclasses

import pytest

from redirect_back.http.request import Request, parse_cookies, strip_root_path


def _make_scope(**overrides: object) -> dict[str, object]:
    """Build a minimal valid ASGI HTTP scope."""
    base: dict[str, object] = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "path": "/",
        "raw_path": b"/",
        "query_string": b"",
        "root_path": "",
        "headers": [],
        "server": ("localhost", 8000),
        "client": ("127.0.0.1", 54321),
    }
    base.update(overrides)
    return base


class TestRequestFromASGI:
    def test_basic_fields(self) -> None:
        req = Request.from_asgi(_make_scope(method="POST", path="/users"))
        assert req.method == "POST"
        assert req.path == "/users"
        assert req.server == ("localhost", 8000)

    def test_headers_case_insensitive(self) -> None:
        req = Request.from_asgi(_make_scope(headers=[(b"Content-Type", b"text/plain")]))
        assert req.header("content-type") == "text/plain"
        assert req.header("CONTENT-TYPE") == "text/plain"
        assert req.header("accept") is None
        assert req.header("accept", "*/*") == "*/*"

    def test_cookies_parsed(self) -> None:
        req = Request.from_asgi(_make_scope(headers=[(b"cookie", b"a=1; b=two")]))
        assert req.cookies == {"a": "1", "b": "two"}

    def test_root_path_stripped_from_path(self) -> None:
        req = Request.from_asgi(_make_scope(path="/app/dashboard", root_path="/app"))
        assert req.path == "/dashboard"
        assert req.root_path == "/app"

    def test_root_path_alone_is_root(self) -> None:
        req = Request.from_asgi(_make_scope(path="/app", root_path="/app"))
        assert req.path == "/"

    def test_root_path_matches_whole_segments_only(self) -> None:
        req = Request.from_asgi(_make_scope(path="/apple", root_path="/app"))
        assert req.path == "/apple"

    def test_frozen(self) -> None:
        req = Request.from_asgi(_make_scope())
        with pytest.raises(dataclasses.FrozenInstanceError):
            req.method = "POST"  # type: ignore[misc]


class TestRequestURLs:
    def test_url_without_query(self) -> None:
        assert Request(method="GET", path="/a").url == "/a"

    def test_url_with_query(self) -> None:
        req = Request(method="GET", path="/a", query_string=b"x=1&y=2")
        assert req.url == "/a?x=1&y=2"

    def test_original_url_includes_root_path(self) -> None:
        req = Request(method="GET", path="/a", root_path="/app/", query_string=b"x=1")
        assert req.original_url == "/app/a?x=1"

    def test_app_url(self) -> None:
        req = Request(method="GET", path="/", root_path="/app")
        assert req.app_url("/login") == "/app/login"
        assert req.app_url("https://example.com/") == "https://example.com/"
        assert req.app_url("relative") == "relative"

    def test_query_param(self) -> None:
        req = Request(method="GET", path="/", query_string=b"next=%2Fhome&next=%2Fother&e=")
        assert req.query_param("next") == "/home"
        assert req.query["next"] == ["/home", "/other"]
        assert req.query_param("e") == ""
        assert req.query_param("missing", "d") == "d"


class TestRequestHost:
    def test_referrer(self) -> None:
        req = Request(method="GET", path="/", headers=((b"referer", b"http://a/b"),))
        assert req.referrer == "http://a/b"

    def test_empty_referrer_is_none(self) -> None:
        req = Request(method="GET", path="/", headers=((b"referer", b""),))
        assert req.referrer is None

    def test_host_header_preferred(self) -> None:
        req = Request(
            method="GET", path="/", headers=((b"host", b"example.com"),), server=("0.0.0.0", 80)
        )
        assert req.host == "example.com"

    def test_host_from_server(self) -> None:
        assert Request(method="GET", path="/", server=("testserver", 80)).host == "testserver"
        assert Request(method="GET", path="/", server=("localhost", 8000)).host == "localhost:8000"

    def test_host_unknown(self) -> None:
        assert Request(method="GET", path="/").host is None


class TestParseCookies:
    def test_empty(self) -> None:
        assert parse_cookies("") == {}

    def test_ignores_malformed_pairs(self) -> None:
        assert parse_cookies("a=1; junk; b = 2") == {"a": "1", "b": "2"}


class TestStripRootPath:
    def test_strips_prefix_segment(self) -> None:
        assert strip_root_path("/app/x", "/app") == "/x"
        assert strip_root_path("/app/x", "/app/") == "/x"

    def test_root_itself_becomes_slash(self) -> None:
        assert strip_root_path("/app", "/app") == "/"

    def test_partial_segment_left_alone(self) -> None:
        assert strip_root_path("/apple", "/app") == "/apple"

    def test_no_root(self) -> None:
        assert strip_root_path("/x", "") == "/x"
