"""Tests for the App — routing, middleware pipeline, and error responses."""

import logging

import pytest

from redirect_back.app import App, to_response
from redirect_back.config import AppConfig
from redirect_back.context import get_request
from redirect_back.errors import ConfigurationError, HTTPError
from redirect_back.http.request import Request
from redirect_back.http.response import Redirect, Response
from redirect_back.testing import TestClient


class TestRouting:
    async def test_string_return(self) -> None:
        app = App()

        @app.route("/")
        def index():
            return "Hello"

        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 200
            assert response.text == "Hello"

    async def test_async_handler_receives_request(self) -> None:
        app = App()

        @app.route("/echo", methods=["POST"])
        async def echo(request: Request):
            return f"{request.method} {request.url}"

        async with TestClient(app) as client:
            response = await client.post("/echo?x=1")
            assert response.text == "POST /echo?x=1"

    async def test_redirect_return(self) -> None:
        app = App()

        @app.route("/old")
        def old():
            return Redirect("/new")

        async with TestClient(app) as client:
            response = await client.get("/old")
            assert response.status == 303
            assert response.location == "/new"
            assert response.text == ""

    async def test_not_found(self) -> None:
        app = App()
        async with TestClient(app) as client:
            response = await client.get("/missing")
            assert response.status == 404

    async def test_method_not_allowed(self) -> None:
        app = App()

        @app.route("/only-get")
        def only_get():
            return "ok"

        async with TestClient(app) as client:
            response = await client.post("/only-get")
            assert response.status == 405
            assert response.header("allow") == "GET"

    async def test_http_error_from_handler(self) -> None:
        app = App()

        @app.route("/forbidden")
        def forbidden():
            raise HTTPError(status=403, detail="nope")

        async with TestClient(app) as client:
            response = await client.get("/forbidden")
            assert response.status == 403
            assert response.text == "nope"

    async def test_unexpected_error_is_500(self, caplog: pytest.LogCaptureFixture) -> None:
        app = App()

        @app.route("/boom")
        def boom():
            raise RuntimeError("kaboom")

        with caplog.at_level(logging.ERROR, logger="redirect_back.server"):
            async with TestClient(app) as client:
                response = await client.get("/boom")
        assert response.status == 500
        assert "500 GET /boom" in caplog.text


class TestPipeline:
    async def test_middleware_wraps_handler(self) -> None:
        app = App()
        calls: list[str] = []

        async def outer(request, next):
            calls.append("outer")
            return (await next(request)).with_header("X-Outer", "1")

        async def inner(request, next):
            calls.append("inner")
            return await next(request)

        app.add_middleware(outer)
        app.add_middleware(inner)

        @app.route("/")
        def index():
            calls.append("handler")
            return "ok"

        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.header("x-outer") == "1"
        assert calls == ["outer", "inner", "handler"]

    async def test_request_available_in_context(self) -> None:
        app = App()

        @app.route("/where")
        def where():
            return get_request().path

        async with TestClient(app) as client:
            response = await client.get("/where")
            assert response.text == "/where"

    async def test_frozen_after_first_request(self) -> None:
        app = App()

        @app.route("/")
        def index():
            return "ok"

        async with TestClient(app) as client:
            await client.get("/")

        with pytest.raises(ConfigurationError, match="Cannot modify the app"):
            app.add_middleware(lambda request, next: next(request))


class TestASGI:
    async def test_sends_start_and_body(self) -> None:
        app = App(AppConfig(root_path="/portal"))

        @app.route("/where")
        def where(request: Request):
            return Response(request.original_url).with_cookie("sid", "abc")

        messages: list[dict] = []

        async def receive() -> dict:
            return {"type": "http.request", "body": b"", "more_body": False}

        async def send(message: dict) -> None:
            messages.append(message)

        scope = {"type": "http", "method": "GET", "path": "/where", "headers": []}
        await app(scope, receive, send)

        start, body = messages
        assert start["type"] == "http.response.start"
        assert start["status"] == 200
        headers = dict(start["headers"])
        assert headers[b"content-length"] == b"13"
        assert headers[b"set-cookie"].startswith(b"sid=abc;")
        assert body == {"type": "http.response.body", "body": b"/portal/where"}

    async def test_redirect_sends_empty_body(self) -> None:
        app = App()

        @app.route("/old")
        def old():
            return Redirect("/new", status=304)

        messages: list[dict] = []

        async def send(message: dict) -> None:
            messages.append(message)

        await app({"type": "http", "method": "GET", "path": "/old"}, None, send)
        assert messages[0]["status"] == 304
        assert messages[1]["body"] == b""

    async def test_non_http_scope_ignored(self) -> None:
        messages: list[dict] = []

        async def send(message: dict) -> None:
            messages.append(message)

        await App()({"type": "lifespan"}, None, send)
        assert messages == []


class TestToResponse:
    def test_passthrough(self) -> None:
        response = Response("x")
        assert to_response(response) is response

    def test_unsupported_type(self) -> None:
        with pytest.raises(TypeError, match="Cannot convert int"):
            to_response(42)
