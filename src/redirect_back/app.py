"""Minimal ASGI application that hosts the redirect-back middleware.

Mutable during setup (route registration, middleware). Frozen on the first
request: the middleware pipeline is ordered once and never changes after.
"""

import inspect
import logging
from collections.abc import Callable, Iterable
from typing import Any, TypeAlias

from redirect_back.config import AppConfig
from redirect_back.context import request_var
from redirect_back.errors import ConfigurationError, HTTPError, MethodNotAllowed, NotFound
from redirect_back.http.request import Request
from redirect_back.http.response import Redirect, Response
from redirect_back.middleware import Middleware, Next, RegisteredMiddleware, order_middleware

logger = logging.getLogger("redirect_back.server")

Handler: TypeAlias = Callable[..., Any]
Scope: TypeAlias = dict[str, Any]
Receive: TypeAlias = Callable[[], Any]
Send: TypeAlias = Callable[[dict[str, Any]], Any]


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    return not (100 <= status < 200 or status in {204, 304})


def to_response(value: Any) -> Response:
    """Convert a handler return value to a ``Response``.

    Accepts ``Response``, ``Redirect`` and ``str``.
    """
    match value:
        case Response():
            return value
        case Redirect():
            return value.to_response()
        case str():
            return Response(body=value)
    msg = f"Cannot convert {type(value).__name__} to a response."
    raise TypeError(msg)


class App:
    """The application.

    Usage::

        app = App()

        @app.route("/")
        def index():
            return "Hello"
    """

    __slots__ = ("_frozen", "_middleware", "_middleware_list", "_routes", "config")

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config = config or AppConfig()
        self._routes: dict[str, dict[str, Handler]] = {}
        self._middleware_list: list[RegisteredMiddleware] = []
        self._middleware: tuple[Middleware, ...] = ()
        self._frozen = False

    # -- Setup --

    def route(
        self,
        path: str,
        *,
        methods: Iterable[str] = ("GET",),
    ) -> Callable[[Handler], Handler]:
        """Register a handler for an exact *path*."""
        self._check_not_frozen()

        def decorator(func: Handler) -> Handler:
            by_method = self._routes.setdefault(path, {})
            for method in methods:
                by_method[method.upper()] = func
            return func

        return decorator

    def add_middleware(
        self,
        middleware: Middleware,
        *,
        name: str | None = None,
        after: Iterable[str] = (),
    ) -> None:
        """Add a middleware to the pipeline.

        *name* and *after* default to the middleware's own attributes.
        """
        self._check_not_frozen()
        self._middleware_list.append(RegisteredMiddleware.wrap(middleware, name, after))

    @property
    def middleware(self) -> tuple[Middleware, ...]:
        """The ordered pipeline, outermost first. Freezes the app."""
        self._ensure_frozen()
        return self._middleware

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = "Cannot modify the app after it started serving requests."
            raise ConfigurationError(msg)

    def _ensure_frozen(self) -> None:
        if not self._frozen:
            self._middleware = order_middleware(self._middleware_list)
            self._frozen = True

    # -- Dispatch --

    async def _dispatch(self, request: Request) -> Response:
        by_method = self._routes.get(request.path)
        if by_method is None:
            raise NotFound()
        handler = by_method.get(request.method)
        if handler is None:
            raise MethodNotAllowed(frozenset(by_method))

        result = handler(request) if inspect.signature(handler).parameters else handler()
        if inspect.isawaitable(result):
            result = await result
        return to_response(result)

    async def handle(self, request: Request) -> Response:
        """Run *request* through the middleware pipeline and the router."""
        self._ensure_frozen()

        handler: Next = self._dispatch
        for mw in reversed(self._middleware):

            async def make_next(
                req: Request, _mw: Middleware = mw, _next: Next = handler
            ) -> Response:
                return to_response(await _mw(req, _next))

            handler = make_next

        token = request_var.set(request)
        try:
            return await handler(request)
        except HTTPError as exc:
            logger.debug("%d %s %s — %s", exc.status, request.method, request.path, exc.detail)
            response = Response(body=exc.detail or f"Error {exc.status}").with_status(exc.status)
            for name, value in exc.headers:
                response = response.with_header(name, value)
            return response
        except Exception:
            logger.exception("500 %s %s", request.method, request.path)
            return Response(body="Internal Server Error").with_status(500)
        finally:
            request_var.reset(token)

    # -- ASGI --

    def request_from_scope(self, scope: Scope) -> Request:
        """Build a Request, applying ``config.root_path`` when the server sets none."""
        if not scope.get("root_path") and self.config.root_path:
            scope = {**scope, "root_path": self.config.root_path}
        return Request.from_asgi(scope)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return
        response = await self.handle(self.request_from_scope(scope))
        await send_response(response, send)


async def send_response(response: Response, send: Send) -> None:
    """Translate a Response into ASGI send() calls."""
    raw_headers: list[tuple[bytes, bytes]] = [
        (b"content-type", response.content_type.encode("latin-1")),
    ]
    for name, value in response.headers:
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    raw_headers.extend(
        (b"set-cookie", cookie.to_header_value().encode("latin-1")) for cookie in response.cookies
    )

    body = response.body_bytes if _body_allowed(response.status) else b""
    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send({"type": "http.response.start", "status": response.status, "headers": raw_headers})
    await send({"type": "http.response.body", "body": body})
