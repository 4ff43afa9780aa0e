"""Redirect back — send users to the page they came from.

``RedirectBack`` is both a middleware and the handler-side API:

- as middleware, it remembers the URL of each eligible GET navigation in
  the session, and exposes the previously remembered URL for the rest of
  the request;
- ``redirect_back()`` builds a ``303 See Other`` to that remembered URL,
  else to the ``Referer``, else to a fallback path.

Requires ``SessionMiddleware``; the App orders it after the session
automatically.

Usage::

    from redirect_back import App, RedirectBack, RedirectBackConfig
    from redirect_back.sessions import SessionConfig, SessionMiddleware

    back = RedirectBack(RedirectBackConfig(ignored_paths={"/login"}))

    app = App()
    app.add_middleware(back)
    app.add_middleware(SessionMiddleware(SessionConfig(secret_key="...")))

    @app.route("/login", methods=["POST"])
    def login(request):
        ...
        return back.redirect_back(request)
"""

import logging
from urllib.parse import urlsplit, urlunsplit

from redirect_back.config import RedirectBackConfig
from redirect_back.context import get_return_target, reset_return_target, set_return_target
from redirect_back.filter import PathFilter
from redirect_back.http.request import Request, strip_root_path
from redirect_back.http.response import Redirect, Response
from redirect_back.middleware import Next
from redirect_back.sessions import Session, get_session

logger = logging.getLogger("redirect_back")

_DEFAULT_PORTS = {"http": 80, "https": 443}


def _active_session() -> Session | None:
    try:
        return get_session()
    except LookupError:
        return None


def _same_host(netloc: str, host: str, scheme: str) -> bool:
    """Compare two host[:port] values, treating the default port as absent."""
    default = _DEFAULT_PORTS.get(scheme.lower())
    try:
        a = urlsplit(f"//{netloc}")
        b = urlsplit(f"//{host}")
        a_port = a.port if a.port != default else None
        b_port = b.port if b.port != default else None
    except ValueError:
        return False
    return (a.hostname, a_port) == (b.hostname, b_port)


class RedirectBack:
    """Remembers return targets and redirects back to them."""

    name = "redirect_back"
    after = ("session",)

    __slots__ = ("_filter", "config")

    def __init__(self, config: RedirectBackConfig | None = None) -> None:
        self.config = config or RedirectBackConfig()
        self._filter = PathFilter(self.config)

    # -- Filtering --

    def should_ignore(self, path: str) -> bool:
        """True if *path* must never be remembered as a return target."""
        return self._filter.should_ignore(path)

    def should_ignore_request(self, request: Request) -> bool:
        """True if *request* must not replace the remembered return target."""
        return self._filter.should_ignore_request(request)

    # -- Middleware --

    async def __call__(self, request: Request, next: Next) -> Response:
        """Record the return target, then dispatch.

        The stored target is popped and exposed via ``get_return_target()``
        for the rest of the request. Eligible navigations replace it with
        their own URL; anything else puts it back untouched.
        """
        session = _active_session()
        if session is None:
            logger.warning(
                "No active session for %s %s; return target not recorded. "
                "Add SessionMiddleware to the app.",
                request.method,
                request.path,
            )
            return await next(request)

        key = self.config.session_key
        previous = session.pop(key, None) or None
        token = set_return_target(previous)
        try:
            if self.should_ignore_request(request) or previous in (
                request.url,
                request.original_url,
            ):
                if previous is not None:
                    session.add(key, previous)
            else:
                session.add(key, request.original_url)
                logger.debug("Remembered return target %s", request.original_url)
            return await next(request)
        finally:
            reset_return_target(token)

    # -- Redirecting --

    def redirect_back(self, request: Request, *fallback: str) -> Redirect:
        """Redirect to the remembered target, the referrer, or a fallback.

        Args:
            request: The request being answered.
            fallback: Destinations to use when nothing else applies; the
                last non-empty one wins over ``config.fallback_path``.

        Returns:
            A ``303 See Other`` redirect.
        """
        target = get_return_target()
        if target:
            session = _active_session()
            if session is not None:
                session.pop(self.config.session_key, None)
            logger.debug("Redirecting back to remembered target %s", target)
            return Redirect(target, status=303)

        referrer = request.referrer
        if referrer and self._usable_referrer(request, referrer):
            logger.debug("Redirecting back to referrer %s", referrer)
            return Redirect(referrer, status=303)

        destination = next(
            (candidate for candidate in reversed(fallback) if candidate),
            self.config.fallback_path,
        )
        if destination.startswith("/"):
            destination = request.app_url(destination)
        logger.debug("Redirecting back to fallback %s", destination)
        return Redirect(destination, status=303)

    def _usable_referrer(self, request: Request, referrer: str) -> bool:
        """True if *referrer* is a sensible place to send the client back to."""
        try:
            parts = urlsplit(referrer)
        except ValueError:
            return False

        if self.should_ignore(strip_root_path(parts.path, request.root_path)):
            return False

        # Referrer is this very request: going back would loop
        local = urlunsplit(("", "", parts.path, parts.query, ""))
        if referrer in (request.url, request.original_url) or local == request.original_url:
            return False

        # Same page on the same host, query aside: the form that was just
        # submitted to this URL. Send the client elsewhere instead.
        host = request.host
        if host and parts.netloc:
            same_host = _same_host(parts.netloc, host, parts.scheme)
            return not (same_host and parts.path == request.app_url(request.path))
        return True

    # -- Lookups for the rest of the app --

    def resolve_return_target(self, request: Request) -> str:
        """Find the pending return target without redirecting.

        Checks the request scope, then the query string, then the session
        (without consuming it). Returns ``""`` if there is none.
        """
        target = get_return_target()
        if target:
            return target
        key = self.config.session_key
        target = request.query_param(key)
        if target:
            return target
        session = _active_session()
        if session is not None:
            return session.get(key) or ""
        return ""

    def remember_current_url(self, request: Request) -> None:
        """Store the current URL as the return target.

        Raises ``LookupError`` if no session is active.
        """
        get_session().add(self.config.session_key, request.original_url)
        logger.debug("Remembered return target %s", request.original_url)
