"""redirect_back — send users back to the page they came from.

Remembers the URL of each eligible GET navigation in the session and,
after a login or a form submission, redirects to it with ``303 See Other``,
falling back to the ``Referer`` header and then to a configured path.

Basic usage::

    from redirect_back import App, RedirectBack, RedirectBackConfig
    from redirect_back.sessions import SessionConfig, SessionMiddleware

    back = RedirectBack(RedirectBackConfig(ignored_paths={"/login"}))

    app = App()
    app.add_middleware(SessionMiddleware(SessionConfig(secret_key="...")))
    app.add_middleware(back)

    @app.route("/login", methods=["POST"])
    def login(request):
        return back.redirect_back(request)
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "HTTPError",
    "Middleware",
    "Next",
    "PathFilter",
    "Redirect",
    "RedirectBack",
    "RedirectBackConfig",
    "RedirectBackError",
    "Request",
    "Response",
    "get_request",
    "get_return_target",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import redirect_back`` fast while providing a clean top-level API.
    """
    if name == "App":
        from redirect_back.app import App

        return App

    if name in ("AppConfig", "RedirectBackConfig"):
        from redirect_back import config as _config

        return getattr(_config, name)

    if name == "RedirectBack":
        from redirect_back.controller import RedirectBack

        return RedirectBack

    if name == "PathFilter":
        from redirect_back.filter import PathFilter

        return PathFilter

    if name == "Request":
        from redirect_back.http.request import Request

        return Request

    if name in ("Response", "Redirect"):
        from redirect_back.http import response as _resp

        return getattr(_resp, name)

    if name in ("Middleware", "Next"):
        from redirect_back import middleware as _mw

        return getattr(_mw, name)

    if name in ("get_request", "get_return_target"):
        from redirect_back import context as _ctx

        return getattr(_ctx, name)

    if name in ("RedirectBackError", "ConfigurationError", "HTTPError"):
        from redirect_back import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
