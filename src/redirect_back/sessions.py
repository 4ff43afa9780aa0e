"""Signed cookie sessions.

A session is a small key-value store with three operations: ``get`` reads,
``add`` stores, ``pop`` reads and deletes in one step. ``SessionMiddleware``
loads it from a cookie signed with ``itsdangerous`` and makes it available
through ``get_session()``. The cookie is rewritten only when the store
changed during the request.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

from itsdangerous import BadSignature, URLSafeTimedSerializer

from redirect_back.errors import ConfigurationError
from redirect_back.http.request import Request
from redirect_back.http.response import Response
from redirect_back.middleware import Next


class Session:
    """Per-request session store."""

    __slots__ = ("_data", "modified")

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})
        self.modified = False

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def add(self, key: str, value: Any) -> None:
        self._data[key] = value
        self.modified = True

    def pop(self, key: str, default: Any = None) -> Any:
        """Remove *key* and return its value, or *default* if absent."""
        if key not in self._data:
            return default
        self.modified = True
        return self._data.pop(key)

    def as_dict(self) -> dict[str, Any]:
        """A copy of the stored values, as written to the cookie."""
        return dict(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Session({self._data!r})"


# -- Session ContextVar --

_session_var: ContextVar[Session | None] = ContextVar("redirect_back_session", default=None)


def get_session() -> Session:
    """Return the current session.

    Raises ``LookupError`` if called outside a request with
    ``SessionMiddleware`` active.
    """
    session = _session_var.get()
    if session is None:
        msg = (
            "No active session. Ensure SessionMiddleware is added "
            "to the app before accessing the session."
        )
        raise LookupError(msg)
    return session


# -- Configuration --


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Session middleware configuration.

    ``secret_key`` is required: sessions are signed, not encrypted.
    """

    secret_key: str
    cookie_name: str = "redirect_back_session"
    max_age: int = 86400  # 24 hours
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"


# -- Middleware --


class SessionMiddleware:
    """Load the session from its cookie, and write it back when it changed.

    Usage::

        from redirect_back.sessions import SessionConfig, SessionMiddleware

        app.add_middleware(SessionMiddleware(SessionConfig(secret_key="...")))
    """

    name = "session"
    after: tuple[str, ...] = ()

    __slots__ = ("_config", "_serializer")

    def __init__(self, config: SessionConfig) -> None:
        if not config.secret_key:
            msg = "SessionConfig.secret_key must not be empty."
            raise ConfigurationError(msg)
        self._config = config
        self._serializer = URLSafeTimedSerializer(config.secret_key)

    def load(self, request: Request) -> Session:
        """The session carried by *request*; empty if missing or tampered with."""
        cookie_value = request.cookies.get(self._config.cookie_name)
        if not cookie_value:
            return Session()
        try:
            data = self._serializer.loads(cookie_value, max_age=self._config.max_age)
        except BadSignature:
            return Session()
        return Session(data) if isinstance(data, dict) else Session()

    async def __call__(self, request: Request, next: Next) -> Response:
        session = self.load(request)
        token = _session_var.set(session)
        try:
            response = await next(request)
        finally:
            _session_var.reset(token)

        if not session.modified:
            return response
        cfg = self._config
        return response.with_cookie(
            name=cfg.cookie_name,
            value=self._serializer.dumps(session.as_dict()),
            max_age=cfg.max_age,
            path=cfg.path,
            domain=cfg.domain,
            secure=cfg.secure,
            httponly=cfg.httponly,
            samesite=cfg.samesite,
        )
