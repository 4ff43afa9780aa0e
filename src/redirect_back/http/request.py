"""Immutable HTTP request.

Frozen metadata built once from the ASGI scope. The request is honest about
what it is: received data that doesn't change.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs


def parse_cookies(header: str) -> dict[str, str]:
    """Parse a ``Cookie`` header value into a name-value dict.

    Returns an empty dict for empty or missing headers.
    """
    if not header:
        return {}
    cookies: dict[str, str] = {}
    for pair in header.split(";"):
        pair = pair.strip()
        if "=" in pair:
            key, _, value = pair.partition("=")
            cookies[key.strip()] = value.strip()
    return cookies


def strip_root_path(path: str, root_path: str) -> str:
    """Remove the mount prefix *root_path* from *path*.

    Only whole segments match: with a root of ``/app``, ``/app/x`` becomes
    ``/x`` and ``/app`` becomes ``/``, while ``/apple`` is left alone.
    """
    root = root_path.rstrip("/")
    if not root:
        return path
    if path == root:
        return "/"
    if path.startswith(root + "/"):
        return path[len(root) :]
    return path


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``path`` is relative to the application mount point; ``root_path`` is
    the mount prefix (empty when the app is served at ``/``). Use
    ``app_url()`` to turn an application path back into a URL the client
    can follow.
    """

    method: str
    path: str
    root_path: str = ""
    query_string: bytes = b""
    headers: tuple[tuple[bytes, bytes], ...] = ()
    server: tuple[str, int] | None = None
    cookies: Mapping[str, str] = field(default_factory=dict)

    # Private: parsed query string, filled lazily
    # (dict contents are mutable even though the field reference is frozen)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Headers --

    def header(self, name: str, default: str | None = None) -> str | None:
        """Return the first value of header *name* (case-insensitive)."""
        key = name.lower().encode("latin-1")
        for raw_name, raw_value in self.headers:
            if raw_name.lower() == key:
                return raw_value.decode("latin-1")
        return default

    @property
    def referrer(self) -> str | None:
        """The ``Referer`` header, or ``None`` when absent or empty."""
        return self.header("referer") or None

    @property
    def host(self) -> str | None:
        """The host the client addressed, from ``Host`` or the server address."""
        host = self.header("host")
        if host:
            return host
        if self.server is None:
            return None
        name, port = self.server
        if port in (80, 443):
            return name
        return f"{name}:{port}"

    # -- Query string --

    @property
    def query(self) -> dict[str, list[str]]:
        """Parsed query string (field name -> list of values)."""
        if "_query" not in self._cache:
            self._cache["_query"] = parse_qs(
                self.query_string.decode("latin-1"), keep_blank_values=True
            )
        return self._cache["_query"]

    def query_param(self, name: str, default: str | None = None) -> str | None:
        """Return the first value of query parameter *name*."""
        values = self.query.get(name)
        if values:
            return values[0]
        return default

    # -- URLs --

    @property
    def url(self) -> str:
        """Application-relative URL (path + query string)."""
        if self.query_string:
            return f"{self.path}?{self.query_string.decode('latin-1')}"
        return self.path

    @property
    def original_url(self) -> str:
        """The URL as the client requested it, mount prefix included."""
        return self.app_url(self.url)

    def app_url(self, path: str) -> str:
        """Rewrite an application path into an absolute application URL.

        Paths that do not start with ``/`` (full URLs, relative references)
        are returned unchanged.
        """
        if not path.startswith("/"):
            return path
        return f"{self.root_path.rstrip('/')}{path}"

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: Mapping[str, Any]) -> Request:
        """Create a Request from an ASGI scope."""
        headers = tuple(scope.get("headers", ()))
        server = scope.get("server")
        root_path = scope.get("root_path", "")
        path = scope["path"]
        # ASGI servers may include the mount prefix in ``path``
        path = strip_root_path(path, root_path)
        cookie_header = next(
            (value.decode("latin-1") for name, value in headers if name.lower() == b"cookie"),
            "",
        )
        return cls(
            method=scope["method"],
            path=path,
            root_path=root_path,
            query_string=scope.get("query_string", b""),
            headers=headers,
            server=tuple(server) if server else None,
            cookies=parse_cookies(cookie_header),
        )
