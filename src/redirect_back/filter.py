"""Path filter — decides which URLs may become return targets.

Rules are compiled once from ``RedirectBackConfig`` into sets, so every
request costs a few hash lookups and one prefix scan:

1. extension of the final path segment not allowed -> ignored
2. exact path listed -> ignored
3. path starts with a listed prefix -> ignored

Only GET requests are ever remembered. A configured ``ignore_func``
replaces the path rules for a whole request.
"""

import posixpath

from redirect_back.config import RedirectBackConfig
from redirect_back.http.request import Request


def extension_of(path: str) -> str:
    """Return the extension of the last segment of *path*, dot included.

    Directory components never count, and neither does the leading dot of
    a dotfile::

        >>> extension_of("/reports/2024.q1/summary")
        ''
        >>> extension_of("/app.css")
        '.css'
        >>> extension_of("/.well-known")
        ''
    """
    segment = path.rpartition("/")[2]
    return posixpath.splitext(segment)[1]


class PathFilter:
    """Compiled ignore rules for one ``RedirectBackConfig``."""

    __slots__ = ("_allowed_extensions", "_ignore_func", "_ignored_paths", "_ignored_prefixes")

    def __init__(self, config: RedirectBackConfig) -> None:
        self._ignored_paths = frozenset(config.ignored_paths)
        self._ignored_prefixes = tuple(config.ignored_prefixes)
        self._allowed_extensions = frozenset(config.allowed_extensions)
        self._ignore_func = config.ignore_func

    def should_ignore(self, path: str) -> bool:
        """True if *path* must never be remembered as a return target."""
        if extension_of(path) not in self._allowed_extensions:
            return True
        if path in self._ignored_paths:
            return True
        return any(path.startswith(prefix) for prefix in self._ignored_prefixes)

    def should_ignore_request(self, request: Request) -> bool:
        """True if *request* must not replace the remembered return target."""
        if request.method != "GET":
            return True
        if self._ignore_func is not None:
            return bool(self._ignore_func(request))
        return self.should_ignore(request.path)
