"""Configuration objects.

Frozen dataclasses: immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from redirect_back.errors import ConfigurationError

if TYPE_CHECKING:
    from redirect_back.http.request import Request


@dataclass(frozen=True, slots=True)
class RedirectBackConfig:
    """Redirect-back configuration. Immutable after creation.

    Attributes:
        fallback_path: Where to redirect when neither a remembered target
            nor a usable referrer exists. Empty means ``/``.
        ignored_paths: Exact paths that are never remembered.
        ignored_prefixes: Path prefixes that are never remembered.
        allowed_extensions: File extensions eligible as return targets.
            ``""`` stands for extensionless paths.
        ignore_func: Replaces all path-based filtering for GET requests
            when set. Returns True to skip remembering the request.
        session_key: Session field (and query parameter) holding the
            pending return target.

    Usage::

        config = RedirectBackConfig(
            fallback_path="/home",
            ignored_paths={"/login", "/logout"},
            ignored_prefixes=("/api/", "/static/"),
        )
    """

    fallback_path: str = "/"
    ignored_paths: frozenset[str] = frozenset()
    ignored_prefixes: tuple[str, ...] = ()
    allowed_extensions: frozenset[str] = frozenset({"", ".html"})
    ignore_func: Callable[[Request], bool] | None = None
    session_key: str = "return_to"

    def __post_init__(self) -> None:
        if not self.session_key:
            msg = "RedirectBackConfig.session_key must not be empty."
            raise ConfigurationError(msg)
        # Accept any iterable from callers; store hashable, immutable forms
        object.__setattr__(self, "fallback_path", self.fallback_path or "/")
        object.__setattr__(self, "ignored_paths", frozenset(self.ignored_paths))
        object.__setattr__(self, "ignored_prefixes", tuple(self.ignored_prefixes))
        object.__setattr__(self, "allowed_extensions", frozenset(self.allowed_extensions))


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    ``root_path`` is the mount prefix used to build absolute application
    URLs when the ASGI server does not supply one in the scope.
    """

    debug: bool = False
    root_path: str = ""
