"""redirect_back exception hierarchy.

Shared across the App, middleware, and the redirect controller so every
module raises and catches the same types.
"""

from dataclasses import dataclass


class RedirectBackError(Exception):
    """Base for all redirect_back errors."""


class ConfigurationError(RedirectBackError):
    """Raised when configuration is invalid.

    Typically raised at construction time or when the App freezes its
    middleware pipeline on the first request.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(RedirectBackError):
    """An error that maps directly to an HTTP status code.

    Raised by routing, middleware, or handlers. The App catches these and
    turns them into a plain-text response with the matching status.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404 — no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """405 — route exists but not for this HTTP method."""

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )
