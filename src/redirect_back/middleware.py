"""Middleware protocol, Next type alias, and named ordering.

A middleware is any callable matching::

    async def my_mw(request: Request, next: Next) -> Response: ...

No base class required. The App checks the shape, not the lineage.

Middleware may carry a ``name`` and an ``after`` tuple of names. The App
sorts its pipeline so each middleware runs after the named ones it depends
on, whatever order they were registered in. ``SessionMiddleware`` is named
``"session"``; ``RedirectBack`` is named ``"redirect_back"`` and declares
``after = ("session",)``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Protocol, TypeAlias

from redirect_back.errors import ConfigurationError
from redirect_back.http.request import Request
from redirect_back.http.response import Response

# The next handler in the middleware chain
Next: TypeAlias = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    """Protocol for middleware.

    Accepts both functions and callable objects::

        # Function middleware
        async def timing(request: Request, next: Next) -> Response:
            start = time.monotonic()
            response = await next(request)
            elapsed = time.monotonic() - start
            return response.with_header("X-Time", f"{elapsed:.3f}")

        # Class middleware
        class RateLimiter:
            name = "rate_limit"
            after = ("session",)

            async def __call__(self, request: Request, next: Next) -> Response:
                ...
    """

    async def __call__(self, request: Request, next: Next) -> Response: ...


@dataclass(frozen=True, slots=True)
class RegisteredMiddleware:
    """A middleware plus its ordering metadata."""

    handler: Middleware
    name: str | None = None
    after: tuple[str, ...] = ()

    @classmethod
    def wrap(
        cls,
        handler: Middleware,
        name: str | None = None,
        after: Iterable[str] = (),
    ) -> RegisteredMiddleware:
        """Register *handler*, falling back to its own ``name``/``after``."""
        return cls(
            handler=handler,
            name=name if name is not None else getattr(handler, "name", None),
            after=tuple(after) or tuple(getattr(handler, "after", ())),
        )


def order_middleware(entries: Iterable[RegisteredMiddleware]) -> tuple[Middleware, ...]:
    """Sort middleware so each entry runs after the names in its ``after``.

    Registration order is kept wherever the constraints allow it. Names in
    ``after`` that nothing registered are ignored.

    Raises ``ConfigurationError`` on duplicate names or circular ordering.
    """
    pending = list(entries)
    names: set[str] = set()
    for entry in pending:
        if entry.name is None:
            continue
        if entry.name in names:
            msg = f"Middleware {entry.name!r} is registered more than once."
            raise ConfigurationError(msg)
        names.add(entry.name)

    placed: set[str] = set()
    ordered: list[Middleware] = []
    while pending:
        for index, entry in enumerate(pending):
            if all(dep in placed or dep not in names for dep in entry.after):
                break
        else:
            cycle = ", ".join(repr(entry.name) for entry in pending)
            msg = f"Circular middleware ordering between {cycle}."
            raise ConfigurationError(msg)
        pending.pop(index)
        ordered.append(entry.handler)
        if entry.name is not None:
            placed.add(entry.name)
    return tuple(ordered)
