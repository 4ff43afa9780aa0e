"""Request-scoped context via ContextVar.

Provides:
- ``request_var``: The current ``Request`` for this task/thread.
- the pending return target popped from the session for this request.

Both are set for the duration of a request and reset afterwards.

Thread safety:
    ``ContextVar`` is task-local under asyncio and thread-local under
    free-threading. No locks needed.
"""

from contextvars import ContextVar, Token

from redirect_back.http.request import Request

# -- Request context --

request_var: ContextVar[Request] = ContextVar("redirect_back_request")
"""The current request. Set by the App before dispatch."""


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a request context.
    """
    return request_var.get()


# -- Return target --

_return_to_var: ContextVar[str | None] = ContextVar("redirect_back_return_to", default=None)


def get_return_target() -> str | None:
    """Return the target the session held when this request started.

    ``None`` outside a request, or when nothing was remembered.
    """
    return _return_to_var.get()


def set_return_target(target: str | None) -> Token[str | None]:
    """Attach *target* to the current request scope.

    Returns the token to pass to ``reset_return_target()``.
    """
    return _return_to_var.set(target)


def reset_return_target(token: Token[str | None]) -> None:
    _return_to_var.reset(token)
