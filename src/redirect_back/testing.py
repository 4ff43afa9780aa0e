"""Async test client for redirect_back applications.

Builds the ASGI scope a server would, then runs the request through
``App.handle`` and hands back the ``Response`` object itself, cookies and
all. No HTTP and no ASGI send loop are involved.
"""

from __future__ import annotations

from typing import Any

from redirect_back.app import App
from redirect_back.http.response import Response


class TestClient:
    """Async test client.

    Usage::

        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 200

    ``root_path`` simulates an app mounted below ``/``.
    """

    __test__ = False  # Tell pytest this is not a test class

    __slots__ = ("app", "root_path")

    def __init__(self, app: App, *, root_path: str = "") -> None:
        self.app = app
        self.root_path = root_path

    async def __aenter__(self) -> TestClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        return None

    async def get(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        return await self.request("GET", path, headers=headers)

    async def post(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        return await self.request("POST", path, headers=headers)

    async def request(
        self, method: str, path: str, *, headers: dict[str, str] | None = None
    ) -> Response:
        """Send *method* *path* (query string included) to the app."""
        path_part, _, query_string = path.partition("?")
        scope: dict[str, Any] = {
            "type": "http",
            "method": method.upper(),
            "path": path_part,
            "query_string": query_string.encode("latin-1"),
            "root_path": self.root_path,
            "headers": [
                (name.lower().encode("latin-1"), value.encode("latin-1"))
                for name, value in (headers or {}).items()
            ],
            "server": ("testserver", 80),
        }
        return await self.app.handle(self.app.request_from_scope(scope))
