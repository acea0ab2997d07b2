"""Immutable HTTP request.

Frozen metadata with async body access. The routing decision travels on the
request as ``route``: ``None`` until the router selects an endpoint, and
replaced (never mutated) through ``with_route()``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Any

from perch._internal.types import Receive
from perch.http.headers import Headers
from perch.http.query import QueryParams
from perch.routing.route import RouteMatch


async def _empty_receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


@dataclass(frozen=True, slots=True)
class Request:
    """One HTTP request as perch sees it.

    Everything parsed from the ASGI scope is fixed when the request is
    built. The body is read lazily with ``await request.body()`` (or
    ``text()``/``json()``) and kept after the first read.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query: QueryParams = field(default_factory=QueryParams)
    path_params: dict[str, str] = field(default_factory=dict)
    http_version: str = "1.1"
    scheme: str = "http"
    root_path: str = ""
    server: tuple[str, int] | None = None
    client: tuple[str, int] | None = None

    # The routing decision, once made
    route: RouteMatch | None = None

    _receive: Receive = field(default=_empty_receive, repr=False, compare=False)
    # Shared by every with_route() copy of this request
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def is_secure(self) -> bool:
        """True for ``https`` (and ``wss``) requests."""
        return self.scheme in ("https", "wss")

    @property
    def url(self) -> str:
        """Request path plus query string."""
        if not self.query.raw:
            return self.path
        return f"{self.path}?{self.query.raw.decode('latin-1')}"

    def with_route(self, match: RouteMatch | None) -> Request:
        """Return a copy carrying *match* as the routing decision.

        Path parameters follow the decision: a cleared decision also
        clears ``path_params``. The body cache is shared so a body read
        before the copy is not lost.
        """
        return replace(
            self,
            route=match,
            path_params=dict(match.path_params) if match is not None else {},
        )

    async def body(self) -> bytes:
        """The whole request body.

        ASGI ``http.request`` messages are drained on the first call; later
        calls (from this request or any copy of it) get the same bytes.
        """
        body = self._cache.get("body")
        if body is None:
            parts: list[bytes] = []
            more = True
            while more:
                message = await self._receive()
                parts.append(message.get("body", b""))
                more = message.get("more_body", False)
            body = self._cache["body"] = b"".join(parts)
        return body

    async def text(self, encoding: str = "utf-8") -> str:
        return (await self.body()).decode(encoding)

    async def json(self) -> Any:
        return json.loads(await self.body())

    @classmethod
    def from_asgi(cls, scope: dict[str, Any], receive: Receive) -> Request:
        """Build the request for an ``http`` scope."""
        server, client = scope.get("server"), scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            query=QueryParams(scope.get("query_string", b"")),
            http_version=scope.get("http_version", "1.1"),
            scheme=scope.get("scheme", "http"),
            root_path=scope.get("root_path", ""),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            _receive=receive,
        )
