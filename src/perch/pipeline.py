"""Request pipelines built from middleware.

The app wraps its router in the global middleware chain; the same
machinery builds the nested pipelines that route handlers can be
(``map_static_files`` registers one).

Usage::

    handler = (
        PipelineBuilder()
        .use(clear_route)
        .use(StaticFiles(options))
        .build()
    )
    response = await handler(request)
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from perch.errors import NotFound
from perch.http.request import Request
from perch.middleware.protocol import AnyResponse, Middleware, Next


async def _not_found(request: Request) -> AnyResponse:
    raise NotFound(f"No handler produced a response for {request.method} {request.path!r}")


def chain(middleware: Sequence[Middleware], terminal: Next) -> Next:
    """Wrap *terminal* in *middleware*; the first entry runs outermost."""
    handler = terminal
    for mw in reversed(middleware):
        outer = handler

        async def make_next(request: Request, _mw: Any = mw, _next: Next = outer) -> AnyResponse:
            return await _mw(request, _next)

        handler = make_next
    return handler


class PipelineBuilder:
    """Collect middleware, then build a single ``Request -> response`` callable.

    Building does not consume the builder; each ``build()`` call returns
    an independent handler over a snapshot of the middleware registered
    so far.
    """

    __slots__ = ("_middleware",)

    def __init__(self) -> None:
        self._middleware: list[Middleware] = []

    def use(self, middleware: Middleware) -> PipelineBuilder:
        if middleware is None or not callable(middleware):
            msg = f"middleware must be callable, got {middleware!r}"
            raise TypeError(msg)
        self._middleware.append(middleware)
        return self

    def build(self, terminal: Next | None = None) -> Next:
        """Return the composed handler. Unhandled requests raise ``NotFound``."""
        return chain(tuple(self._middleware), terminal or _not_found)

    def __len__(self) -> int:
        return len(self._middleware)
