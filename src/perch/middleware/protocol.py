"""The middleware shape shared by the app pipeline and nested route pipelines.

A middleware is any callable of the form::

    async def mw(request: Request, next: Next) -> AnyResponse: ...

It may answer the request itself or call ``next`` (optionally with a
replaced request, e.g. ``request.with_route(None)``) and transform what
comes back. Responses are immutable; return a new one.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeAlias

from perch.http.request import Request
from perch.http.response import FileResponse, Response

# In-memory or streamed file response
AnyResponse: TypeAlias = Response | FileResponse

# The rest of the pipeline after the current middleware
Next: TypeAlias = Callable[[Request], Awaitable[AnyResponse]]


class Middleware(Protocol):
    """Functions and callable objects both qualify::

        async def no_sniff(request: Request, next: Next) -> AnyResponse:
            response = await next(request)
            return response.with_header("X-Content-Type-Options", "nosniff")

        class Maintenance:
            def __init__(self, enabled: bool) -> None:
                self.enabled = enabled

            async def __call__(self, request: Request, next: Next) -> AnyResponse:
                if self.enabled:
                    return Response("Back soon", status=503)
                return await next(request)
    """

    async def __call__(self, request: Request, next: Next) -> AnyResponse: ...
