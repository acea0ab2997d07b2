"""Map exceptions raised while handling a request to responses.

Registered handlers are looked up by exact exception class, then by
status code, then by the exception's base classes. Without one, a short
plain-text response is produced.
"""

import inspect
import logging
import traceback
from collections.abc import Callable, Mapping
from typing import Any, TypeAlias

from perch._internal.invoke import invoke
from perch.errors import HTTPError
from perch.http.request import Request
from perch.http.response import Response
from perch.middleware.protocol import AnyResponse
from perch.server.negotiation import negotiate

logger = logging.getLogger("perch.server")

ErrorHandlers: TypeAlias = Mapping[int | type, Callable[..., Any]]


def _plain(body: str, status: int) -> Response:
    return Response(body=body, status=status, content_type="text/plain; charset=utf-8")


def find_error_handler(
    error_handlers: ErrorHandlers, exc: Exception, status: int
) -> Callable[..., Any] | None:
    """Exact exception class, then status code, then base classes."""
    handler = error_handlers.get(type(exc)) or error_handlers.get(status)
    if handler is not None:
        return handler
    for cls in type(exc).__mro__[1:]:
        if cls in error_handlers:
            return error_handlers[cls]
    return None


async def call_error_handler(
    handler: Callable[..., Any],
    request: Request,
    exc: Exception,
) -> AnyResponse:
    """Call *handler* with as many of ``(request, exc)`` as it accepts."""
    arity = len(inspect.signature(handler).parameters)
    args = (request, exc)[: min(arity, 2)]
    return negotiate(await invoke(handler, *args))


async def handle_http_error(
    exc: HTTPError,
    request: Request,
    error_handlers: ErrorHandlers,
    debug: bool,
) -> AnyResponse:
    """Response for an ``HTTPError`` (404, 405, ...)."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)

    handler = find_error_handler(error_handlers, exc, exc.status)
    if handler is not None:
        response = await call_error_handler(handler, request, exc)
        # A handler that left the default 200 keeps the error's status
        if response.status == 200:
            response = response.with_status(exc.status)
        return response

    body = exc.detail or f"Error {exc.status}"
    if debug and exc.detail:
        body = str(exc)
    return _plain(body, exc.status).with_headers(dict(exc.headers))


async def handle_internal_error(
    exc: Exception,
    request: Request,
    error_handlers: ErrorHandlers,
    debug: bool,
) -> AnyResponse:
    """Response for an unexpected exception; always logged with its traceback."""
    logger.exception("500 %s %s", request.method, request.path)

    handler = find_error_handler(error_handlers, exc, 500)
    if handler is not None:
        return await call_error_handler(handler, request, exc)
    if debug:
        return _plain("".join(traceback.format_exception(exc)), 500)
    return _plain("Internal Server Error", 500)
