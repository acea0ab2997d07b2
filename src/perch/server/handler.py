"""ASGI request handling.

The only place an HTTP scope becomes a ``Request``: it runs the global
middleware around routing, calls the matched endpoint with arguments
taken from its signature, maps failures to error responses and hands the
result to the sender.
"""

import functools
import inspect
from collections.abc import Callable, Mapping
from typing import Any

from perch._internal.invoke import invoke
from perch._internal.types import Receive, Scope, Send
from perch.errors import HTTPError, NotFound
from perch.http.request import Request
from perch.http.response import FileResponse
from perch.middleware.protocol import AnyResponse, Middleware
from perch.pipeline import chain
from perch.routing.router import Router
from perch.server.errors import handle_http_error, handle_internal_error
from perch.server.negotiation import negotiate
from perch.server.sender import send_file_response, send_response


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    middleware: tuple[Middleware, ...],
    error_handlers: Mapping[int | type, Callable[..., Any]],
    debug: bool,
) -> None:
    """Process one HTTP request end to end."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)

    async def route_and_call(request: Request) -> AnyResponse:
        routed = request.with_route(router.match(request.method, request.path))
        return await call_endpoint(routed)

    try:
        response = await chain(middleware, route_and_call)(request)
    except HTTPError as exc:
        response = await handle_http_error(exc, request, error_handlers, debug)
    except Exception as exc:
        response = await handle_internal_error(exc, request, error_handlers, debug)

    if isinstance(response, FileResponse):
        await send_file_response(response, send)
    else:
        await send_response(response, send)


async def call_endpoint(request: Request) -> AnyResponse:
    """Call the handler of ``request.route`` and negotiate its return value."""
    if request.route is None:
        raise NotFound(f"No endpoint selected for {request.method} {request.path!r}")
    handler = request.route.route.handler
    result = await invoke(handler, **endpoint_kwargs(handler, request))
    return negotiate(result)


@functools.cache
def _parameters(handler: Callable[..., Any]) -> tuple[inspect.Parameter, ...]:
    return tuple(inspect.signature(handler, eval_str=True).parameters.values())


def endpoint_kwargs(handler: Callable[..., Any], request: Request) -> dict[str, Any]:
    """Arguments for *handler*, drawn from its parameters.

    A parameter named ``request`` or annotated ``Request`` receives the
    request. A parameter named after a path parameter receives its value,
    converted through the annotation when it is not ``str`` (the raw string
    is kept when conversion fails). Other parameters keep their defaults.
    """
    kwargs: dict[str, Any] = {}
    for param in _parameters(handler):
        if param.name == "request" or param.annotation is Request:
            kwargs[param.name] = request
            continue
        if param.name not in request.path_params:
            continue
        value = request.path_params[param.name]
        annotation = param.annotation
        if annotation in (inspect.Parameter.empty, str):
            kwargs[param.name] = value
            continue
        try:
            kwargs[param.name] = annotation(value)
        except (TypeError, ValueError):
            kwargs[param.name] = value
    return kwargs
