"""Bind a URL prefix to a file system as a routed, existence-gated endpoint.

``map_static_files`` registers one catch-all route per call. The route only
matches when the captured sub-path names an existing file, so requests for
missing files keep routing (an SPA fallback or any other endpoint still gets
them). A matched request runs a two-stage pipeline: ``clear_route`` drops
the routing decision, then ``StaticFiles`` serves the bytes.

Usage::

    app = App()
    map_static_files(app)                      # web root at "/"
    map_static_files(app, "/assets", StaticFileOptions(
        file_provider=MemoryFileProvider({"app.js": "..."}),
    ))
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Protocol

from perch.errors import ConfigurationError
from perch.middleware.static import StaticFiles
from perch.pipeline import PipelineBuilder
from perch.staticfiles.content_types import FileExtensionContentTypeProvider
from perch.staticfiles.options import StaticFileOptions, normalize_request_path

if TYPE_CHECKING:
    from collections.abc import Sequence

    from perch.files.base import FileProvider
    from perch.hosting import HostEnvironment
    from perch.http.request import Request
    from perch.middleware.protocol import AnyResponse, Next
    from perch.routing.builder import Convention, RouteBuilder
    from perch.routing.route import RouteConstraint

logger = logging.getLogger("perch.static")


class EndpointRouteBuilder(Protocol):
    """The registry ``map_static_files`` binds into (``perch.App`` is one)."""

    @property
    def environment(self) -> HostEnvironment: ...

    @property
    def static_file_defaults(self) -> StaticFileOptions: ...

    def map(
        self,
        path: str,
        handler: Any,
        *,
        methods: Sequence[str] = ...,
        name: str | None = ...,
        constraints: dict[str, RouteConstraint] | None = ...,
    ) -> RouteBuilder: ...


class FileExistsConstraint:
    """Route constraint accepting a captured path only if it names a file.

    Directories and missing entries are rejected. A provider that raises is
    logged and treated as "no such file"; routing never sees the error.
    """

    __slots__ = ("provider",)

    def __init__(self, provider: FileProvider) -> None:
        self.provider = provider

    def __call__(self, value: str) -> bool:
        try:
            info = self.provider.resolve(value)
        except Exception:
            logger.warning("File provider failed resolving %r", value, exc_info=True)
            return False
        return info.exists and not info.is_directory

    def __repr__(self) -> str:
        return f"FileExistsConstraint({self.provider!r})"


async def clear_route(request: Request, next: Next) -> AnyResponse:
    """Drop the routing decision so ``StaticFiles`` treats the request as its own."""
    return await next(request.with_route(None))


def resolve_options(
    endpoints: EndpointRouteBuilder,
    request_path: str,
    options: StaticFileOptions | None,
) -> StaticFileOptions:
    """Return a fully populated copy of *options* (or of the app defaults).

    Raises ``ConfigurationError`` when no file provider is configured and
    the host has no web root.
    """
    base = endpoints.static_file_defaults if options is None else options

    content_types = base.content_type_provider or FileExtensionContentTypeProvider()
    provider = base.file_provider or endpoints.environment.web_root_file_provider
    if provider is None:
        msg = (
            "No file provider for static files: pass StaticFileOptions(file_provider=...) "
            "or create the web root directory "
            f"({endpoints.environment.web_root!s})."
        )
        raise ConfigurationError(msg)

    return replace(
        base,
        request_path=normalize_request_path(request_path),
        file_provider=provider,
        content_type_provider=content_types,
    )


class StaticFilesConventionBuilder:
    """Convention builder returned by ``map_static_files``.

    Forwards conventions to the underlying route builder, so auth policies,
    metadata and names attach to the static route like any other.
    """

    __slots__ = ("_inner",)

    def __init__(self, inner: RouteBuilder) -> None:
        self._inner = inner

    def add(self, convention: Convention) -> None:
        if convention is None or not callable(convention):
            msg = f"convention must be callable, got {convention!r}"
            raise TypeError(msg)
        self._inner.add(convention)


def map_static_files(
    endpoints: EndpointRouteBuilder,
    request_path: str = "",
    options: StaticFileOptions | None = None,
    *,
    name: str | None = None,
) -> StaticFilesConventionBuilder:
    """Serve files under *request_path*, matching only paths that exist.

    With *options* omitted the app's ``static_file_defaults`` are used;
    a missing file provider falls back to the host web root. The resolved
    options are a private copy: later changes to the caller's objects do
    not reach the route.
    """
    if endpoints is None:
        msg = "endpoints must not be None"
        raise TypeError(msg)

    resolved = resolve_options(endpoints, request_path, options)
    prefix = resolved.request_path
    # The gate and the serving stage share one provider
    serve = StaticFiles(resolved)

    pipeline = PipelineBuilder().use(clear_route).use(serve).build()
    builder = endpoints.map(
        prefix + "/{**path}",
        pipeline,
        methods=("GET", "HEAD"),
        name=name or f"static:{prefix or '/'}",
        constraints={"path": FileExistsConstraint(serve.file_provider)},
    )
    logger.debug("Static files at %r served from %r", prefix or "/", serve.file_provider)
    return StaticFilesConventionBuilder(builder)
