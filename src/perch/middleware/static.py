"""Static file serving middleware.

Serves files from a virtual file system for paths under a URL prefix.
Falls through to the next handler for everything it does not serve:
other methods, other prefixes, unknown content types, missing files and
directories.

Works in two positions:

- as app middleware (``app.add_middleware(StaticFiles(...))``), ahead of
  routing;
- as the serving stage of a bound static route (``map_static_files``),
  where the route's pipeline clears the routing decision first. A request
  that still carries a routing decision belongs to its endpoint and is
  passed through untouched.
"""

import logging
from dataclasses import replace
from pathlib import Path

from perch._internal.invoke import invoke
from perch.errors import ConfigurationError
from perch.files.base import FileInfo, FileProvider
from perch.files.physical import PhysicalFileProvider
from perch.http.request import Request
from perch.http.response import FileResponse, Response
from perch.middleware.protocol import AnyResponse, Next
from perch.staticfiles.conditional import (
    ByteRange,
    Precondition,
    RangeResult,
    Validators,
    evaluate_preconditions,
    if_range_allows,
    parse_range,
)
from perch.staticfiles.content_types import FileExtensionContentTypeProvider
from perch.staticfiles.options import (
    CompressionMode,
    StaticFileOptions,
    StaticFileResponseContext,
    normalize_request_path,
)

logger = logging.getLogger("perch.static")


class StaticFiles:
    """Middleware that serves files from a ``FileProvider``.

    Handles ``GET`` and ``HEAD``: content type from the configured
    provider, ``ETag``/``Last-Modified`` validators, conditional requests
    (304/412), single byte ranges (206/416) and the ``on_prepare_response``
    hook.

    Usage::

        # Full options
        app.add_middleware(StaticFiles(StaticFileOptions(
            request_path="/assets",
            file_provider=MemoryFileProvider({"app.js": "..."}),
        )))

        # Directory shorthand
        app.add_middleware(StaticFiles(directory="./static", prefix="/static"))
    """

    __slots__ = ("_content_types", "_files", "_options", "_prefix")

    def __init__(
        self,
        options: StaticFileOptions | None = None,
        *,
        directory: str | Path | None = None,
        prefix: str = "/static",
        cache_control: str | None = None,
    ) -> None:
        if options is None:
            if directory is None:
                msg = "StaticFiles needs either options or a directory."
                raise ConfigurationError(msg)
            options = StaticFileOptions(
                request_path=prefix,
                file_provider=PhysicalFileProvider(directory),
                cache_control=cache_control,
            )
        files = options.file_provider
        if files is None:
            msg = "StaticFiles options have no file_provider."
            raise ConfigurationError(msg)
        content_types = options.content_type_provider or FileExtensionContentTypeProvider()
        request_path = normalize_request_path(options.request_path)

        self._options = replace(
            options, request_path=request_path, content_type_provider=content_types
        )
        self._files = files
        self._content_types = content_types
        self._prefix = [part for part in request_path.split("/") if part]

    @property
    def options(self) -> StaticFileOptions:
        return self._options

    @property
    def file_provider(self) -> FileProvider:
        return self._files

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        """Serve a static file or fall through."""
        if request.route is not None:
            return await next(request)

        if request.method not in ("GET", "HEAD"):
            return await next(request)

        subpath = self._subpath(request.path)
        if subpath is None:
            return await next(request)

        options = self._options
        content_type = self._content_types.resolve(subpath)
        if content_type is None:
            if not options.serve_unknown_file_types:
                logger.debug("No content type for %s; passing through", request.path)
                return await next(request)
            content_type = options.default_content_type or "application/octet-stream"

        file = self._files.resolve(subpath)
        if not file.is_file:
            return await next(request)

        return await self._serve(request, file, content_type)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _subpath(self, path: str) -> str | None:
        """The part of *path* below the prefix, or ``None`` if outside it.

        Empty segments are dropped exactly as the router drops them, so a
        bound route serves the same sub-path its existence check accepted
        (``/assets/app.js/`` and ``/assets//app.js`` both become ``app.js``).
        """
        segments = [part for part in path.split("/") if part]
        if segments[: len(self._prefix)] != self._prefix:
            return None
        return "/".join(segments[len(self._prefix) :])

    async def _serve(self, request: Request, file: FileInfo, content_type: str) -> AnyResponse:
        options = self._options
        validators = Validators.for_file(file)

        headers: list[tuple[str, str]] = [("Accept-Ranges", "bytes")]
        if validators.last_modified_header is not None:
            headers.append(("Last-Modified", validators.last_modified_header))
        if validators.etag is not None:
            headers.append(("ETag", validators.etag))
        if options.cache_control:
            headers.append(("Cache-Control", options.cache_control))

        precondition = evaluate_preconditions(request.method, request.headers, validators)
        if precondition is Precondition.NOT_MODIFIED:
            return Response(body=b"", status=304, content_type="", headers=tuple(headers))
        if precondition is Precondition.PRECONDITION_FAILED:
            return Response(body=b"", status=412, content_type="")

        response = FileResponse(
            file=file,
            content_type=content_type,
            headers=tuple(headers),
            send_body=request.method != "HEAD",
            compress=not (
                options.https_compression is CompressionMode.DO_NOT_COMPRESS and request.is_secure
            ),
        )

        if request.method == "GET" and if_range_allows(request.headers, validators):
            byte_range = parse_range(request.headers.get("range"), file.length)
            if byte_range is RangeResult.UNSATISFIABLE:
                return Response(
                    body=b"",
                    status=416,
                    content_type="",
                    headers=(("Content-Range", f"bytes */{file.length}"),),
                )
            if isinstance(byte_range, ByteRange):
                response = replace(
                    response.with_header("Content-Range", byte_range.content_range(file.length)),
                    status=206,
                    offset=byte_range.start,
                    length=byte_range.length,
                )

        if options.on_prepare_response is not None:
            context = StaticFileResponseContext(request=request, file=file, response=response)
            prepared = await invoke(options.on_prepare_response, context)
            if prepared is not None:
                response = prepared

        logger.debug(
            "Serving %s -> %s (%d, %d bytes)",
            request.path,
            file.name,
            response.status,
            response.content_length,
        )
        return response
