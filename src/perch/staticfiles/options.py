"""Static file configuration.

``StaticFileOptions`` is a frozen dataclass. It is immutable after
creation and shared read-only by every request that reaches its route.
Fields left as ``None`` are filled in when a route is bound (see
``perch.staticfiles.endpoints.resolve_options``); the binder always works on
a fresh copy, never on the caller's instance.
"""

from __future__ import annotations

import enum
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeAlias

if TYPE_CHECKING:
    from perch.files.base import FileInfo, FileProvider
    from perch.http.request import Request
    from perch.http.response import FileResponse
    from perch.staticfiles.content_types import ContentTypeProvider


class CompressionMode(enum.Enum):
    """Whether served files may be compressed on HTTPS connections."""

    COMPRESS = "compress"
    DO_NOT_COMPRESS = "do-not-compress"


@dataclass(frozen=True, slots=True)
class StaticFileResponseContext:
    """What ``on_prepare_response`` sees: status and headers are final,
    the body has not been sent yet."""

    request: Request
    file: FileInfo
    response: FileResponse


PrepareResponse: TypeAlias = Callable[
    [StaticFileResponseContext], "FileResponse | None | Awaitable[FileResponse | None]"
]


@dataclass(frozen=True, slots=True)
class StaticFileOptions:
    """Configuration for serving files from a virtual file system.

    All fields have defaults. Override what you need::

        StaticFileOptions(
            file_provider=PhysicalFileProvider("./public"),
            serve_unknown_file_types=True,
            default_content_type="application/octet-stream",
            cache_control="public, max-age=3600",
        )

    ``on_prepare_response`` runs after status and headers are set and
    before the body is written. Responses are immutable, so the hook
    returns a replacement (``context.response.with_header(...)``) or
    ``None`` to keep the original. Sync and async hooks both work.
    """

    # URL prefix the files are served under ("" is the root)
    request_path: str = ""

    # Where files come from; defaults to the host's web root
    file_provider: FileProvider | None = None

    # Extension -> content type; defaults to the built-in table
    content_type_provider: ContentTypeProvider | None = None

    # Used only when serve_unknown_file_types is true
    default_content_type: str | None = None
    serve_unknown_file_types: bool = False

    https_compression: CompressionMode = CompressionMode.COMPRESS
    on_prepare_response: PrepareResponse | None = None

    # Cache-Control value for served files (None sends no header)
    cache_control: str | None = None


def normalize_request_path(request_path: str) -> str:
    """Normalize a URL prefix: one leading slash, no trailing slash, root is ``""``.

    ``"assets"``, ``"/assets"`` and ``"/assets/"`` all become ``"/assets"``;
    ``""`` and ``"/"`` become ``""``.
    """
    stripped = request_path.strip("/")
    return f"/{stripped}" if stripped else ""
