"""HTTP responses with a chainable .with_*() transformation API.

Each transformation returns a new response; instances are never mutated.

``Response`` carries an in-memory body. ``FileResponse`` carries a
``FileInfo`` plus the byte window to send; the ASGI sender streams it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Self

if TYPE_CHECKING:
    from perch.files.base import FileInfo


class _Transforms:
    """``with_*`` methods shared by both response types."""

    __slots__ = ()

    status: int
    content_type: str
    headers: tuple[tuple[str, str], ...]

    def with_status(self, status: int) -> Self:
        return replace(self, status=status)  # type: ignore[type-var]

    def with_header(self, name: str, value: str) -> Self:
        """Add a header; earlier headers of the same name are kept."""
        return self.with_headers({name: value})

    def with_headers(self, headers: Mapping[str, str]) -> Self:
        return replace(self, headers=self.headers + tuple(headers.items()))  # type: ignore[type-var]

    def with_content_type(self, content_type: str) -> Self:
        return replace(self, content_type=content_type)  # type: ignore[type-var]

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive), or ``None``."""
        wanted = name.lower()
        return next((value for key, value in self.headers if key.lower() == wanted), None)


@dataclass(frozen=True, slots=True)
class Response(_Transforms):
    """A response with its whole body in memory.

    Handlers usually return plain values and let negotiation build one;
    construct it directly to control status and headers::

        Response("Back soon", status=503).with_header("Retry-After", "120")
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()

    @property
    def body_bytes(self) -> bytes:
        return self.body.encode("utf-8") if isinstance(self.body, str) else self.body

    @property
    def text(self) -> str:
        """The body decoded as UTF-8."""
        return self.body.decode("utf-8") if isinstance(self.body, bytes) else self.body


@dataclass(frozen=True, slots=True)
class FileResponse(_Transforms):
    """A response whose body is a window of a virtual file.

    ``offset``/``length`` select the bytes to send (the whole file for a
    200, the requested range for a 206). ``send_body`` is false for HEAD
    requests. ``compress`` is an advisory flag for any compression layer
    placed in front of the app.
    """

    file: FileInfo
    status: int = 200
    content_type: str = "application/octet-stream"
    headers: tuple[tuple[str, str], ...] = ()
    offset: int = 0
    length: int | None = None
    send_body: bool = True
    compress: bool = True

    @property
    def content_length(self) -> int:
        """Number of body bytes this response declares."""
        if self.length is not None:
            return self.length
        return self.file.length - self.offset
