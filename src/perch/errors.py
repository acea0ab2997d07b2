"""Exceptions raised by perch.

``ConfigurationError`` is a setup-time problem and surfaces while routes are
bound or the app compiles. ``HTTPError`` and its subclasses surface per
request and become error responses.
"""

from dataclasses import dataclass


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Invalid setup, such as a malformed route pattern or a static route
    with no file provider."""


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """A failure with an HTTP status.

    ``headers`` are copied onto the default error response (``Allow`` for
    405). A handler registered with ``@app.error(status)`` replaces that
    response.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405: route exists but not for this HTTP method.

    Includes an ``Allow`` header listing the valid methods.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )
