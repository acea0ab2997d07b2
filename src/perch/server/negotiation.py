"""Turn whatever a route handler returns into a response.

Dispatch is a single ``match`` on the value's type, in this order:

- ``Response`` / ``FileResponse``: returned as is
- ``FileInfo``: streamed as a ``FileResponse``; 404 when it is not a file
- ``str``: 200, text/html
- ``bytes``: 200, application/octet-stream
- ``dict`` / ``list``: 200, application/json
- ``(value, status)`` and ``(value, status, headers)``: the inner value,
  negotiated, then re-statused and given the extra headers
"""

import json
from typing import Any

from perch.errors import ConfigurationError, NotFound
from perch.files.base import FileInfo
from perch.http.response import FileResponse, Response
from perch.middleware.protocol import AnyResponse
from perch.staticfiles.content_types import FileExtensionContentTypeProvider

_content_types = FileExtensionContentTypeProvider()


def _file_response(file: FileInfo) -> FileResponse:
    if not file.is_file:
        raise NotFound(f"{file.name!r} is not a file")
    content_type = _content_types.resolve(file.name) or "application/octet-stream"
    if content_type.startswith("text/"):
        content_type += "; charset=utf-8"
    return FileResponse(file, content_type=content_type)


def negotiate(value: Any) -> AnyResponse:
    """Convert a route handler's return value to a response."""
    match value:
        case Response() | FileResponse():
            return value
        case FileInfo():
            return _file_response(value)
        case str():
            return Response(body=value)
        case bytes():
            return Response(body=value, content_type="application/octet-stream")
        case dict() | list():
            return Response(body=json.dumps(value, default=str), content_type="application/json")
        case (inner, int() as status):
            return negotiate(inner).with_status(status)
        case (inner, int() as status, dict() as headers):
            return negotiate(inner).with_status(status).with_headers(headers)
        case None:
            msg = "Route handler returned None; return a str, bytes, dict, FileInfo or Response."
            raise ConfigurationError(msg)
        case _:
            msg = f"Cannot build a response from {type(value).__name__}."
            raise ConfigurationError(msg)
