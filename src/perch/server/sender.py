"""ASGI response sending: translates perch responses to ASGI messages.

``Response`` goes out as one body message. ``FileResponse`` is streamed:
the file is read in fixed-size chunks on a worker thread, one ASGI body
message per chunk, so a cancelled request stops reading mid-file.
"""

import logging
from typing import BinaryIO

import anyio.to_thread

from perch._internal.types import Send
from perch.http.response import FileResponse, Response

logger = logging.getLogger("perch.server")

CHUNK_SIZE = 64 * 1024


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def _raw_headers(
    content_type: str, headers: tuple[tuple[str, str], ...]
) -> list[tuple[bytes, bytes]]:
    raw: list[tuple[bytes, bytes]] = []
    if content_type:
        raw.append((b"content-type", content_type.encode("latin-1")))
    for name, value in headers:
        raw.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    return raw


async def send_response(response: Response, send: Send) -> None:
    """Translate a perch Response into ASGI send() calls."""
    raw_headers = _raw_headers(response.content_type, response.headers)

    body = response.body_bytes if _body_allowed(response.status) else b""
    if response.status != 304:
        raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": body,
        }
    )


def _read_window(fh: BinaryIO, size: int) -> bytes:
    return fh.read(size)


async def send_file_response(response: FileResponse, send: Send) -> None:
    """Stream the byte window selected by *response* from its file.

    Headers always carry the full ``content-length`` of the window; the
    body is skipped for HEAD (``send_body`` false).
    """
    raw_headers = _raw_headers(response.content_type, response.headers)
    remaining = response.content_length
    raw_headers.append((b"content-length", str(remaining).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )

    if not response.send_body or not _body_allowed(response.status) or remaining <= 0:
        await send({"type": "http.response.body", "body": b"", "more_body": False})
        return

    fh = await anyio.to_thread.run_sync(response.file.open)
    try:
        if response.offset:
            await anyio.to_thread.run_sync(fh.seek, response.offset)
        while remaining > 0:
            chunk = await anyio.to_thread.run_sync(_read_window, fh, min(CHUNK_SIZE, remaining))
            if not chunk:
                # File shrank since it was resolved
                logger.warning(
                    "%s ended %d bytes early", response.file.name, remaining
                )
                break
            remaining -= len(chunk)
            await send({"type": "http.response.body", "body": chunk, "more_body": True})
    finally:
        fh.close()

    await send({"type": "http.response.body", "body": b"", "more_body": False})
