"""File extension to content type mapping.

The built-in table covers the common web formats and is identical on every
host. Callers extend or override it through ``mappings``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

DEFAULT_MAPPINGS: Mapping[str, str] = {
    # Text and documents
    ".htm": "text/html",
    ".html": "text/html",
    ".css": "text/css",
    ".csv": "text/csv",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".xml": "text/xml",
    ".ics": "text/calendar",
    ".vtt": "text/vtt",
    ".pdf": "application/pdf",
    ".rtf": "application/rtf",
    # Scripts and data
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".json": "application/json",
    ".map": "application/json",
    ".jsonld": "application/ld+json",
    ".webmanifest": "application/manifest+json",
    ".wasm": "application/wasm",
    ".atom": "application/atom+xml",
    ".rss": "application/rss+xml",
    ".xhtml": "application/xhtml+xml",
    # Images
    ".apng": "image/apng",
    ".avif": "image/avif",
    ".bmp": "image/bmp",
    ".gif": "image/gif",
    ".ico": "image/x-icon",
    ".jpeg": "image/jpeg",
    ".jpg": "image/jpeg",
    ".png": "image/png",
    ".svg": "image/svg+xml",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".webp": "image/webp",
    # Fonts
    ".eot": "application/vnd.ms-fontobject",
    ".otf": "font/otf",
    ".ttf": "font/ttf",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    # Audio and video
    ".aac": "audio/aac",
    ".flac": "audio/flac",
    ".m4a": "audio/mp4",
    ".mp3": "audio/mpeg",
    ".oga": "audio/ogg",
    ".ogg": "audio/ogg",
    ".wav": "audio/wav",
    ".weba": "audio/webm",
    ".mp4": "video/mp4",
    ".mpeg": "video/mpeg",
    ".ogv": "video/ogg",
    ".webm": "video/webm",
    # Archives and binaries
    ".7z": "application/x-7z-compressed",
    ".gz": "application/gzip",
    ".tar": "application/x-tar",
    ".zip": "application/zip",
}


@runtime_checkable
class ContentTypeProvider(Protocol):
    """Map a file name to a content type."""

    def resolve(self, file_name: str) -> str | None:
        """Return the content type for *file_name*, or ``None`` if unknown."""
        ...


class FileExtensionContentTypeProvider:
    """Content types looked up by (case-insensitive) file extension.

    ``mappings`` is a plain mutable dict seeded from ``DEFAULT_MAPPINGS``
    (or from the *mappings* argument): add, change or delete entries during
    setup, before the app starts serving.

    Usage::

        types = FileExtensionContentTypeProvider()
        types.mappings[".glb"] = "model/gltf-binary"
        del types.mappings[".map"]
    """

    __slots__ = ("mappings",)

    def __init__(self, mappings: Mapping[str, str] | None = None) -> None:
        source = DEFAULT_MAPPINGS if mappings is None else mappings
        self.mappings: dict[str, str] = {
            _normalize_extension(ext): content_type for ext, content_type in source.items()
        }

    def resolve(self, file_name: str) -> str | None:
        base = file_name.rsplit("/", 1)[-1]
        dot = base.rfind(".")
        if dot < 0:
            return None
        return self.mappings.get(base[dot:].lower())


def _normalize_extension(ext: str) -> str:
    ext = ext.lower()
    return ext if ext.startswith(".") else f".{ext}"
