"""In-memory file provider.

Useful for embedded assets and tests. Directories are implied by the file
paths: registering ``css/site.css`` makes ``css`` a directory.
"""

from __future__ import annotations

import io
from collections.abc import Mapping
from datetime import UTC, datetime

from perch.files.base import FileInfo, normalize_subpath


class MemoryFileProvider:
    """A read-only file tree held in memory.

    Usage::

        files = MemoryFileProvider({
            "index.html": "<h1>Home</h1>",
            "js/app.js": b"console.log(1);",
        })
    """

    __slots__ = ("_directories", "_files", "_last_modified")

    def __init__(
        self,
        files: Mapping[str, bytes | str],
        *,
        last_modified: datetime | None = None,
    ) -> None:
        self._files: dict[tuple[str, ...], bytes] = {}
        self._directories: set[tuple[str, ...]] = {()}
        for key, content in files.items():
            parts = normalize_subpath(key)
            if not parts:
                msg = f"Invalid in-memory file path {key!r}"
                raise ValueError(msg)
            data = content.encode("utf-8") if isinstance(content, str) else bytes(content)
            self._files[parts] = data
            for depth in range(1, len(parts)):
                self._directories.add(parts[:depth])
        stamp = last_modified or datetime.now(UTC)
        self._last_modified = stamp.replace(microsecond=0)

    def __len__(self) -> int:
        return len(self._files)

    def resolve(self, subpath: str) -> FileInfo:
        parts = normalize_subpath(subpath)
        if parts is None:
            return FileInfo.missing(subpath.rstrip("/").rsplit("/", 1)[-1])
        name = parts[-1] if parts else ""

        data = self._files.get(parts)
        if data is not None:
            return FileInfo(
                name=name,
                exists=True,
                length=len(data),
                last_modified=self._last_modified,
                _opener=lambda: io.BytesIO(data),
            )
        if parts in self._directories:
            return FileInfo(
                name=name,
                exists=True,
                is_directory=True,
                last_modified=self._last_modified,
            )
        return FileInfo.missing(name)
