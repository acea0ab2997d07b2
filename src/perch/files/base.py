"""Virtual file system contract.

Any backend (disk, memory, a composite of several) implements
``FileProvider``: resolve a logical ``/``-separated path to a ``FileInfo``.
Absence is a value (``exists=False``), never an exception. Implementations
must be safe for concurrent reads.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Protocol, runtime_checkable

__all__ = ["FileInfo", "FileProvider", "normalize_subpath"]


@dataclass(frozen=True, slots=True)
class FileInfo:
    """Metadata for one entry of a virtual file system.

    ``last_modified`` is timezone-aware UTC when known. ``physical_path``
    is set only for entries backed by a real file on disk.
    """

    name: str
    exists: bool
    is_directory: bool = False
    length: int = -1
    last_modified: datetime | None = None
    physical_path: Path | None = None
    _opener: Callable[[], BinaryIO] | None = field(default=None, repr=False, compare=False)

    @classmethod
    def missing(cls, name: str) -> FileInfo:
        """The not-found value for *name*."""
        return cls(name=name, exists=False)

    @property
    def is_file(self) -> bool:
        """True for an existing regular file."""
        return self.exists and not self.is_directory

    def open(self) -> BinaryIO:
        """Open the file for binary reading.

        Raises ``FileNotFoundError`` for missing entries and directories.
        """
        if not self.is_file or self._opener is None:
            msg = f"{self.name!r} is not a readable file"
            raise FileNotFoundError(msg)
        return self._opener()


@runtime_checkable
class FileProvider(Protocol):
    """Resolve logical paths to file metadata and content."""

    def resolve(self, subpath: str) -> FileInfo:
        """Return the entry at *subpath*; ``exists`` is false when absent."""
        ...


def normalize_subpath(subpath: str) -> tuple[str, ...] | None:
    """Split *subpath* into clean segments.

    Leading/trailing and doubled separators are ignored, ``.`` segments are
    dropped. Returns ``None`` for anything that tries to leave the root
    (``..`` segments, backslashes, NUL bytes).
    """
    if "\x00" in subpath or "\\" in subpath:
        return None
    parts: list[str] = []
    for part in subpath.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            return None
        parts.append(part)
    return tuple(parts)
