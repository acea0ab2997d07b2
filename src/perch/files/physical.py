"""Disk-backed file provider."""

from __future__ import annotations

import os
import stat
from datetime import UTC, datetime
from functools import partial
from pathlib import Path

from perch.errors import ConfigurationError
from perch.files.base import FileInfo, normalize_subpath


class PhysicalFileProvider:
    """Serve a directory tree from the local file system.

    Security: every lookup is resolved (symlinks included) and must stay
    inside the root; anything that escapes resolves to a missing entry.
    Dot-files and dot-directories are hidden unless ``exclude_hidden`` is
    false.

    "Not found" outcomes (``FileNotFoundError``, ``NotADirectoryError``)
    become missing entries; any other ``OSError`` propagates to the caller.
    """

    __slots__ = ("_exclude_hidden", "_root")

    def __init__(self, root: str | Path, *, exclude_hidden: bool = True) -> None:
        path = Path(root).resolve()
        if not path.is_dir():
            msg = f"File provider root {str(root)!r} is not an existing directory."
            raise ConfigurationError(msg)
        self._root = path
        self._exclude_hidden = exclude_hidden

    @property
    def root(self) -> Path:
        return self._root

    def __repr__(self) -> str:
        return f"PhysicalFileProvider({str(self._root)!r})"

    def resolve(self, subpath: str) -> FileInfo:
        parts = normalize_subpath(subpath)
        name = subpath.rstrip("/").rsplit("/", 1)[-1]
        if parts is None:
            return FileInfo.missing(name)
        if self._exclude_hidden and any(part.startswith(".") for part in parts):
            return FileInfo.missing(name)

        target = self._root.joinpath(*parts).resolve()
        if not target.is_relative_to(self._root):
            return FileInfo.missing(name)

        try:
            st = os.stat(target)
        except (FileNotFoundError, NotADirectoryError):
            return FileInfo.missing(name)

        is_directory = stat.S_ISDIR(st.st_mode)
        return FileInfo(
            name=target.name,
            exists=True,
            is_directory=is_directory,
            length=-1 if is_directory else st.st_size,
            last_modified=datetime.fromtimestamp(st.st_mtime, tz=UTC),
            physical_path=target,
            _opener=None if is_directory else partial(open, target, "rb"),
        )
