"""Providers that combine or stand in for other providers."""

from __future__ import annotations

from perch.files.base import FileInfo, FileProvider


class CompositeFileProvider:
    """Look a path up in several providers; the first existing entry wins."""

    __slots__ = ("_providers",)

    def __init__(self, *providers: FileProvider) -> None:
        self._providers = providers

    @property
    def providers(self) -> tuple[FileProvider, ...]:
        return self._providers

    def resolve(self, subpath: str) -> FileInfo:
        for provider in self._providers:
            info = provider.resolve(subpath)
            if info.exists:
                return info
        return FileInfo.missing(subpath.rstrip("/").rsplit("/", 1)[-1])


class NullFileProvider:
    """A provider with no entries at all."""

    __slots__ = ()

    def resolve(self, subpath: str) -> FileInfo:
        return FileInfo.missing(subpath.rstrip("/").rsplit("/", 1)[-1])
