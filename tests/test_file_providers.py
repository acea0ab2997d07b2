"""Tests for perch.files: virtual file system providers."""

import os
from datetime import UTC, datetime

import pytest

from perch.errors import ConfigurationError
from perch.files import (
    CompositeFileProvider,
    FileInfo,
    FileProvider,
    MemoryFileProvider,
    NullFileProvider,
    PhysicalFileProvider,
    normalize_subpath,
)


@pytest.fixture
def site(tmp_path):
    root = tmp_path / "site"
    root.mkdir()
    (root / "index.html").write_text("<h1>Home</h1>")
    (root / "css").mkdir()
    (root / "css" / "site.css").write_text("body {}")
    (root / ".env").write_text("SECRET=1")
    (tmp_path / "outside.txt").write_text("nope")
    return root


class TestNormalizeSubpath:
    @pytest.mark.parametrize(
        ("subpath", "expected"),
        [
            ("", ()),
            ("/", ()),
            ("app.js", ("app.js",)),
            ("/css/site.css", ("css", "site.css")),
            ("css//./site.css/", ("css", "site.css")),
        ],
    )
    def test_clean_segments(self, subpath, expected) -> None:
        assert normalize_subpath(subpath) == expected

    @pytest.mark.parametrize("subpath", ["../etc/passwd", "a/../../b", "a\\b", "a\x00b"])
    def test_escapes_rejected(self, subpath) -> None:
        assert normalize_subpath(subpath) is None


class TestFileInfo:
    def test_missing(self) -> None:
        info = FileInfo.missing("app.js")
        assert info.exists is False
        assert info.is_file is False
        with pytest.raises(FileNotFoundError):
            info.open()

    def test_directory_cannot_be_opened(self) -> None:
        info = FileInfo(name="css", exists=True, is_directory=True)
        with pytest.raises(FileNotFoundError):
            info.open()


class TestPhysicalFileProvider:
    def test_is_a_file_provider(self, site) -> None:
        assert isinstance(PhysicalFileProvider(site), FileProvider)

    def test_resolves_file(self, site) -> None:
        info = PhysicalFileProvider(site).resolve("css/site.css")

        assert info.exists and info.is_file
        assert info.name == "site.css"
        assert info.length == len("body {}")
        assert info.physical_path == (site / "css" / "site.css").resolve()
        assert info.last_modified is not None
        assert info.last_modified.tzinfo is not None
        with info.open() as fh:
            assert fh.read() == b"body {}"

    def test_leading_slash_optional(self, site) -> None:
        provider = PhysicalFileProvider(site)
        assert provider.resolve("/index.html").exists
        assert provider.resolve("index.html").exists

    def test_resolves_directory(self, site) -> None:
        info = PhysicalFileProvider(site).resolve("css")
        assert info.exists
        assert info.is_directory
        assert not info.is_file

    def test_root_is_a_directory(self, site) -> None:
        assert PhysicalFileProvider(site).resolve("").is_directory

    def test_missing_file(self, site) -> None:
        assert PhysicalFileProvider(site).resolve("nope.js").exists is False

    def test_path_below_a_file_is_missing(self, site) -> None:
        assert PhysicalFileProvider(site).resolve("index.html/child").exists is False

    def test_traversal_is_missing(self, site) -> None:
        assert PhysicalFileProvider(site).resolve("../outside.txt").exists is False

    def test_hidden_files_excluded_by_default(self, site) -> None:
        assert PhysicalFileProvider(site).resolve(".env").exists is False
        assert PhysicalFileProvider(site, exclude_hidden=False).resolve(".env").exists

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
    def test_symlink_escape_is_missing(self, site) -> None:
        link = site / "escape.txt"
        try:
            link.symlink_to(site.parent / "outside.txt")
        except OSError:
            pytest.skip("cannot create symlinks here")
        assert PhysicalFileProvider(site).resolve("escape.txt").exists is False

    def test_root_must_exist(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError):
            PhysicalFileProvider(tmp_path / "missing")


class TestMemoryFileProvider:
    def test_resolves_text_and_bytes(self) -> None:
        provider = MemoryFileProvider({"a.txt": "héllo", "b.bin": b"\x00\x01"})

        a = provider.resolve("a.txt")
        assert a.length == len("héllo".encode())
        assert a.open().read() == "héllo".encode()
        assert provider.resolve("/b.bin").open().read() == b"\x00\x01"
        assert len(provider) == 2

    def test_implied_directories(self) -> None:
        provider = MemoryFileProvider({"js/vendor/lib.js": "x"})

        assert provider.resolve("js").is_directory
        assert provider.resolve("js/vendor").is_directory
        assert provider.resolve("").is_directory
        assert provider.resolve("js/vendor/lib.js").is_file

    def test_last_modified_truncated_to_seconds(self) -> None:
        stamp = datetime(2024, 5, 1, 12, 30, 15, 999_999, tzinfo=UTC)
        info = MemoryFileProvider({"a.txt": "a"}, last_modified=stamp).resolve("a.txt")
        assert info.last_modified == datetime(2024, 5, 1, 12, 30, 15, tzinfo=UTC)

    def test_missing_and_traversal(self) -> None:
        provider = MemoryFileProvider({"a.txt": "a"})
        assert provider.resolve("b.txt").exists is False
        assert provider.resolve("../a.txt").exists is False

    def test_rejects_invalid_keys(self) -> None:
        with pytest.raises(ValueError):
            MemoryFileProvider({"../evil": "x"})


class TestCompositeFileProvider:
    def test_first_existing_entry_wins(self) -> None:
        first = MemoryFileProvider({"a.txt": "first"})
        second = MemoryFileProvider({"a.txt": "second", "b.txt": "b"})
        composite = CompositeFileProvider(first, second)

        assert composite.resolve("a.txt").open().read() == b"first"
        assert composite.resolve("b.txt").open().read() == b"b"
        assert composite.resolve("c.txt").exists is False
        assert composite.providers == (first, second)

    def test_null_provider_has_nothing(self) -> None:
        assert NullFileProvider().resolve("anything").exists is False
        assert CompositeFileProvider(NullFileProvider()).resolve("x").exists is False
