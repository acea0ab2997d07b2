"""Tests for perch.http.headers: immutable, case-insensitive Headers."""

import pytest

from perch.http.headers import Headers


def _h(*pairs: tuple[str, str]) -> Headers:
    """Shorthand: build Headers from string pairs."""
    raw = tuple((k.encode("latin-1"), v.encode("latin-1")) for k, v in pairs)
    return Headers(raw)


class TestHeaders:
    def test_getitem(self) -> None:
        h = _h(("Content-Type", "text/html"))
        assert h["Content-Type"] == "text/html"

    def test_case_insensitive(self) -> None:
        h = _h(("Content-Type", "text/html"))
        assert h["content-type"] == "text/html"
        assert h["CONTENT-TYPE"] == "text/html"

    def test_missing_key_raises(self) -> None:
        h = _h(("Accept", "*/*"))
        with pytest.raises(KeyError):
            h["X-Missing"]

    def test_contains(self) -> None:
        h = _h(("Accept", "*/*"))
        assert "accept" in h
        assert "Accept" in h
        assert "x-missing" not in h
        assert 42 not in h  # type: ignore[operator]

    def test_len_deduplicates(self) -> None:
        h = _h(("Set-Cookie", "a=1"), ("Set-Cookie", "b=2"), ("Accept", "*/*"))
        assert len(h) == 2

    def test_iter_yields_unique_lowercase_keys(self) -> None:
        h = _h(("Accept", "*/*"), ("Content-Type", "text/html"), ("Accept", "text/xml"))
        assert list(h) == ["accept", "content-type"]

    def test_get_with_default(self) -> None:
        h = _h(("Accept", "*/*"))
        assert h.get("accept") == "*/*"
        assert h.get("x-missing") is None
        assert h.get("x-missing", "fallback") == "fallback"

    def test_get_list(self) -> None:
        h = _h(("Set-Cookie", "a=1"), ("Set-Cookie", "b=2"), ("Accept", "*/*"))
        assert h.get_list("set-cookie") == ["a=1", "b=2"]
        assert h.get_list("x-missing") == []

    def test_get_tokens_splits_list_headers(self) -> None:
        h = _h(("If-None-Match", '"a", W/"b"'), ("If-None-Match", ' "c" ,'))
        assert h.get_tokens("if-none-match") == ['"a"', 'W/"b"', '"c"']

    def test_from_dict(self) -> None:
        h = Headers.from_dict({"Range": "bytes=0-1"})
        assert h["range"] == "bytes=0-1"
        assert h.raw == ((b"range", b"bytes=0-1"),)

    def test_repr(self) -> None:
        assert repr(_h(("Accept", "*/*"))) == "Headers({'accept': '*/*'})"
