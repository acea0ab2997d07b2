"""Request headers as an immutable, case-insensitive mapping.

The ASGI byte pairs are kept for ``raw``; names are lower-cased and values
decoded once, when the ``Headers`` object is built.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping


class Headers(Mapping[str, str]):
    """Immutable, case-insensitive request headers.

    Indexing returns the first value. Conditional and range requests need
    the rest too: ``get_list`` returns every value of a header and
    ``get_tokens`` splits comma-separated list headers such as
    ``If-None-Match: "a", W/"b"``.
    """

    __slots__ = ("_decoded", "_raw")

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        self._raw = raw
        self._decoded: tuple[tuple[str, str], ...] = tuple(
            (name.decode("latin-1").lower(), value.decode("latin-1")) for name, value in raw
        )

    @classmethod
    def from_dict(cls, headers: Mapping[str, str]) -> Headers:
        """Build from a ``str -> str`` mapping (tests, synthetic requests)."""
        return cls(
            tuple(
                (name.lower().encode("latin-1"), value.encode("latin-1"))
                for name, value in headers.items()
            )
        )

    def __getitem__(self, key: str) -> str:
        wanted = key.lower()
        for name, value in self._decoded:
            if name == wanted:
                return value
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        wanted = key.lower()
        return any(name == wanted for name, _ in self._decoded)

    def __iter__(self) -> Iterator[str]:
        return iter(dict.fromkeys(name for name, _ in self._decoded))

    def __len__(self) -> int:
        return len(dict.fromkeys(name for name, _ in self._decoded))

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"Headers({{{items}}})"

    def get_list(self, key: str) -> list[str]:
        wanted = key.lower()
        return [value for name, value in self._decoded if name == wanted]

    def get_tokens(self, key: str) -> list[str]:
        """Comma-separated members of every *key* header, stripped, blanks dropped."""
        return [
            token.strip()
            for value in self.get_list(key)
            for token in value.split(",")
            if token.strip()
        ]

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        """The byte pairs as received from ASGI."""
        return self._raw
