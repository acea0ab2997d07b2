"""Cache validators, conditional requests and byte ranges (RFC 7232, RFC 7233)."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import format_datetime, parsedate_to_datetime

from perch.files.base import FileInfo
from perch.http.headers import Headers


class Precondition(enum.Enum):
    """Outcome of evaluating the conditional request headers."""

    PROCEED = 200
    NOT_MODIFIED = 304
    PRECONDITION_FAILED = 412


@dataclass(frozen=True, slots=True)
class Validators:
    """``ETag`` and ``Last-Modified`` for one file."""

    etag: str | None
    last_modified: datetime | None

    @classmethod
    def for_file(cls, file: FileInfo) -> Validators:
        if file.last_modified is None:
            return cls(etag=None, last_modified=None)
        # HTTP dates have one-second resolution
        modified = file.last_modified.astimezone(UTC).replace(microsecond=0)
        stamp = int(modified.timestamp())
        return cls(etag=f'"{stamp ^ file.length:x}"', last_modified=modified)

    @property
    def last_modified_header(self) -> str | None:
        if self.last_modified is None:
            return None
        return format_http_date(self.last_modified)


@dataclass(frozen=True, slots=True)
class ByteRange:
    """An inclusive byte range ``start..end`` within a file."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def content_range(self, total: int) -> str:
        return f"bytes {self.start}-{self.end}/{total}"


def format_http_date(value: datetime) -> str:
    return format_datetime(value.astimezone(UTC), usegmt=True)


def parse_http_date(value: str | None) -> datetime | None:
    """Parse an HTTP date; ``None`` for missing or malformed values."""
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _strip_weak(tag: str) -> str:
    return tag[2:] if tag.startswith("W/") else tag


def _strong_match(tags: list[str], etag: str | None) -> bool:
    if "*" in tags:
        return True
    return etag is not None and any(not t.startswith("W/") and t == etag for t in tags)


def _weak_match(tags: list[str], etag: str | None) -> bool:
    if "*" in tags:
        return True
    return etag is not None and any(_strip_weak(t) == etag for t in tags)


def evaluate_preconditions(
    method: str, headers: Headers, validators: Validators
) -> Precondition:
    """Apply ``If-Match``, ``If-Unmodified-Since``, ``If-None-Match`` and
    ``If-Modified-Since`` in RFC 7232 section 6 order."""
    if_match = headers.get_tokens("if-match")
    if if_match:
        if not _strong_match(if_match, validators.etag):
            return Precondition.PRECONDITION_FAILED
    else:
        since = parse_http_date(headers.get("if-unmodified-since"))
        if (
            since is not None
            and validators.last_modified is not None
            and validators.last_modified > since
        ):
            return Precondition.PRECONDITION_FAILED

    if method not in ("GET", "HEAD"):
        return Precondition.PROCEED

    if_none_match = headers.get_tokens("if-none-match")
    if if_none_match:
        if _weak_match(if_none_match, validators.etag):
            return Precondition.NOT_MODIFIED
        return Precondition.PROCEED

    since = parse_http_date(headers.get("if-modified-since"))
    if (
        since is not None
        and validators.last_modified is not None
        and validators.last_modified <= since
    ):
        return Precondition.NOT_MODIFIED
    return Precondition.PROCEED


def if_range_allows(headers: Headers, validators: Validators) -> bool:
    """True when ``Range`` should be honoured given ``If-Range``."""
    value = headers.get("if-range")
    if value is None:
        return True
    value = value.strip()
    if value.startswith(('"', "W/")):
        return value == validators.etag
    since = parse_http_date(value)
    return (
        since is not None
        and validators.last_modified is not None
        and validators.last_modified <= since
    )


class RangeResult(enum.Enum):
    IGNORE = "ignore"
    UNSATISFIABLE = "unsatisfiable"


def parse_range(value: str | None, length: int) -> ByteRange | RangeResult:
    """Interpret a ``Range`` header against a file of *length* bytes.

    Only a single ``bytes=`` range is honoured. Missing, malformed and
    multi-range headers yield ``IGNORE`` (serve the whole file).
    """
    if not value:
        return RangeResult.IGNORE
    unit, _, ranges = value.partition("=")
    if unit.strip().lower() != "bytes" or "," in ranges:
        return RangeResult.IGNORE
    first, sep, last = ranges.strip().partition("-")
    if not sep:
        return RangeResult.IGNORE
    first, last = first.strip(), last.strip()
    if (first and not first.isdigit()) or (last and not last.isdigit()):
        return RangeResult.IGNORE

    if not first:
        if not last:
            return RangeResult.IGNORE
        suffix = int(last)
        if suffix == 0 or length == 0:
            return RangeResult.UNSATISFIABLE
        return ByteRange(start=max(length - suffix, 0), end=length - 1)

    start = int(first)
    end = int(last) if last else length - 1
    if last and end < start:
        return RangeResult.IGNORE
    if start >= length:
        return RangeResult.UNSATISFIABLE
    return ByteRange(start=start, end=min(end, length - 1))
