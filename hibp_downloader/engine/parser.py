"""Decoder for Pwned Passwords range responses."""

from __future__ import annotations

import re

from .errors import MalformedLine
from .records import DIGEST_SIZE, MAX_COUNT, HashCount

PREFIX_LENGTH = 5
SUFFIX_LENGTH = DIGEST_SIZE * 2 - PREFIX_LENGTH
SEPARATOR = ":"

_PREFIX_PATTERN = re.compile(r"^[0-9A-Fa-f]{5}$")
_SUFFIX_PATTERN = re.compile(r"^[0-9A-Fa-f]{35}$")


class ResponseParser:
    """Turn a ``<35 hex>:<count>`` per line body into :class:`HashCount` records.

    The parser is bound to the 5-digit prefix that produced the response, since
    the endpoint only returns the remaining 35 hex characters of each digest.
    Lines may end with ``\\r\\n``, ``\\n`` or a lone ``\\r``; a last line without
    a terminator is decoded as well.

    In the default lenient mode a malformed line is skipped and the error is
    kept in :attr:`malformed`; with ``strict=True`` it is raised instead.
    """

    def __init__(self, prefix: str, *, strict: bool = False) -> None:
        if not _PREFIX_PATTERN.match(prefix):
            raise ValueError(f"prefix must be {PREFIX_LENGTH} hex characters: {prefix!r}")
        self.prefix = prefix
        self.strict = strict
        self.malformed: list[MalformedLine] = []

    def parse(self, body: str) -> list[HashCount]:
        self.malformed = []
        records: list[HashCount] = []
        for line_number, line in enumerate(body.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                records.append(self.parse_line(line, line_number))
            except MalformedLine as exc:
                if self.strict:
                    raise
                self.malformed.append(exc)
        return records

    def parse_line(self, line: str, line_number: int | None = None) -> HashCount:
        suffix, separator, count_text = line.strip().partition(SEPARATOR)
        if not separator:
            raise MalformedLine(line, "missing separator", line_number)
        if not _SUFFIX_PATTERN.match(suffix):
            raise MalformedLine(line, f"suffix must be {SUFFIX_LENGTH} hex digits", line_number)
        if not count_text.isascii() or not count_text.isdigit():
            raise MalformedLine(line, "count is not a decimal number", line_number)
        count = int(count_text)
        if count > MAX_COUNT:
            raise MalformedLine(line, "count exceeds 32 bits", line_number)
        return HashCount(bytes.fromhex(self.prefix + suffix), count)


def parse_range_response(prefix: str, body: str) -> list[HashCount]:
    """Decode a response body leniently, dropping malformed lines."""

    return ResponseParser(prefix).parse(body)


__all__ = ["ResponseParser", "parse_range_response", "PREFIX_LENGTH", "SUFFIX_LENGTH"]
