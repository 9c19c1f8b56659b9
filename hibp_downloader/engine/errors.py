"""Exception hierarchy shared by the download engine."""

from __future__ import annotations


class DownloaderError(Exception):
    """Base class for all engine errors."""


class InvalidRange(DownloaderError, ValueError):
    """Outer prefix bounds or step are outside the key space."""


class TransportFailure(DownloaderError):
    """No HTTP response could be obtained for a range request."""

    def __init__(self, prefix: str, error: Exception | None = None) -> None:
        self.prefix = prefix
        self.error = error
        super().__init__(f"Transport failure for prefix {prefix}: {error}")


class RemoteStatusFailure(DownloaderError):
    """The range endpoint answered with a status other than 200."""

    def __init__(self, prefix: str, status_code: int) -> None:
        self.prefix = prefix
        self.status_code = status_code
        super().__init__(f"Unexpected status {status_code} for prefix {prefix}")


class MalformedLine(DownloaderError, ValueError):
    """A response line could not be decoded into a record."""

    def __init__(self, line: str, reason: str, line_number: int | None = None) -> None:
        self.line = line
        self.reason = reason
        self.line_number = line_number
        location = f" (line {line_number})" if line_number is not None else ""
        super().__init__(f"Malformed range line{location}: {reason}: {line!r}")


class RetriesExhausted(DownloaderError):
    """A bounded retry policy gave up on a single prefix."""

    def __init__(self, prefix: str, attempts: int, last_error: Exception | None = None) -> None:
        self.prefix = prefix
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Giving up on prefix {prefix} after {attempts} attempts")


__all__ = [
    "DownloaderError",
    "InvalidRange",
    "MalformedLine",
    "RemoteStatusFailure",
    "RetriesExhausted",
    "TransportFailure",
]
