"""Engine components orchestrating fetch → decode → merge → export."""

from .downloader import Downloader, WorkerState
from .errors import (
    DownloaderError,
    InvalidRange,
    MalformedLine,
    RemoteStatusFailure,
    RetriesExhausted,
    TransportFailure,
)
from .fetcher import FetchResponse, RangeFetcher
from .parser import ResponseParser, parse_range_response
from .records import HashCount
from .thread_pool import WorkerPool

__all__ = [
    "Downloader",
    "DownloaderError",
    "FetchResponse",
    "HashCount",
    "InvalidRange",
    "MalformedLine",
    "RangeFetcher",
    "RemoteStatusFailure",
    "ResponseParser",
    "RetriesExhausted",
    "TransportFailure",
    "WorkerPool",
    "WorkerState",
    "parse_range_response",
]
