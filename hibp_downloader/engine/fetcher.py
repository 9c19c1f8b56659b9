"""HTTP access to the Pwned Passwords range endpoint."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

import httpx
import structlog

from .. import __version__
from .errors import RemoteStatusFailure, TransportFailure

DEFAULT_API_URL = "https://api.pwnedpasswords.com"
DEFAULT_USER_AGENT = f"hibp-downloader/{__version__}"
DEFAULT_TIMEOUT = 20.0


@dataclass(slots=True)
class FetchResponse:
    """Successful range response."""

    prefix: str
    url: str
    status_code: int
    text: str
    headers: Dict[str, str] = field(default_factory=dict)


class RangeFetcher:
    """Issue ``GET /range/{prefix}`` requests over a shared httpx client.

    One instance is shared by every worker thread of a run; ``httpx.Client`` is
    safe to use concurrently. Each call performs a single attempt, retries are
    the caller's business.
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float | None = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.user_agent = user_agent
        self.logger = logger or structlog.get_logger("hibp_downloader.fetcher")
        self._client = httpx.Client(
            base_url=self.api_url,
            headers={"User-Agent": user_agent},
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    def __enter__(self) -> "RangeFetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def range_path(self, prefix: str) -> str:
        return f"/range/{prefix.upper()}"

    def fetch(self, prefix: str) -> FetchResponse:
        path = self.range_path(prefix)
        try:
            response = self._client.get(path)
        except httpx.HTTPError as exc:
            raise TransportFailure(prefix, exc) from exc
        if response.status_code != httpx.codes.OK:
            raise RemoteStatusFailure(prefix, response.status_code)
        return FetchResponse(
            prefix=prefix,
            url=str(response.url),
            status_code=response.status_code,
            text=response.text,
            headers=dict(response.headers),
        )


__all__ = [
    "DEFAULT_API_URL",
    "DEFAULT_TIMEOUT",
    "DEFAULT_USER_AGENT",
    "FetchResponse",
    "RangeFetcher",
]
