from __future__ import annotations

import httpx
import pytest

from hibp_downloader.engine.errors import RemoteStatusFailure, TransportFailure
from hibp_downloader.engine.fetcher import RangeFetcher


def _fetcher(handler) -> RangeFetcher:
    return RangeFetcher(
        api_url="https://api.example.test/",
        user_agent="hibp-downloader/test",
        transport=httpx.MockTransport(handler),
    )


def test_fetch_requests_range_path_with_user_agent() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="0" * 35 + ":1\r\n")

    with _fetcher(handler) as fetcher:
        response = fetcher.fetch("abcde")

    assert seen[0].method == "GET"
    assert seen[0].url.path == "/range/ABCDE"
    assert seen[0].headers["User-Agent"] == "hibp-downloader/test"
    assert response.prefix == "abcde"
    assert response.status_code == 200
    assert response.text.startswith("0" * 35)


@pytest.mark.parametrize("status", [404, 429, 500, 503])
def test_non_200_status_raises_remote_failure(status: int) -> None:
    with _fetcher(lambda request: httpx.Response(status)) as fetcher:
        with pytest.raises(RemoteStatusFailure) as excinfo:
            fetcher.fetch("00000")
    assert excinfo.value.status_code == status
    assert excinfo.value.prefix == "00000"


def test_transport_error_is_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with _fetcher(handler) as fetcher:
        with pytest.raises(TransportFailure) as excinfo:
            fetcher.fetch("FFFFF")
    assert isinstance(excinfo.value.error, httpx.ConnectError)
