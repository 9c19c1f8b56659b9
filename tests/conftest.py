"""Shared fixtures: deterministic range bodies and a scriptable fetcher."""

from __future__ import annotations

from pathlib import Path
from threading import Lock
from types import SimpleNamespace
from typing import Any, Callable

import pytest

from hibp_downloader.config import ConfigLocator, ConfigRepository, DownloaderConfig, DownloadPlan
from hibp_downloader.engine.errors import RemoteStatusFailure, TransportFailure

RECORDS_PER_RESPONSE = 3


def make_range_body(prefix: str, lines: int = RECORDS_PER_RESPONSE) -> str:
    """Body whose suffixes are derived from the prefix so digests never collide."""

    rows = [f"{prefix[::-1]}{index:030X}:{index + 1}" for index in range(lines)]
    return "\r\n".join(rows) + "\r\n"


class FakeFetcher:
    """Thread-safe stand-in for :class:`RangeFetcher`.

    ``failures`` maps a prefix to a list of exceptions raised (in order) before
    the request succeeds. ``on_fetch`` runs before every attempt.
    """

    def __init__(
        self,
        body_factory: Callable[[str], str] = make_range_body,
        failures: dict[str, list[Exception]] | None = None,
        on_fetch: Callable[[str], None] | None = None,
    ) -> None:
        self.body_factory = body_factory
        self.failures = {key: list(value) for key, value in (failures or {}).items()}
        self.on_fetch = on_fetch
        self.calls: list[str] = []
        self._lock = Lock()

    def fetch(self, prefix: str) -> Any:
        with self._lock:
            self.calls.append(prefix)
            pending = self.failures.get(prefix)
            error = pending.pop(0) if pending else None
        if self.on_fetch is not None:
            self.on_fetch(prefix)
        if error is not None:
            raise error
        return SimpleNamespace(prefix=prefix, status_code=200, text=self.body_factory(prefix))


def _status_failures(prefix: str, count: int, status: int = 503) -> list[Exception]:
    return [RemoteStatusFailure(prefix, status) for _ in range(count)]


def _transport_failures(prefix: str, count: int) -> list[Exception]:
    return [TransportFailure(prefix, ConnectionError("reset")) for _ in range(count)]


def _expected_prefixes(first: int, last: int) -> list[str]:
    return [f"{unit:04X}{nibble:X}" for unit in range(first, last) for nibble in range(16)]


@pytest.fixture
def fake_fetcher() -> type[FakeFetcher]:
    return FakeFetcher


@pytest.fixture
def status_failures() -> Callable[..., list[Exception]]:
    return _status_failures


@pytest.fixture
def transport_failures() -> Callable[..., list[Exception]]:
    return _transport_failures


@pytest.fixture
def expected_prefixes() -> Callable[[int, int], list[str]]:
    return _expected_prefixes


@pytest.fixture
def records_per_response() -> int:
    return RECORDS_PER_RESPONSE


@pytest.fixture
def records_per_unit() -> int:
    """Records one outer unit yields: 16 range responses."""

    return 16 * RECORDS_PER_RESPONSE


@pytest.fixture
def locator(tmp_path: Path) -> ConfigLocator:
    return ConfigLocator(home_dir=tmp_path / "home")


@pytest.fixture
def repository(locator: ConfigLocator) -> ConfigRepository:
    return ConfigRepository(locator)


@pytest.fixture
def downloader_config() -> DownloaderConfig:
    return DownloaderConfig(threads=4, prefix_step=0x40)


@pytest.fixture
def make_plan(tmp_path: Path) -> Callable[..., DownloadPlan]:
    def _builder(**overrides: Any) -> DownloadPlan:
        base: dict[str, Any] = {
            "output_path": tmp_path / "hash+count.bin",
            "first_prefix": 0,
            "last_prefix": 0x80,
            "prefix_step": 0x40,
            "threads": 4,
        }
        base.update(overrides)
        return DownloadPlan(**base)

    return _builder
