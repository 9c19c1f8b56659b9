from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from hibp_downloader.config import DownloaderConfig, DownloadPlan, RetryConfig


def test_downloader_config_defaults() -> None:
    config = DownloaderConfig()
    assert config.api_url == "https://api.pwnedpasswords.com"
    assert config.prefix_step == 0x40
    assert config.threads >= 4
    assert config.retry.max_attempts is None
    assert config.output_filename == "hash+count.bin"


def test_prefix_step_accepts_hex_text() -> None:
    assert DownloaderConfig(prefix_step="0x100").prefix_step == 0x100
    assert DownloaderConfig(prefix_step="80").prefix_step == 0x80


@pytest.mark.parametrize(
    "overrides",
    [
        {"threads": 0},
        {"prefix_step": 0},
        {"prefix_step": "10000"},
        {"api_url": "ftp://example.test"},
    ],
)
def test_downloader_config_rejects_invalid_values(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        DownloaderConfig(**overrides)


def test_retry_config_validation() -> None:
    assert RetryConfig(max_attempts=3, backoff_base=0.5).max_attempts == 3
    with pytest.raises(ValidationError):
        RetryConfig(max_attempts=0)
    with pytest.raises(ValidationError):
        RetryConfig(backoff_base=-1)


def test_download_plan_coerces_hex_and_paths(tmp_path: Path) -> None:
    plan = DownloadPlan(
        output_path=str(tmp_path / "out.bin"),
        first_prefix="00a0",
        last_prefix="10000",
        prefix_step="0x20",
        threads=2,
    )
    assert plan.first_prefix == 0xA0
    assert plan.last_prefix == 0x10000
    assert plan.prefix_step == 0x20
    assert isinstance(plan.output_path, Path)


@pytest.mark.parametrize(
    "overrides",
    [
        {"first_prefix": 0x80, "last_prefix": 0x80},
        {"first_prefix": "10000"},
        {"last_prefix": 0x10001},
        {"prefix_step": 0},
        {"threads": 0},
        {"first_prefix": "xyz"},
    ],
)
def test_download_plan_rejects_invalid_ranges(tmp_path: Path, overrides: dict) -> None:
    with pytest.raises(ValidationError):
        DownloadPlan(output_path=tmp_path / "out.bin", **overrides)
