"""Pydantic models describing downloader configuration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from ..engine.downloader import DEFAULT_EXPECTED_CAPACITY
from ..engine.exporter import DEFAULT_OUTPUT_FILENAME
from ..engine.fetcher import DEFAULT_API_URL, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from ..engine.keyspace import (
    DEFAULT_PREFIX_STEP,
    MAX_HEX_VALUE,
    MAX_PREFIX,
    parse_hex_prefix,
    validate_range,
    validate_step,
)

DEFAULT_NUM_THREADS = 4


def default_thread_count() -> int:
    return max(os.cpu_count() or 1, DEFAULT_NUM_THREADS)


def _coerce_hex(value: Any, upper_bound: int) -> Any:
    if isinstance(value, str):
        return parse_hex_prefix(value, upper_bound=upper_bound)
    return value


class RetryConfig(BaseModel):
    """Retry policy for a failing range request.

    ``max_attempts: null`` keeps retrying the same prefix until it succeeds or
    the run is stopped.
    """

    max_attempts: int | None = None
    backoff_base: float = 0.0
    backoff_max: float = 30.0

    @model_validator(mode="after")
    def _validate_values(self) -> "RetryConfig":
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1 or null")
        if self.backoff_base < 0 or self.backoff_max < 0:
            raise ValueError("backoff values must be non-negative")
        return self


class DownloaderConfig(BaseModel):
    """Persistent settings shared by every run."""

    api_url: str = DEFAULT_API_URL
    user_agent: str = DEFAULT_USER_AGENT
    threads: int = Field(default_factory=default_thread_count)
    prefix_step: int = DEFAULT_PREFIX_STEP
    request_timeout: float | None = DEFAULT_TIMEOUT
    expected_capacity: int = DEFAULT_EXPECTED_CAPACITY
    output_filename: str = DEFAULT_OUTPUT_FILENAME
    enable_progress_bar: bool = True
    retry: RetryConfig = Field(default_factory=RetryConfig)

    @field_validator("prefix_step", mode="before")
    @classmethod
    def _coerce_step(cls, value: Any) -> Any:
        return _coerce_hex(value, MAX_HEX_VALUE)

    @model_validator(mode="after")
    def _validate_values(self) -> "DownloaderConfig":
        if self.threads < 1:
            raise ValueError("threads must be >= 1")
        validate_step(self.prefix_step)
        if not self.api_url.startswith(("http://", "https://")):
            raise ValueError(f"api_url must be an http(s) URL: {self.api_url}")
        return self


class DownloadPlan(BaseModel):
    """Options of a single download invocation."""

    output_path: Path
    first_prefix: int = 0
    last_prefix: int = MAX_PREFIX
    prefix_step: int = DEFAULT_PREFIX_STEP
    threads: int = Field(default_factory=default_thread_count)
    yes: bool = False
    quiet: bool = False
    verbosity: int = 0

    @field_validator("first_prefix", "prefix_step", mode="before")
    @classmethod
    def _coerce_bounded_hex(cls, value: Any) -> Any:
        return _coerce_hex(value, MAX_HEX_VALUE)

    @field_validator("last_prefix", mode="before")
    @classmethod
    def _coerce_last(cls, value: Any) -> Any:
        return _coerce_hex(value, MAX_PREFIX)

    @field_validator("output_path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        return Path(value).expanduser()

    @model_validator(mode="after")
    def _validate_range(self) -> "DownloadPlan":
        validate_range(self.first_prefix, self.last_prefix)
        validate_step(self.prefix_step)
        if self.threads < 1:
            raise ValueError("threads must be >= 1")
        return self


__all__ = [
    "DEFAULT_NUM_THREADS",
    "DownloadPlan",
    "DownloaderConfig",
    "RetryConfig",
    "default_thread_count",
]
