"""Retry bookkeeping for range requests."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class RetryContext:
    """Per-prefix attempt state.

    ``max_attempts=None`` retries forever and ``backoff_base=0`` retries
    immediately, which is how the public range API has traditionally been
    mirrored. Both are configurable.
    """

    max_attempts: int | None = None
    backoff_base: float = 0.0
    backoff_max: float = 30.0
    attempt: int = 1
    last_error: Exception | None = None

    def record_failure(self, error: Exception) -> None:
        self.last_error = error
        self.attempt += 1

    def should_retry(self) -> bool:
        return self.max_attempts is None or self.attempt <= self.max_attempts

    def next_delay(self) -> float:
        if self.backoff_base <= 0:
            return 0.0
        return min(self.backoff_base * 2 ** (self.attempt - 2), self.backoff_max)


__all__ = ["RetryContext"]
