"""Concurrent fetch-and-aggregate engine for one batch of prefixes."""

from __future__ import annotations

from collections import deque
from enum import Enum
from threading import Event, Lock
from typing import Callable, Protocol, Sequence

import structlog

from .errors import (
    RemoteStatusFailure,
    RetriesExhausted,
    TransportFailure,
)
from .keyspace import inner_prefixes, outer_prefix, validate_range
from .parser import ResponseParser
from .records import HashCount
from .retry import RetryContext
from .thread_pool import WorkerPool

DEFAULT_EXPECTED_CAPACITY = 1_000_000


class WorkerState(str, Enum):
    """Terminal states of :meth:`Downloader.run_worker`."""

    DONE = "done"
    STOPPED = "stopped"


class SupportsFetch(Protocol):
    def fetch(self, prefix: str): ...


class Downloader:
    """Download every range in ``[first_prefix, last_prefix)`` of outer units.

    Each outer unit is a 4-hex-digit prefix expanding to 16 range requests.
    Workers pop units from a shared queue, buffer a unit's records locally and
    merge them into the shared collection once per unit. The queue and the
    collection have independent locks that are never held together.
    """

    def __init__(
        self,
        first_prefix: int,
        last_prefix: int,
        expected_capacity: int = DEFAULT_EXPECTED_CAPACITY,
        *,
        fetcher: SupportsFetch,
        stop_event: Event | None = None,
        max_attempts: int | None = None,
        backoff_base: float = 0.0,
        backoff_max: float = 30.0,
        logger: structlog.BoundLogger | None = None,
        on_unit_done: Callable[[str, int, int], None] | None = None,
    ) -> None:
        validate_range(first_prefix, last_prefix)
        self.first_prefix = first_prefix
        self.last_prefix = last_prefix
        self.expected_capacity = expected_capacity
        self.fetcher = fetcher
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.logger = logger or structlog.get_logger("hibp_downloader.downloader")
        self.on_unit_done = on_unit_done
        self._stop_event = stop_event or Event()
        self._queue: deque[int] = deque(range(first_prefix, last_prefix))
        self._queue_lock = Lock()
        self._collection: list[HashCount] = []
        self._collection_lock = Lock()
        self._stats_lock = Lock()
        self._finalized: tuple[HashCount, ...] | None = None
        self.failed_prefixes: list[str] = []
        self.units_completed = 0
        self.requests_sent = 0
        self.malformed_lines = 0

    # ------------------------------------------------------------------
    @property
    def stop_event(self) -> Event:
        return self._stop_event

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    @property
    def collection(self) -> Sequence[HashCount]:
        if self._finalized is not None:
            return self._finalized
        with self._collection_lock:
            return tuple(self._collection)

    def queue_size(self) -> int:
        with self._queue_lock:
            return len(self._queue)

    def record_count(self) -> int:
        with self._collection_lock:
            return len(self._collection)

    def stop(self) -> None:
        self.logger.debug("downloader_stop_requested")
        self._stop_event.set()

    def finalize(self) -> tuple[HashCount, ...]:
        """Sort the collection by digest once and return it as a tuple.

        Only meaningful after every worker has returned.
        """

        if self._finalized is None:
            with self._collection_lock:
                self._collection.sort(key=lambda record: record.digest)
                self._finalized = tuple(self._collection)
        return self._finalized

    def run(self, num_threads: int) -> list[WorkerState]:
        """Run ``min(num_threads, queue_size())`` workers until they all finish."""

        pending = self.queue_size()
        if pending == 0:
            return []
        pool = WorkerPool(max_workers=max(1, num_threads))
        return pool.run(self.run_worker, count=pending)

    # ------------------------------------------------------------------
    def run_worker(self) -> WorkerState:
        while True:
            if self._stop_event.is_set():
                self.logger.debug("worker_stopped")
                return WorkerState.STOPPED
            unit = self._dequeue()
            if unit is None:
                self.logger.debug("worker_queue_empty")
                return WorkerState.DONE
            outcome = self._download_unit(unit)
            if outcome is None:
                self.logger.debug("worker_stopped", unit=outer_prefix(unit))
                return WorkerState.STOPPED
            buffer, failed = outcome
            with self._collection_lock:
                self._collection.extend(buffer)
                self.units_completed += 1
                total = len(self._collection)
            self.logger.info(
                "unit_collected",
                unit=outer_prefix(unit),
                records=len(buffer),
                total=total,
            )
            if self.on_unit_done is not None:
                self.on_unit_done(outer_prefix(unit), len(buffer), failed)

    def _dequeue(self) -> int | None:
        with self._queue_lock:
            if not self._queue:
                return None
            return self._queue.popleft()

    def _download_unit(self, unit: int) -> tuple[list[HashCount], int] | None:
        """Fetch the 16 ranges of one unit; ``None`` means a stop was observed."""

        buffer: list[HashCount] = []
        failed = 0
        for prefix in inner_prefixes(unit):
            try:
                records = self._fetch_with_retry(prefix)
            except RetriesExhausted as exc:
                self.logger.error(
                    "prefix_failed",
                    prefix=prefix,
                    attempts=exc.attempts,
                    error=str(exc.last_error),
                )
                with self._stats_lock:
                    self.failed_prefixes.append(prefix)
                failed += 1
                continue
            if records is None:
                return None
            buffer.extend(records)
        return buffer, failed

    def _fetch_with_retry(self, prefix: str) -> list[HashCount] | None:
        context = RetryContext(
            max_attempts=self.max_attempts,
            backoff_base=self.backoff_base,
            backoff_max=self.backoff_max,
        )
        while True:
            if self._stop_event.is_set():
                return None
            try:
                self._count_request()
                response = self.fetcher.fetch(prefix)
            except RemoteStatusFailure as exc:
                self.logger.warning(
                    "range_status_error",
                    prefix=prefix,
                    status=exc.status_code,
                    attempt=context.attempt,
                )
                context.record_failure(exc)
            except TransportFailure as exc:
                self.logger.warning(
                    "range_transport_error",
                    prefix=prefix,
                    attempt=context.attempt,
                    error=str(exc.error),
                )
                context.record_failure(exc)
            else:
                return self._decode(prefix, response.text)

            if not context.should_retry():
                raise RetriesExhausted(prefix, context.attempt - 1, context.last_error)
            delay = context.next_delay()
            if delay:
                # interruptible sleep; a stop cuts the backoff short
                self._stop_event.wait(delay)

    def _decode(self, prefix: str, body: str) -> list[HashCount]:
        parser = ResponseParser(prefix)
        records = parser.parse(body)
        if parser.malformed:
            with self._stats_lock:
                self.malformed_lines += len(parser.malformed)
            for error in parser.malformed:
                self.logger.warning(
                    "range_line_malformed",
                    prefix=prefix,
                    line=error.line_number,
                    reason=error.reason,
                )
        if records:
            self.logger.debug("range_decoded", prefix=prefix, first=str(records[0]), records=len(records))
        return records

    def _count_request(self) -> None:
        with self._stats_lock:
            self.requests_sent += 1


__all__ = ["DEFAULT_EXPECTED_CAPACITY", "Downloader", "WorkerState"]
