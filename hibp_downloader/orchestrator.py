"""Batch coordinator driving one downloader per slice of the key space."""

from __future__ import annotations

import signal
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from threading import Event
from typing import Callable, Iterator

import structlog

from .config import DownloaderConfig, DownloadPlan
from .engine import Downloader
from .engine.downloader import SupportsFetch
from .engine.exporter import BaseExporter, BinaryExporter
from .engine.keyspace import MAX_PREFIX, validate_range, validate_step
from .infra import Checkpoint, CheckpointStore
from .ui import ProgressReporter


@dataclass(frozen=True, slots=True)
class Batch:
    """Half-open range ``[start, end)`` of outer prefixes."""

    start: int
    end: int

    @property
    def label(self) -> str:
        return f"{self.start:04x}-{self.end:04x}"

    @property
    def units(self) -> int:
        return self.end - self.start


def plan_batches(first_prefix: int, last_prefix: int, step: int) -> Iterator[Batch]:
    validate_range(first_prefix, last_prefix)
    validate_step(step)
    start = first_prefix
    while start < last_prefix:
        yield Batch(start, min(start + step, last_prefix))
        start += step


def resolve_first_prefix(checkpoint: Checkpoint | None, override: int | None = None) -> int:
    """Where a run should begin: explicit override, checkpoint end, or zero."""

    if override is not None:
        return override
    if checkpoint is not None:
        return checkpoint.end
    return 0


@dataclass(slots=True)
class RunSummary:
    batches_completed: int = 0
    records_written: int = 0
    requests_sent: int = 0
    malformed_lines: int = 0
    failed_prefixes: list[str] = field(default_factory=list)
    last_batch: Batch | None = None
    stopped: bool = False
    finished: bool = False


class BatchCoordinator:
    """Run batches in order, appending output and checkpointing after each one.

    A batch interrupted by :meth:`stop` is discarded; the checkpoint on disk
    keeps naming the previous completed batch, so a resumed run restarts the
    interrupted batch from its first prefix.
    """

    def __init__(
        self,
        plan: DownloadPlan,
        config: DownloaderConfig,
        checkpoint_store: CheckpointStore,
        fetcher: SupportsFetch,
        *,
        progress: ProgressReporter | None = None,
        logger: structlog.BoundLogger | None = None,
        exporter_factory: Callable[[Path], BaseExporter] = BinaryExporter,
    ) -> None:
        self.plan = plan
        self.config = config
        self.checkpoint_store = checkpoint_store
        self.fetcher = fetcher
        self.progress = progress or ProgressReporter(enabled=False)
        self.logger = logger or structlog.get_logger("hibp_downloader.orchestrator")
        self.exporter_factory = exporter_factory
        self._stop_event = Event()

    # ------------------------------------------------------------------
    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        self.logger.warning("shutdown_requested")
        self._stop_event.set()

    @contextmanager
    def handle_signals(self, signals: tuple[int, ...] = (signal.SIGINT, signal.SIGTERM)):
        """Turn SIGINT/SIGTERM into a cooperative stop while the block runs."""

        def _handler(signum, _frame):
            self.logger.warning("signal_received", signal=signal.Signals(signum).name)
            self.stop()

        previous = {sig: signal.signal(sig, _handler) for sig in signals}
        try:
            yield self
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)

    # ------------------------------------------------------------------
    def run(self) -> RunSummary:
        summary = RunSummary()
        plan = self.plan
        if plan.first_prefix == 0 and self.checkpoint_store.clear():
            self.logger.info("stale_checkpoint_removed", path=str(self.checkpoint_store.path))

        self.progress.start(total=plan.last_prefix - plan.first_prefix)
        try:
            for batch in plan_batches(plan.first_prefix, plan.last_prefix, plan.prefix_step):
                if self._stop_event.is_set():
                    summary.stopped = True
                    break
                if not self.run_batch(batch, summary):
                    summary.stopped = True
                    break
        finally:
            self.progress.close()

        if not summary.stopped and summary.last_batch is not None:
            if summary.last_batch.end >= MAX_PREFIX:
                summary.finished = True
                self.checkpoint_store.clear()
                self.logger.info("key_space_complete", records=summary.records_written)
        return summary

    def run_batch(self, batch: Batch, summary: RunSummary) -> bool:
        """Download, sort, append and checkpoint one batch; False if stopped."""

        started = time.perf_counter()
        log = self.logger.bind(batch=batch.label)
        log.info("batch_started", first=f"{batch.start:04x}0", last=f"{batch.end - 1:04x}f")
        self.progress.set_label(batch.label)
        retry = self.config.retry

        def _unit_done(unit: str, records: int, failed: int) -> None:
            self.progress.advance(unit=unit, records=records, failed=failed)

        downloader = Downloader(
            batch.start,
            batch.end,
            self.config.expected_capacity,
            fetcher=self.fetcher,
            stop_event=self._stop_event,
            max_attempts=retry.max_attempts,
            backoff_base=retry.backoff_base,
            backoff_max=retry.backoff_max,
            logger=log,
            on_unit_done=_unit_done,
        )
        downloader.run(self.plan.threads)
        summary.requests_sent += downloader.requests_sent
        summary.malformed_lines += downloader.malformed_lines

        if downloader.stopped:
            log.warning(
                "batch_discarded",
                units_completed=downloader.units_completed,
                elapsed_ms=_elapsed_ms(started),
            )
            self.progress.rewind(downloader.units_completed, downloader.record_count())
            return False

        log.info("batch_sorting", records=downloader.record_count())
        collection = downloader.finalize()
        with self.exporter_factory(self.plan.output_path) as exporter:
            written = exporter.export_many(collection)
            exporter.flush()
        self.checkpoint_store.save(
            Checkpoint(start=batch.start, end=batch.end, output_path=self.plan.output_path)
        )

        summary.batches_completed += 1
        summary.records_written += written
        summary.failed_prefixes.extend(downloader.failed_prefixes)
        summary.last_batch = batch
        if downloader.failed_prefixes:
            log.error("batch_incomplete", failed_prefixes=downloader.failed_prefixes)
        log.info(
            "batch_written",
            records=written,
            output=str(self.plan.output_path),
            elapsed_ms=_elapsed_ms(started),
        )
        return True


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


__all__ = [
    "Batch",
    "BatchCoordinator",
    "RunSummary",
    "plan_batches",
    "resolve_first_prefix",
]
