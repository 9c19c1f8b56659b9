from __future__ import annotations

import threading

import pytest

from hibp_downloader.engine.downloader import Downloader, WorkerState
from hibp_downloader.engine.errors import InvalidRange


@pytest.mark.parametrize(
    ("first", "last"),
    [(0x10, 0x10), (0x20, 0x10), (-1, 4), (0, 0x10001), (0x10000, 0x10000)],
)
def test_invalid_range_is_rejected(fake_fetcher, first: int, last: int) -> None:
    with pytest.raises(InvalidRange):
        Downloader(first, last, fetcher=fake_fetcher())


def test_queue_holds_every_outer_prefix(fake_fetcher) -> None:
    downloader = Downloader(0x100, 0x140, fetcher=fake_fetcher())
    assert downloader.queue_size() == 0x40
    assert downloader.record_count() == 0
    assert not downloader.stopped


def test_every_inner_prefix_requested_exactly_once(fake_fetcher, expected_prefixes) -> None:
    fetcher = fake_fetcher()
    downloader = Downloader(0, 0x10, fetcher=fetcher)

    states = downloader.run(4)

    assert states == [WorkerState.DONE] * 4
    assert sorted(fetcher.calls) == sorted(expected_prefixes(0, 0x10))
    assert len(fetcher.calls) == 0x10 * 16
    assert downloader.queue_size() == 0
    assert downloader.requests_sent == 0x10 * 16


@pytest.mark.parametrize("threads", [1, 3, 16, 64])
def test_collection_size_independent_of_thread_count(
    fake_fetcher, records_per_unit: int, threads: int
) -> None:
    downloader = Downloader(0xABC0, 0xABD0, fetcher=fake_fetcher())
    downloader.run(threads)
    assert downloader.record_count() == 0x10 * records_per_unit
    assert len(downloader.collection) == 0x10 * records_per_unit
    assert downloader.units_completed == 0x10


def test_worker_count_is_capped_by_queue_size(fake_fetcher) -> None:
    downloader = Downloader(0, 2, fetcher=fake_fetcher())
    assert len(downloader.run(8)) == 2


def test_finalize_sorts_by_digest(fake_fetcher) -> None:
    downloader = Downloader(0x1230, 0x1238, fetcher=fake_fetcher())
    downloader.run(4)
    records = downloader.finalize()
    digests = [record.digest for record in records]
    assert digests == sorted(digests)
    assert downloader.finalize() is records
    assert downloader.collection == records
    assert downloader.record_count() == len(records)


def test_records_carry_their_prefix(fake_fetcher, expected_prefixes) -> None:
    downloader = Downloader(0xFFFF, 0x10000, fetcher=fake_fetcher())
    downloader.run(2)
    prefixes = {record.hexdigest[:5] for record in downloader.finalize()}
    assert prefixes == set(expected_prefixes(0xFFFF, 0x10000))


def test_stop_ends_workers_promptly(fake_fetcher) -> None:
    calls = 0
    lock = threading.Lock()
    holder: dict[str, Downloader] = {}

    def on_fetch(_prefix: str) -> None:
        nonlocal calls
        with lock:
            calls += 1
            if calls == 20:
                holder["downloader"].stop()

    fetcher = fake_fetcher(on_fetch=on_fetch)
    downloader = Downloader(0, 0x100, fetcher=fetcher)
    holder["downloader"] = downloader

    states = downloader.run(4)

    assert downloader.stopped
    assert WorkerState.STOPPED in states
    # each worker finishes at most its in-flight request after the stop
    assert len(fetcher.calls) < 20 + 4
    assert downloader.queue_size() > 0


def test_stop_before_run_requests_nothing(fake_fetcher) -> None:
    fetcher = fake_fetcher()
    stop = threading.Event()
    stop.set()
    downloader = Downloader(0, 4, fetcher=fetcher, stop_event=stop)
    assert downloader.run(2) == [WorkerState.STOPPED] * 2
    assert fetcher.calls == []
    assert downloader.collection == ()


def test_partial_unit_is_not_merged_on_stop(fake_fetcher, records_per_unit: int) -> None:
    holder: dict[str, Downloader] = {}

    def on_fetch(prefix: str) -> None:
        if prefix == "00018":
            holder["downloader"].stop()

    downloader = Downloader(0, 4, fetcher=fake_fetcher(on_fetch=on_fetch))
    holder["downloader"] = downloader
    downloader.run(1)

    assert downloader.units_completed == 1
    assert downloader.record_count() == records_per_unit


def test_unlimited_retry_recovers_from_failures(
    fake_fetcher, status_failures, transport_failures, records_per_unit: int
) -> None:
    failures = {
        "00003": status_failures("00003", 3),
        "0001A": transport_failures("0001A", 2),
    }
    fetcher = fake_fetcher(failures=failures)
    downloader = Downloader(0, 2, fetcher=fetcher)
    downloader.run(2)

    assert len(downloader.collection) == 2 * records_per_unit
    assert fetcher.calls.count("00003") == 4
    assert fetcher.calls.count("0001A") == 3
    assert downloader.requests_sent == 2 * 16 + 5
    assert downloader.failed_prefixes == []


def test_bounded_retry_skips_prefix(
    fake_fetcher, status_failures, records_per_response: int
) -> None:
    fetcher = fake_fetcher(failures={"00005": status_failures("00005", 10)})
    downloader = Downloader(0, 1, fetcher=fetcher, max_attempts=3)
    downloader.run(1)

    assert fetcher.calls.count("00005") == 3
    assert downloader.failed_prefixes == ["00005"]
    assert len(downloader.collection) == 15 * records_per_response
    assert not downloader.stopped


def test_stop_interrupts_backoff(fake_fetcher, status_failures) -> None:
    stop = threading.Event()

    def on_fetch(_prefix: str) -> None:
        stop.set()

    fetcher = fake_fetcher(failures={"00000": status_failures("00000", 1)}, on_fetch=on_fetch)
    downloader = Downloader(0, 1, fetcher=fetcher, stop_event=stop, backoff_base=60.0)
    assert downloader.run(1) == [WorkerState.STOPPED]
    assert fetcher.calls == ["00000"]


def test_malformed_lines_are_counted_and_skipped(fake_fetcher) -> None:
    def body(prefix: str) -> str:
        return f"{'A' * 35}:1\r\ngarbage\r\n{'B' * 35}:2\r\n"

    downloader = Downloader(0x10, 0x11, fetcher=fake_fetcher(body_factory=body))
    downloader.run(1)
    assert downloader.malformed_lines == 16
    assert len(downloader.collection) == 32


def test_on_unit_done_reports_each_unit(fake_fetcher, records_per_unit: int) -> None:
    seen: list[tuple[str, int, int]] = []
    lock = threading.Lock()

    def on_unit_done(unit: str, records: int, failed: int) -> None:
        with lock:
            seen.append((unit, records, failed))

    downloader = Downloader(0x0A, 0x0D, fetcher=fake_fetcher(), on_unit_done=on_unit_done)
    downloader.run(3)
    assert sorted(seen) == [(f"{unit:04X}", records_per_unit, 0) for unit in (0x0A, 0x0B, 0x0C)]
