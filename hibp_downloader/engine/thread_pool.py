"""Fixed-size worker pool running one callable per thread."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, TypeVar

T = TypeVar("T")


class WorkerPool:
    """Start ``count`` copies of a worker function and join all of them."""

    def __init__(self, max_workers: int, thread_name_prefix: str = "downloader") -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.max_workers = max_workers
        self.thread_name_prefix = thread_name_prefix

    def run(self, worker: Callable[[], T], count: int | None = None) -> list[T]:
        """Run ``worker`` in ``min(count, max_workers)`` threads.

        Every thread is started before any is joined. Results come back in
        submission order; the first worker exception is re-raised after all
        threads have returned.
        """

        workers = self.max_workers if count is None else min(count, self.max_workers)
        if workers <= 0:
            return []
        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix=self.thread_name_prefix
        ) as executor:
            futures: list[Future[T]] = [executor.submit(worker) for _ in range(workers)]
            wait(futures)
        return [future.result() for future in futures]


__all__ = ["WorkerPool"]
