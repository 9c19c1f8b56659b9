"""Exporter contract for finalized record collections."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from ..records import HashCount


class BaseExporter(ABC):
    """Uniform exporter contract for batch output."""

    @abstractmethod
    def export_many(self, records: Iterable[HashCount]) -> int:
        """Persist records and return how many were written."""

    @abstractmethod
    def flush(self) -> None:
        """Flush buffered data to destination."""

    @abstractmethod
    def close(self) -> None:
        """Release underlying resources."""

    def __enter__(self) -> "BaseExporter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


__all__ = ["BaseExporter"]
