"""Append-only writer for the fixed-width ``hash+count`` binary format."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from ..records import RECORD_SIZE, HashCount, read_records, write_records
from .base import BaseExporter

DEFAULT_OUTPUT_FILENAME = "hash+count.bin"


class BinaryExporter(BaseExporter):
    """Append 24-byte records to a headerless output file.

    The file is opened in append mode so successive batches are concatenated in
    processing order.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self.path.open("ab")
        self.records_written = 0

    def export_many(self, records: Iterable[HashCount]) -> int:
        written = write_records(self._file, records)
        self.records_written += written
        return written

    def flush(self) -> None:
        self._file.flush()

    def close(self) -> None:
        if not self._file.closed:
            self._file.flush()
            self._file.close()


def count_records(path: Path) -> int:
    size = Path(path).stat().st_size
    if size % RECORD_SIZE:
        raise ValueError(f"{path} is not a multiple of {RECORD_SIZE} bytes")
    return size // RECORD_SIZE


def iter_file_records(path: Path):
    with Path(path).open("rb") as stream:
        yield from read_records(stream)


__all__ = ["BinaryExporter", "DEFAULT_OUTPUT_FILENAME", "count_records", "iter_file_records"]
