"""Exporters persisting finalized collections."""

from .base import BaseExporter
from .binary_exporter import (
    DEFAULT_OUTPUT_FILENAME,
    BinaryExporter,
    count_records,
    iter_file_records,
)

__all__ = [
    "BaseExporter",
    "BinaryExporter",
    "DEFAULT_OUTPUT_FILENAME",
    "count_records",
    "iter_file_records",
]
