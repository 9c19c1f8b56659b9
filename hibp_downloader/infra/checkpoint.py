"""Checkpoint file recording the last completed batch."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..engine.errors import DownloaderError, InvalidRange
from ..engine.keyspace import validate_range

DEFAULT_CHECKPOINT_FILENAME = "checkpoint"


class CheckpointError(DownloaderError):
    """Checkpoint file exists but cannot be interpreted."""


@dataclass(frozen=True, slots=True)
class Checkpoint:
    """Last completed outer-prefix range and the file it was appended to."""

    start: int
    end: int
    output_path: Path

    @property
    def range_label(self) -> str:
        return f"{self.start:04x}-{self.end:04x}"

    def dumps(self) -> str:
        return f"{self.range_label}\n{self.output_path}\n"

    @classmethod
    def loads(cls, text: str) -> "Checkpoint":
        lines = text.splitlines()
        if len(lines) < 2 or not lines[1].strip():
            raise CheckpointError("checkpoint must contain a range and an output path")
        start_text, separator, end_text = lines[0].strip().partition("-")
        if not separator:
            raise CheckpointError(f"invalid checkpoint range: {lines[0]!r}")
        try:
            start, end = int(start_text, 16), int(end_text, 16)
        except ValueError as exc:
            raise CheckpointError(f"invalid checkpoint range: {lines[0]!r}") from exc
        try:
            validate_range(start, end)
        except InvalidRange as exc:
            raise CheckpointError(f"invalid checkpoint range: {lines[0]!r}: {exc}") from exc
        return cls(start=start, end=end, output_path=Path(lines[1].strip()))


class CheckpointStore:
    """Read, overwrite and delete the checkpoint file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Checkpoint | None:
        if not self.path.exists():
            return None
        return Checkpoint.loads(self.path.read_text(encoding="utf-8"))

    def save(self, checkpoint: Checkpoint) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        staging = self.path.with_name(self.path.name + ".tmp")
        staging.write_text(checkpoint.dumps(), encoding="utf-8")
        staging.replace(self.path)

    def clear(self) -> bool:
        if self.path.exists():
            self.path.unlink()
            return True
        return False


__all__ = ["Checkpoint", "CheckpointError", "CheckpointStore", "DEFAULT_CHECKPOINT_FILENAME"]
