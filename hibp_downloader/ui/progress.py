"""Terminal progress helpers with Rich-based rendering."""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock

from rich.console import Console
from rich.errors import LiveError
from rich.progress import (
    BarColumn,
    Progress,
    ProgressColumn,
    SpinnerColumn,
    Task,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.text import Text


@dataclass
class ProgressState:
    total: int
    units: int = 0
    records: int = 0
    failed: int = 0
    current_unit: str | None = None


class RateColumn(ProgressColumn):
    """Range requests per second (16 per completed outer unit)."""

    def render(self, task: Task) -> Text:
        speed = task.finished_speed or task.speed
        if speed is None:
            return Text("", style="progress.percentage")
        return Text(f"{speed * 16:.1f} req/s", style="progress.percentage")


class ProgressReporter:
    """Render download progress and keep counters for the run summary.

    ``advance`` is called from worker threads, so counters are updated under a
    lock.
    """

    def __init__(self, enabled: bool = True, console: Console | None = None) -> None:
        self.enabled = enabled
        self._console = console
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self._lock = Lock()
        self.state: ProgressState | None = None
        self._label = "download"

    def set_label(self, label: str) -> None:
        self._label = label
        if self._progress is not None and self._task_id is not None:
            self._progress.update(self._task_id, batch=label)

    def start(self, total: int) -> None:
        self.state = ProgressState(total=total)
        if not self.enabled:
            return
        if self._console is None:
            self._console = Console()
        if not self._console.is_terminal:
            # non-interactive output: stay silent instead of printing frames
            self.enabled = False
            return
        self._progress = Progress(
            SpinnerColumn(style="cyan"),
            TextColumn("[bold blue]{task.fields[batch]:<10}"),
            BarColumn(bar_width=None, complete_style="green", finished_style="green"),
            TaskProgressColumn(show_speed=False),
            TimeElapsedColumn(),
            TimeRemainingColumn(),
            RateColumn(),
            TextColumn("[green]{task.fields[records]:>12,} hashes"),
            TextColumn("[red]✗{task.fields[failed]:>3}"),
            refresh_per_second=8,
            expand=True,
            transient=True,
            console=self._console,
        )
        try:
            self._progress.start()
        except LiveError:
            self.enabled = False
            self._progress = None
            return
        self._task_id = self._progress.add_task(
            "download", total=total, batch=self._label, records=0, failed=0
        )

    def advance(self, unit: str | None = None, records: int = 0, failed: int = 0) -> None:
        if not self.state:
            raise RuntimeError("ProgressReporter.start must be called before advance")
        with self._lock:
            self.state.units += 1
            self.state.records += records
            self.state.failed += failed
            if unit:
                self.state.current_unit = unit
            snapshot = (self.state.records, self.state.failed)
        if self._progress is not None and self._task_id is not None:
            self._progress.update(
                self._task_id, advance=1, records=snapshot[0], failed=snapshot[1]
            )

    def rewind(self, units: int, records: int) -> None:
        """Forget the progress of a discarded batch."""

        if not self.state:
            return
        with self._lock:
            self.state.units = max(0, self.state.units - units)
            self.state.records = max(0, self.state.records - records)
            completed = self.state.units
            total_records = self.state.records
        if self._progress is not None and self._task_id is not None:
            self._progress.update(self._task_id, completed=completed, records=total_records)

    def close(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
        self._task_id = None

    def summary(self) -> dict[str, int]:
        if not self.state:
            return {"units": 0, "records": 0, "failed": 0}
        return {
            "units": self.state.units,
            "records": self.state.records,
            "failed": self.state.failed,
        }


__all__ = ["ProgressReporter", "ProgressState"]
