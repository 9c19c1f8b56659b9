"""PID lock file preventing two runs from sharing an output/checkpoint pair."""

from __future__ import annotations

import os
from pathlib import Path

from ..engine.errors import DownloaderError

DEFAULT_LOCK_FILENAME = "lock"


class LockHeld(DownloaderError):
    """Another process (or a stale run) owns the lock file."""

    def __init__(self, path: Path, pid: str) -> None:
        self.path = path
        self.pid = pid
        super().__init__(f"Lock file {path} is held by process {pid or 'unknown'}")


class ProcessLock:
    """Create the lock file on enter and remove it on exit."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._acquired = False

    def holder(self) -> str | None:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8").strip()

    def acquire(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError as exc:
            raise LockHeld(self.path, self.holder() or "") from exc
        with os.fdopen(fd, "w", encoding="utf-8") as stream:
            stream.write(str(os.getpid()))
        self._acquired = True

    def release(self) -> None:
        if self._acquired and self.path.exists():
            self.path.unlink()
        self._acquired = False

    def break_lock(self) -> None:
        """Remove a lock left behind by a run that did not exit cleanly."""

        if self.path.exists():
            self.path.unlink()

    def __enter__(self) -> "ProcessLock":
        self.acquire()
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


__all__ = ["DEFAULT_LOCK_FILENAME", "LockHeld", "ProcessLock"]
