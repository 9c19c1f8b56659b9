"""Interactive questions asked before a download starts."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import typer
from rich.console import Console

from ..engine.errors import InvalidRange
from ..engine.keyspace import parse_hex_prefix
from ..infra import Checkpoint


class ResumeAction(str, Enum):
    CONTINUE = "continue"
    RESTART = "restart"
    QUIT = "quit"
    CUSTOM = "custom"


@dataclass(slots=True)
class ResumeDecision:
    action: ResumeAction
    first_prefix: int = 0


class ResumePrompt:
    """Ask how to deal with an existing checkpoint, output file or lock."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def ask_resume(self, checkpoint: Checkpoint) -> ResumeDecision:
        self.console.print(
            "Found a checkpoint stating that the last saved block ranges from "
            f"[cyan]{checkpoint.start:04x}[/cyan] to [cyan]{checkpoint.end:04x}[/cyan]\n"
            f"and was written to [cyan]{checkpoint.output_path}[/cyan].\n\n"
            f"  (y) continue from {checkpoint.end:04x}\n"
            "  (r) start over from 0000\n"
            "  (q) quit\n"
            "  or type a 4-digit hex number to continue from there."
        )
        while True:
            answer = typer.prompt("[y/r/q/number]").strip().lower()
            if answer == "y":
                return ResumeDecision(ResumeAction.CONTINUE, checkpoint.end)
            if answer == "r":
                return ResumeDecision(ResumeAction.RESTART, 0)
            if answer == "q":
                return ResumeDecision(ResumeAction.QUIT)
            try:
                return ResumeDecision(ResumeAction.CUSTOM, parse_hex_prefix(answer))
            except InvalidRange as exc:
                self.console.print(str(exc), style="red")

    def confirm_overwrite(self, output_path: Path) -> bool:
        return typer.confirm(
            f"The output file {output_path} already exists. Overwrite it?", default=False
        )

    def confirm_break_lock(self, lock_path: Path, pid: str) -> bool:
        self.console.print(
            f"A lock file is present, indicating that a download is already running "
            f"with process ID {pid or 'unknown'}.\n"
            f"If you think that the lock is stale, it can be deleted: {lock_path}",
            style="yellow",
        )
        return typer.confirm("Delete the lock file and proceed?", default=False)


__all__ = ["ResumeAction", "ResumeDecision", "ResumePrompt"]
