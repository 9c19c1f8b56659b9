"""Typer CLI entrypoint for hibp-downloader."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.table import Table
from typer import BadParameter

from . import __version__
from .config import ConfigLocator, ConfigRepository, DownloaderConfig, DownloadPlan
from .engine import RangeFetcher
from .engine.errors import InvalidRange
from .engine.exporter import count_records, iter_file_records
from .engine.keyspace import MAX_HEX_VALUE, MAX_PREFIX, parse_hex_prefix
from .infra import CheckpointError, CheckpointStore, LockHeld, ProcessLock
from .logging_conf import configure_logging, tail_log
from .orchestrator import BatchCoordinator, RunSummary, resolve_first_prefix
from .ui import ProgressReporter, ResumeAction, ResumePrompt

app = typer.Typer(
    help="Fast, multithreaded downloader for Pwned Passwords SHA1 hashes.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
checkpoint_app = typer.Typer(name="checkpoint", help="Inspect or clear the checkpoint.", no_args_is_help=True)
log_app = typer.Typer(name="log", help="Show log files.", no_args_is_help=True)
app.add_typer(checkpoint_app, name="checkpoint")
app.add_typer(log_app, name="log")

console = Console()


@dataclass
class AppState:
    locator: ConfigLocator
    repository: ConfigRepository
    prompt: ResumePrompt
    verbosity: int = 0


def build_state(verbosity: int) -> AppState:
    locator = ConfigLocator()
    repository = ConfigRepository(locator)
    configure_logging(locator.logs_dir, verbosity=verbosity)
    return AppState(
        locator=locator,
        repository=repository,
        prompt=ResumePrompt(console),
        verbosity=verbosity,
    )


def build_fetcher(config: DownloaderConfig) -> RangeFetcher:
    return RangeFetcher(
        api_url=config.api_url,
        user_agent=config.user_agent,
        timeout=config.request_timeout,
    )


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbosity=0)
        ctx.obj = state
    return state


def _parse_hex_option(value: Optional[str], option_name: str, upper_bound: int) -> Optional[int]:
    if value is None:
        return None
    try:
        return parse_hex_prefix(value, upper_bound=upper_bound)
    except InvalidRange as exc:
        raise BadParameter(str(exc), param_hint=option_name) from exc


def _progress_default_enabled() -> bool:
    return bool(getattr(sys.stdout, "isatty", lambda: False)())


def _render_summary(summary: RunSummary, output_path: Path) -> Table:
    table = Table(title="Download summary", box=box.SIMPLE_HEAD)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("Batches written", str(summary.batches_completed))
    table.add_row("Hashes written", f"{summary.records_written:,}")
    table.add_row("Range requests", f"{summary.requests_sent:,}")
    if summary.last_batch is not None:
        table.add_row("Last batch", summary.last_batch.label)
    if summary.malformed_lines:
        table.add_row("Malformed lines", str(summary.malformed_lines))
    if summary.failed_prefixes:
        table.add_row("Failed prefixes", ", ".join(summary.failed_prefixes))
    table.add_row("Output", str(output_path))
    return table


@app.callback()
def main(
    ctx: typer.Context,
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Increase verbosity."),
) -> None:
    ctx.obj = build_state(verbose)


@app.command("version", help="Print the version.")
def version() -> None:
    console.print(f"hibp-downloader {__version__}")


@app.command("download", help="Download hashes into a binary hash+count file.")
def download(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write result to this file."),
    threads: Optional[int] = typer.Option(None, "--threads", "-t", min=1, help="Number of worker threads."),
    first_prefix: Optional[str] = typer.Option(
        None, "--first-prefix", "-P", metavar="HEX", help="Begin at this 4-digit hex prefix."
    ),
    last_prefix: Optional[str] = typer.Option(
        None, "--last-prefix", "-L", metavar="HEX", help="Stop before this hex prefix (default 10000)."
    ),
    prefix_step: Optional[str] = typer.Option(
        None, "--prefix-step", "-S", metavar="HEX", help="Outer prefixes per batch (hex)."
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Answer yes to all questions."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Don't display a progress bar."),
) -> None:
    state = _get_state(ctx)
    config = state.repository.load_config()
    first = _parse_hex_option(first_prefix, "--first-prefix", MAX_HEX_VALUE)
    last = _parse_hex_option(last_prefix, "--last-prefix", MAX_PREFIX)
    step = _parse_hex_option(prefix_step, "--prefix-step", MAX_HEX_VALUE)
    output_path = output or Path(config.output_filename)

    lock = ProcessLock(state.locator.lock_path())
    holder = lock.holder()
    if holder is not None:
        if yes or state.prompt.confirm_break_lock(lock.path, holder):
            lock.break_lock()
        else:
            raise typer.Exit(code=1)

    store = CheckpointStore(state.locator.checkpoint_path())
    try:
        checkpoint = store.load()
    except CheckpointError as exc:
        console.print(f"Cannot read checkpoint {store.path}: {exc}", style="red")
        raise typer.Exit(code=1) from exc

    if checkpoint is not None and checkpoint.end >= MAX_PREFIX and first is None:
        # the run finished but died before the checkpoint was removed
        store.clear()
        console.print(
            f"Checkpoint {checkpoint.range_label} covers the whole key space; "
            f"{checkpoint.output_path} is complete. Checkpoint removed, run again to start over."
        )
        raise typer.Exit(code=0)

    if checkpoint is not None and checkpoint.output_path.exists() and first is None:
        if output is None:
            output_path = checkpoint.output_path
        if yes:
            first = resolve_first_prefix(checkpoint)
        else:
            decision = state.prompt.ask_resume(checkpoint)
            if decision.action is ResumeAction.QUIT:
                raise typer.Exit(code=0)
            if decision.action is ResumeAction.RESTART:
                output_path.unlink(missing_ok=True)
                store.clear()
            first = decision.first_prefix
    elif output_path.exists() and not first:
        if yes or state.prompt.confirm_overwrite(output_path):
            output_path.unlink()
        else:
            raise typer.Exit(code=0)

    try:
        plan = DownloadPlan(
            output_path=output_path,
            first_prefix=first or 0,
            last_prefix=MAX_PREFIX if last is None else last,
            prefix_step=config.prefix_step if step is None else step,
            threads=threads or config.threads,
            yes=yes,
            quiet=quiet,
            verbosity=state.verbosity,
        )
    except ValidationError as exc:
        raise BadParameter(str(exc)) from exc

    if plan.first_prefix and not quiet:
        console.print(f"OK, continuing from {plan.first_prefix:04x}.")

    progress = ProgressReporter(
        enabled=config.enable_progress_bar and not quiet and _progress_default_enabled(),
        console=console,
    )
    try:
        with lock, build_fetcher(config) as fetcher:
            coordinator = BatchCoordinator(plan, config, store, fetcher, progress=progress)
            with coordinator.handle_signals():
                summary = coordinator.run()
    except LockHeld as exc:
        console.print(str(exc), style="red")
        raise typer.Exit(code=1) from exc

    if quiet:
        console.print(
            f"{summary.records_written} hashes in {summary.batches_completed} batches "
            f"written to {plan.output_path}"
        )
    else:
        console.print(_render_summary(summary, plan.output_path))
    if summary.stopped:
        label = summary.last_batch.label if summary.last_batch else "none"
        console.print(
            f"Interrupted. Last completed batch: {label}. Run again to resume.",
            style="yellow",
        )
    elif summary.failed_prefixes:
        console.print(
            f"{len(summary.failed_prefixes)} prefixes could not be downloaded.", style="red"
        )


@app.command("inspect", help="Summarise a hash+count output file.")
def inspect_output(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Binary output file."),
    limit: int = typer.Option(10, "--limit", "-n", min=0, help="Records to print."),
) -> None:
    try:
        total = count_records(path)
    except ValueError as exc:
        console.print(str(exc), style="red")
        raise typer.Exit(code=1) from exc
    console.print(f"{path}: {total:,} records")
    if not limit:
        return
    table = Table(box=box.SIMPLE_HEAD)
    table.add_column("SHA1", style="cyan", no_wrap=True)
    table.add_column("Count", style="green", justify="right")
    for index, record in enumerate(iter_file_records(path)):
        if index >= limit:
            break
        table.add_row(record.hexdigest, str(record.count))
    console.print(table)


@checkpoint_app.command("show", help="Print the stored checkpoint.")
def checkpoint_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    store = CheckpointStore(state.locator.checkpoint_path())
    try:
        checkpoint = store.load()
    except CheckpointError as exc:
        console.print(str(exc), style="red")
        raise typer.Exit(code=1) from exc
    if checkpoint is None:
        console.print("No checkpoint; a download starts at 0000.")
        return
    console.print(f"Last completed batch: {checkpoint.range_label}")
    console.print(f"Output file: {checkpoint.output_path}")
    console.print(f"Next run continues from {checkpoint.end:04x}.")


@checkpoint_app.command("clear", help="Delete the stored checkpoint.")
def checkpoint_clear(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Don't ask for confirmation."),
) -> None:
    state = _get_state(ctx)
    store = CheckpointStore(state.locator.checkpoint_path())
    if not store.exists():
        console.print("No checkpoint to clear.")
        return
    if not yes and not typer.confirm(f"Delete {store.path}?", default=False):
        raise typer.Exit(code=0)
    store.clear()
    console.print("Checkpoint deleted.", style="green")


@log_app.command("tail", help="Show the last lines of the downloader log.")
def log_tail(
    ctx: typer.Context,
    lines: int = typer.Option(50, "--lines", "-n", min=1),
    errors: bool = typer.Option(False, "--errors", help="Show error.log instead."),
) -> None:
    state = _get_state(ctx)
    name = "error.log" if errors else "downloader.log"
    for line in tail_log(state.locator.logs_dir / name, lines):
        console.print(line.rstrip("\n"), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
