from __future__ import annotations

import io
from pathlib import Path

import pytest
from rich.console import Console

from hibp_downloader.infra import Checkpoint
from hibp_downloader.ui import ProgressReporter, ResumeAction, ResumePrompt


def test_progress_reporter_counts() -> None:
    reporter = ProgressReporter(enabled=False)
    reporter.start(total=4)
    reporter.advance(unit="0000", records=48)
    reporter.advance(unit="0001", records=45, failed=1)
    assert reporter.state.current_unit == "0001"
    reporter.rewind(units=1, records=45)
    reporter.close()
    assert reporter.summary() == {"units": 1, "records": 48, "failed": 1}


def test_progress_requires_start() -> None:
    reporter = ProgressReporter(enabled=False)
    with pytest.raises(RuntimeError):
        reporter.advance()
    assert reporter.summary() == {"units": 0, "records": 0, "failed": 0}


def test_progress_is_silent_without_terminal() -> None:
    stream = io.StringIO()
    reporter = ProgressReporter(enabled=True, console=Console(file=stream, force_terminal=False))
    reporter.start(total=1)
    reporter.advance(records=3)
    reporter.close()
    assert not reporter.enabled
    assert stream.getvalue() == ""


@pytest.mark.parametrize(
    ("answers", "action", "first"),
    [
        (["y"], ResumeAction.CONTINUE, 0x80),
        (["r"], ResumeAction.RESTART, 0),
        (["q"], ResumeAction.QUIT, 0),
        (["zzz", "00c0"], ResumeAction.CUSTOM, 0xC0),
    ],
)
def test_resume_prompt_answers(
    monkeypatch: pytest.MonkeyPatch, answers: list[str], action: ResumeAction, first: int
) -> None:
    replies = iter(answers)
    monkeypatch.setattr("hibp_downloader.ui.prompts.typer.prompt", lambda *_a, **_k: next(replies))
    prompt = ResumePrompt(Console(file=io.StringIO()))
    decision = prompt.ask_resume(Checkpoint(start=0x40, end=0x80, output_path=Path("out.bin")))
    assert decision.action is action
    assert decision.first_prefix == first
