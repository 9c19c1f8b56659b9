from __future__ import annotations

from hibp_downloader.engine.retry import RetryContext


def test_unbounded_context_always_retries_without_delay() -> None:
    context = RetryContext()
    for _ in range(50):
        context.record_failure(RuntimeError("503"))
    assert context.should_retry()
    assert context.next_delay() == 0.0


def test_bounded_context_with_exponential_backoff() -> None:
    context = RetryContext(max_attempts=3, backoff_base=0.5, backoff_max=1.5)
    context.record_failure(RuntimeError("first"))
    assert context.should_retry()
    assert context.next_delay() == 0.5
    context.record_failure(RuntimeError("second"))
    assert context.next_delay() == 1.0
    context.record_failure(RuntimeError("third"))
    assert not context.should_retry()
    assert context.next_delay() == 1.5
    assert str(context.last_error) == "third"
