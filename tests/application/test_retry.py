"""Tests for the optimistic-concurrency retry helper."""

import pytest

from ims.application.retry import run_with_retry
from ims.domain.exceptions import ConcurrentModificationError, ValidationError


class _Flaky:

    def __init__(self, failures: int, error: Exception | None = None) -> None:
        self.failures = failures
        self.calls = 0
        self.error = error or ConcurrentModificationError("changed")

    def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "done"


class TestRunWithRetry:

    def test_returns_first_success(self):
        func = _Flaky(0)
        assert run_with_retry(func, sleep=lambda _: None) == "done"
        assert func.calls == 1

    def test_retries_conflicts_with_backoff(self):
        delays = []
        func = _Flaky(2)
        assert run_with_retry(func, attempts=3, backoff_base=0.1, sleep=delays.append) == "done"
        assert func.calls == 3
        assert delays == [0.1, 0.2]

    def test_gives_up(self):
        func = _Flaky(5)
        with pytest.raises(ConcurrentModificationError):
            run_with_retry(func, attempts=3, sleep=lambda _: None)
        assert func.calls == 3

    def test_other_errors_not_retried(self):
        func = _Flaky(1, ValidationError("bad"))
        with pytest.raises(ValidationError):
            run_with_retry(func, sleep=lambda _: None)
        assert func.calls == 1

    def test_zero_attempts_rejected(self):
        with pytest.raises(ValueError):
            run_with_retry(_Flaky(0), attempts=0)
