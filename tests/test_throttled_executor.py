"""Unit tests for ThrottledCallExecutor."""

import threading
import time

import pytest

from src.throttle import RateLimitedError, RetryPolicy, ThrottledCallExecutor
from tests.throttle_test_helpers import FakeClock, FlakyOperation


@pytest.fixture
def clock():
    return FakeClock()


def make_executor(clock, **kwargs) -> ThrottledCallExecutor:
    kwargs.setdefault("quota", 1000)
    return ThrottledCallExecutor(clock=clock, sleeper=clock.sleep, **kwargs)


class TestExecuteSuccess:
    def test_returns_operation_result(self, clock):
        executor = make_executor(clock)
        assert executor.execute(lambda: {"id": "msg1"}) == {"id": "msg1"}

    def test_success_counts_against_budget(self, clock):
        executor = make_executor(clock)
        executor.execute(lambda: None)
        executor.execute(lambda: None)
        assert executor.budget.requests_used == 2
        assert executor.budget.reserved == 0

    def test_no_sleep_on_first_try_success(self, clock):
        executor = make_executor(clock)
        executor.execute(lambda: None)
        assert clock.sleeps == []


class TestRetry:
    """Retry behavior on RateLimitedError."""

    def test_succeeds_on_fourth_attempt(self, clock):
        """Rate limited on attempts 1-3, success on 4 -> 2 + 4 + 8 seconds of backoff."""
        executor = make_executor(clock)
        operation = FlakyOperation(failures=3, result="done")

        assert executor.execute(operation) == "done"
        assert operation.calls == 4
        assert clock.sleeps == [2.0, 4.0, 8.0]
        assert sum(clock.sleeps) >= 14.0

    def test_gives_up_after_five_attempts(self, clock):
        executor = make_executor(clock)
        operation = FlakyOperation(failures=10)

        with pytest.raises(RateLimitedError):
            executor.execute(operation)

        assert operation.calls == 5
        # No sleep after the final attempt
        assert clock.sleeps == [2.0, 4.0, 8.0, 16.0]

    def test_backoff_scaled_by_base_delay(self, clock):
        executor = make_executor(clock, policy=RetryPolicy(base_delay_ms=10))
        executor.execute(FlakyOperation(failures=2))
        assert clock.sleeps == pytest.approx([0.02, 0.04])

    def test_respects_custom_attempt_cap(self, clock):
        executor = make_executor(clock, policy=RetryPolicy(max_attempts=2))
        operation = FlakyOperation(failures=5)

        with pytest.raises(RateLimitedError):
            executor.execute(operation)
        assert operation.calls == 2

    def test_rate_limited_attempts_do_not_consume_quota(self, clock):
        executor = make_executor(clock)
        executor.execute(FlakyOperation(failures=2))
        assert executor.budget.requests_used == 1
        assert executor.budget.reserved == 0

    def test_custom_classifier(self, clock):
        policy = RetryPolicy(is_retryable=lambda e: isinstance(e, ConnectionError))
        executor = make_executor(clock, policy=policy)
        calls = []

        def operation():
            calls.append(1)
            if len(calls) == 1:
                raise ConnectionError("reset by peer")
            return "ok"

        assert executor.execute(operation) == "ok"
        assert len(calls) == 2

    def test_server_retry_after_is_ignored(self, clock):
        executor = make_executor(clock)
        calls = []

        def operation():
            calls.append(1)
            if len(calls) == 1:
                raise RateLimitedError(retry_after=120)
            return "ok"

        executor.execute(operation)
        assert clock.sleeps == [2.0]


class TestNonRetryable:
    def test_other_errors_propagate_after_one_call(self, clock):
        executor = make_executor(clock)
        calls = []

        def operation():
            calls.append(1)
            raise ValueError("malformed response")

        with pytest.raises(ValueError, match="malformed response"):
            executor.execute(operation)

        assert len(calls) == 1
        assert clock.sleeps == []

    def test_failed_call_releases_reservation(self, clock):
        executor = make_executor(clock, quota=1)

        with pytest.raises(KeyError):
            executor.execute(lambda: {}["missing"])

        assert executor.budget.requests_used == 0
        # The slot is free again, so this does not wait for the window
        executor.execute(lambda: None)
        assert clock.sleeps == []


class TestQuotaWindow:
    def test_third_call_waits_for_window_reset(self, clock):
        """quota=2, window=60s: two calls proceed, the third waits for the reset."""
        executor = make_executor(clock, quota=2, window_seconds=60)

        executor.execute(lambda: "a")
        executor.execute(lambda: "b")
        assert executor.budget.requests_used == 2

        assert executor.execute(lambda: "c") == "c"

        assert clock.sleeps == [60.0]
        assert executor.budget.requests_used == 1
        assert executor.budget.window_reset_at == 120.0

    def test_window_rolls_after_call_completes(self, clock):
        executor = make_executor(clock, quota=10, window_seconds=60)

        def slow_operation():
            clock.advance(61)
            return "ok"

        executor.execute(slow_operation)

        snap = executor.budget
        assert snap.requests_used == 0
        assert snap.window_reset_at == 120.0

    def test_window_rolls_after_failed_call(self, clock):
        executor = make_executor(clock, quota=10, window_seconds=60)
        executor.execute(lambda: None)

        def failing_operation():
            clock.advance(60)
            raise ValueError("boom")

        with pytest.raises(ValueError):
            executor.execute(failing_operation)
        assert executor.budget.requests_used == 0
        assert executor.budget.window_reset_at == 120.0

    def test_simultaneous_calls_with_real_clock(self):
        executor = ThrottledCallExecutor(max_concurrency=10, quota=2, window_seconds=0.3)
        start = time.monotonic()
        started_at = []
        lock = threading.Lock()
        barrier = threading.Barrier(3)

        def operation():
            with lock:
                started_at.append(time.monotonic() - start)

        def worker():
            barrier.wait()
            executor.execute(operation)

        threads = [threading.Thread(target=worker) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        started_at.sort()
        assert len(started_at) == 3
        assert started_at[1] < 0.2
        assert started_at[2] >= 0.25
        assert executor.budget.requests_used == 1


class TestAdmissionGate:
    def test_never_exceeds_capacity(self):
        executor = ThrottledCallExecutor(max_concurrency=3, quota=1000)
        active = 0
        peak = 0
        lock = threading.Lock()

        def operation():
            nonlocal active, peak
            with lock:
                active += 1
                peak = max(peak, active)
            time.sleep(0.02)
            with lock:
                active -= 1

        threads = [
            threading.Thread(target=executor.execute, args=(operation,)) for _ in range(12)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert 1 <= peak <= 3
        assert executor.budget.requests_used == 12

    def test_permit_released_during_backoff(self):
        """With one permit, another call can run while the first one backs off."""
        inner_done = threading.Event()
        executor = None

        def sleeper(seconds):
            inner = threading.Thread(
                target=lambda: (executor.execute(lambda: None), inner_done.set())
            )
            inner.start()
            inner.join(timeout=2)

        executor = ThrottledCallExecutor(max_concurrency=1, quota=1000, sleeper=sleeper)
        executor.execute(FlakyOperation(failures=1))

        assert inner_done.is_set()

    def test_permit_released_after_exhausted_retries(self, clock):
        executor = make_executor(clock, max_concurrency=1, policy=RetryPolicy(max_attempts=1))

        with pytest.raises(RateLimitedError):
            executor.execute(FlakyOperation(failures=1))

        # Would block forever if the permit leaked
        assert executor.execute(lambda: "still works") == "still works"

    def test_rejects_zero_capacity(self):
        with pytest.raises(ValueError):
            ThrottledCallExecutor(max_concurrency=0)

    def test_capacity_property(self):
        assert ThrottledCallExecutor(max_concurrency=7).capacity == 7
