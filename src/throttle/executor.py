"""ThrottledCallExecutor - rate-limited, retrying wrapper for remote calls."""

import logging
import threading
import time
from typing import Callable, Optional, TypeVar

from .budget import BudgetSnapshot, CallBudget, Reservation
from .policy import RetryPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_CONCURRENCY = 100
DEFAULT_QUOTA = 100
DEFAULT_WINDOW_SECONDS = 60.0


class ThrottledCallExecutor:
    """Runs remote operations behind an admission gate, a quota window and retries.

    Every attempt:
        1. acquires a permit from a bounded semaphore (blocks indefinitely),
        2. waits for a free slot in the current quota window,
        3. invokes the operation.

    Retryable failures (per the RetryPolicy) release the permit before the
    backoff sleep, so other callers keep the gate busy while one waits.
    Non-retryable failures propagate after a single invocation.

    Example:
        executor = ThrottledCallExecutor(max_concurrency=10, quota=100)
        page = executor.execute(lambda: request.execute(), "list messages")

    Shared by all threads of a run; the executor owns its CallBudget.
    """

    def __init__(
        self,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        quota: int = DEFAULT_QUOTA,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        policy: Optional[RetryPolicy] = None,
        clock: Callable[[], float] = time.monotonic,
        sleeper: Callable[[float], None] = time.sleep,
        budget: Optional[CallBudget] = None,
    ):
        """Initialize the executor.

        Args:
            max_concurrency: Number of admission permits (in-flight calls).
            quota: Successful calls allowed per window.
            window_seconds: Length of the quota window.
            policy: Retry policy. Defaults to 5 attempts, 1000 ms base delay,
                retrying only RateLimitedError.
            clock: Monotonic time source, injectable for tests.
            sleeper: Sleep function, injectable for tests.
            budget: Pre-built CallBudget. Overrides quota/window_seconds.
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        self._capacity = max_concurrency
        self._gate = threading.BoundedSemaphore(max_concurrency)
        self._budget = budget or CallBudget(quota, window_seconds, clock=clock)
        self._policy = policy or RetryPolicy()
        self._sleep = sleeper

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    @property
    def budget(self) -> BudgetSnapshot:
        """Current quota usage."""
        return self._budget.snapshot()

    def _admit(self) -> Reservation:
        """Block until the quota window has room for one more call."""
        while True:
            reservation, wait_seconds = self._budget.try_reserve()
            if reservation is not None:
                return reservation
            logger.info(
                "Quota of %d calls per window reached; waiting %.2fs for reset",
                self._budget.quota,
                wait_seconds,
            )
            self._sleep(wait_seconds)

    def execute(self, operation: Callable[[], T], description: str = "call") -> T:
        """Run ``operation`` under the gate, the quota window and the retry policy.

        Args:
            operation: Zero-argument callable performing the remote call.
            description: Label used in log messages.

        Returns:
            Whatever ``operation`` returns.

        Raises:
            Exception: The operation's error, immediately if not retryable,
                or the last retryable error once max_attempts is reached.
        """
        attempt = 1
        while True:
            self._gate.acquire()
            reservation: Optional[Reservation] = None
            try:
                reservation = self._admit()
                result = operation()
                self._budget.commit(reservation)
                return result
            except Exception as e:
                if reservation is not None:
                    self._budget.release(reservation)
                if not self._policy.is_retryable(e):
                    raise
                if attempt >= self._policy.max_attempts:
                    logger.error(
                        "%s still rate limited after %d attempts; giving up",
                        description,
                        attempt,
                    )
                    raise
                delay = self._policy.delay_for(attempt)
            finally:
                self._gate.release()
                self._budget.roll_window()

            logger.warning(
                "Rate limit exceeded for %s (attempt %d/%d). Waiting %d ms before retrying.",
                description,
                attempt,
                self._policy.max_attempts,
                int(delay * 1000),
            )
            self._sleep(delay)
            attempt += 1
