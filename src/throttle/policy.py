"""Retry policy for throttled calls."""

from dataclasses import dataclass, field
from typing import Callable

from .exceptions import RateLimitedError

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BASE_DELAY_MS = 1000


def is_rate_limited(error: BaseException) -> bool:
    """Default classifier: only RateLimitedError is retryable."""
    return isinstance(error, RateLimitedError)


def exponential_backoff(attempt: int, base_delay_ms: int) -> float:
    """Return the delay in seconds before retrying after ``attempt`` failed.

    Attempts are 1-based, so the first retry waits ``2 * base_delay_ms``.
    """
    return (2**attempt) * base_delay_ms / 1000.0


@dataclass(frozen=True)
class RetryPolicy:
    """How a ThrottledCallExecutor reacts to a failed attempt.

    Attributes:
        max_attempts: Total invocations allowed, including the first.
        base_delay_ms: Scale of the exponential backoff.
        is_retryable: Predicate deciding whether an error is worth retrying.
        backoff: Maps (attempt, base_delay_ms) to a delay in seconds.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay_ms: int = DEFAULT_BASE_DELAY_MS
    is_retryable: Callable[[BaseException], bool] = field(default=is_rate_limited)
    backoff: Callable[[int, int], float] = field(default=exponential_backoff)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay_ms < 0:
            raise ValueError("base_delay_ms must be non-negative")

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the given failed attempt."""
        return self.backoff(attempt, self.base_delay_ms)
