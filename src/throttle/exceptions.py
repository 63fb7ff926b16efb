"""Exceptions for the throttle module."""


class ThrottleError(Exception):
    """Base exception for throttled call errors."""

    pass


class RateLimitedError(ThrottleError):
    """Raised when the remote provider rejects a call for exceeding its quota.

    This is the only error the default retry policy treats as retryable.
    ``retry_after`` is kept for diagnostics; backoff never consults it.
    """

    def __init__(self, message: str | None = None, retry_after: int | None = None):
        self.retry_after = retry_after
        msg = message or "Remote API rate limit exceeded"
        if retry_after:
            msg += f". Provider suggested retry after {retry_after} seconds"
        super().__init__(msg)
