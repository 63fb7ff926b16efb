"""Throttled execution of remote API calls.

Public API:
    - ThrottledCallExecutor: Admission gate + quota window + retry wrapper
    - CallBudget: Quota window state shared by all calls
    - RetryPolicy: Error classifier, backoff function and attempt cap
    - exponential_backoff: Default backoff (2^attempt * base delay)
    - is_rate_limited: Default retryable-error classifier
    - ThrottleError: Base exception
    - RateLimitedError: Provider rejected a call for exceeding its quota
"""

from .budget import BudgetSnapshot, CallBudget, Reservation
from .exceptions import RateLimitedError, ThrottleError
from .executor import ThrottledCallExecutor
from .policy import RetryPolicy, exponential_backoff, is_rate_limited

__all__ = [
    "ThrottledCallExecutor",
    "CallBudget",
    "BudgetSnapshot",
    "Reservation",
    "RetryPolicy",
    "exponential_backoff",
    "is_rate_limited",
    "ThrottleError",
    "RateLimitedError",
]
