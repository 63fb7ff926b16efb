"""Concurrent fan-out of work items.

Public API:
    - Dispatcher: apply_to_all() over a thread pool, collecting every outcome
    - DispatchResult: Per-item outcomes with raise_first_failure()
    - ItemOutcome: One item and its error (None on success)
"""

from .dispatcher import Dispatcher
from .models import DispatchResult, ItemOutcome

__all__ = [
    "Dispatcher",
    "DispatchResult",
    "ItemOutcome",
]
