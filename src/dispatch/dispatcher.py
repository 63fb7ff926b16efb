"""Dispatcher - fans an action out over work items and joins on all of them."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Optional, Sequence, TypeVar

from .models import DispatchResult, ItemOutcome

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_WORKERS = 100


class Dispatcher:
    """Runs one task per work item on a thread pool.

    Failures are collected, never fail-fast: one item's error does not
    cancel its siblings. The caller decides what to do with the collected
    outcomes once every task has settled.
    """

    def __init__(self, max_workers: int = DEFAULT_MAX_WORKERS, thread_name_prefix: str = "dispatch"):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._max_workers = max_workers
        self._thread_name_prefix = thread_name_prefix

    @property
    def max_workers(self) -> int:
        return self._max_workers

    def apply_to_all(
        self,
        items: Sequence[T],
        action: Callable[[T], object],
        on_complete: Optional[Callable[[ItemOutcome[T]], None]] = None,
    ) -> DispatchResult[T]:
        """Apply ``action`` to every item concurrently and wait for all of them.

        Args:
            items: Work items, each processed exactly once.
            action: Called with one item; raising marks that item failed.
            on_complete: Optional callback invoked (from the calling thread)
                as each item settles.

        Returns:
            DispatchResult with outcomes in submission order.
        """
        if not items:
            return DispatchResult()

        outcomes: list[Optional[ItemOutcome[T]]] = [None] * len(items)
        workers = min(self._max_workers, len(items))

        with ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix=self._thread_name_prefix
        ) as pool:
            futures = {pool.submit(action, item): index for index, item in enumerate(items)}

            for future in as_completed(futures):
                index = futures[future]
                error = future.exception()
                outcome = ItemOutcome(item=items[index], error=error)
                if error is not None:
                    logger.error("Work item %s failed: %s", items[index], error)
                outcomes[index] = outcome
                if on_complete is not None:
                    on_complete(outcome)

        result = DispatchResult(outcomes=[o for o in outcomes if o is not None])
        logger.info(
            "Dispatched %d items: %d succeeded, %d failed",
            len(items),
            len(result.succeeded),
            len(result.failed),
        )
        return result
