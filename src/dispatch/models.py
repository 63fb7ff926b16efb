"""Data models for dispatch outcomes."""

from dataclasses import dataclass, field
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class ItemOutcome(Generic[T]):
    """Result of applying an action to one work item."""

    item: T
    error: Optional[BaseException] = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class DispatchResult(Generic[T]):
    """Every item's outcome, in the order items were submitted."""

    outcomes: list[ItemOutcome[T]] = field(default_factory=list)

    @property
    def succeeded(self) -> list[T]:
        return [o.item for o in self.outcomes if o.success]

    @property
    def failed(self) -> list[ItemOutcome[T]]:
        return [o for o in self.outcomes if not o.success]

    @property
    def success(self) -> bool:
        return all(o.success for o in self.outcomes)

    def raise_first_failure(self) -> None:
        """Re-raise the first failed item's error, if any."""
        for outcome in self.outcomes:
            if outcome.error is not None:
                raise outcome.error
