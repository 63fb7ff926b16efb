"""Quota window bookkeeping shared by every throttled call."""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class Reservation:
    """A quota slot held by an in-flight call, tied to the window it was taken in."""

    generation: int


@dataclass(frozen=True)
class BudgetSnapshot:
    """Point-in-time view of a CallBudget."""

    requests_used: int
    reserved: int
    window_reset_at: float
    quota: int


class CallBudget:
    """Counts successful calls per quota window.

    All state is guarded by one lock. A call is admitted by taking a
    reservation; success commits it into ``requests_used`` and failure
    releases it, so ``requests_used + reserved`` never exceeds ``quota``
    within a window. Rolling the window discards the old window's
    reservations.
    """

    def __init__(
        self,
        quota: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if quota < 1:
            raise ValueError("quota must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self._quota = quota
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._requests_used = 0
        self._reserved = 0
        self._generation = 0
        self._window_reset_at = clock() + window_seconds

    @property
    def quota(self) -> int:
        return self._quota

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def snapshot(self) -> BudgetSnapshot:
        with self._lock:
            return BudgetSnapshot(
                requests_used=self._requests_used,
                reserved=self._reserved,
                window_reset_at=self._window_reset_at,
                quota=self._quota,
            )

    def _roll_locked(self, now: float) -> bool:
        if now < self._window_reset_at:
            return False
        self._requests_used = 0
        self._reserved = 0
        self._generation += 1
        # Skip whole windows missed while idle so the boundary lands in the future
        while self._window_reset_at <= now:
            self._window_reset_at += self._window_seconds
        return True

    def roll_window(self) -> bool:
        """Reset the counter if the window boundary has been reached.

        Returns:
            True if the window was rolled over.
        """
        with self._lock:
            return self._roll_locked(self._clock())

    def try_reserve(self) -> tuple[Optional[Reservation], float]:
        """Take a quota slot if one is free in the current window.

        Returns:
            (reservation, 0.0) when admitted, otherwise
            (None, seconds until the window resets).
        """
        with self._lock:
            now = self._clock()
            self._roll_locked(now)
            if self._requests_used + self._reserved < self._quota:
                self._reserved += 1
                return Reservation(self._generation), 0.0
            return None, max(self._window_reset_at - now, 0.0)

    def commit(self, reservation: Reservation) -> None:
        """Count a successful call against the window it was admitted in."""
        with self._lock:
            if reservation.generation == self._generation:
                self._reserved -= 1
                self._requests_used += 1

    def release(self, reservation: Reservation) -> None:
        """Give back a slot whose call failed."""
        with self._lock:
            if reservation.generation == self._generation:
                self._reserved -= 1
