import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TimerExpired(Exception):
    """Raised when a session is started with no time left."""


#SH: Session clock of an avatar conversation. The server reconciles it from the saved
#SH: totals to answer /elapsed-time and to gate new avatar sessions. Clients restore it
#SH: from the same total_elapsed_time and partial_elapsed_time fields.
class SessionTimer:
    def __init__(
        self,
        budget_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        on_expire: Optional[Callable[[], None]] = None,
    ):
        self.budget = max(0.0, float(budget_seconds))
        self.base_remaining = self.budget
        self.on_expire = on_expire
        self._clock = clock
        self._accumulated = 0.0
        self._started_at: Optional[float] = None
        self._expired_fired = False

    @property
    def running(self) -> bool:
        return self._started_at is not None

    @property
    def elapsed(self) -> float:
        current = self._accumulated
        if self._started_at is not None:
            current += self._clock() - self._started_at
        return min(current, self.base_remaining)

    @property
    def remaining(self) -> float:
        return max(0.0, self.base_remaining - self.elapsed)

    def reconcile(self, total_elapsed: float, partial_elapsed: float = 0) -> float:
        """
        Rebase the clock on the time already spent: the saved conversations plus the
        partial elapsed time of a session that was interrupted before it could be saved.
        Both are subtracted here and nowhere else.
        """
        spent = max(0.0, float(total_elapsed or 0)) + max(0.0, float(partial_elapsed or 0))
        base = self.budget - spent
        self.base_remaining = min(self.budget, max(0.0, base))
        self._expired_fired = False
        return self.base_remaining

    def start(self) -> None:
        if self.running:
            return
        if self.remaining <= 0:
            raise TimerExpired("No time remaining for this scenario")
        self._started_at = self._clock()
        logger.debug(f"Session timer started with {self.remaining:.1f}s remaining")

    def stop(self) -> float:
        if self._started_at is not None:
            self._accumulated += self._clock() - self._started_at
            self._started_at = None
        self._accumulated = min(self._accumulated, self.base_remaining)
        return self._accumulated

    def tick(self) -> bool:
        """Polling step. Returns True once the budget is exhausted."""
        if self.remaining > 0:
            return False
        if self.running:
            self.stop()
        if not self._expired_fired:
            self._expired_fired = True
            logger.info("Session time exhausted")
            if self.on_expire is not None:
                self.on_expire()
        return True

    def snapshot(self) -> dict:
        return {
            "budget": self.budget,
            "base_remaining": self.base_remaining,
            "elapsed": self.elapsed,
        }

    @classmethod
    def restore(
        cls,
        snapshot: dict,
        clock: Callable[[], float] = time.monotonic,
        on_expire: Optional[Callable[[], None]] = None,
    ) -> "SessionTimer":
        timer = cls(snapshot.get("budget", 0), clock=clock, on_expire=on_expire)
        timer.base_remaining = min(timer.budget, max(0.0, float(snapshot.get("base_remaining", timer.budget))))
        timer._accumulated = min(timer.base_remaining, max(0.0, float(snapshot.get("elapsed", 0))))
        return timer
