"""Budget Tracker - per-run token ledger."""

from __future__ import annotations

import logging
import threading

from career_orchestrator.models.run import BudgetInfo

logger = logging.getLogger(__name__)


class BudgetTracker:
    """Tokens consumed vs. a caller-supplied ceiling.

    Every agent call reserves its estimate before it starts and settles to
    the actual usage afterwards. All mutations go through one lock, so
    concurrent workers can never commit more than ``total``.
    """

    def __init__(self, total: int):
        self.total = total
        self.used = 0
        self.stopped_reason = ""
        self._lock = threading.Lock()

    @property
    def remaining(self) -> int:
        return max(0, self.total - self.used)

    @property
    def stopped(self) -> bool:
        return bool(self.stopped_reason)

    def reserve(self, estimate: int) -> bool:
        """Commit ``estimate`` if it fits; return False without mutating otherwise."""
        with self._lock:
            if self.used + estimate > self.total:
                return False
            self.used += estimate
            return True

    def settle(self, estimate: int, actual: int) -> None:
        """Replace a committed reservation by the usage the call actually had."""
        with self._lock:
            self.used += actual - estimate
            if self.used < 0:
                self.used = 0

    def release(self, estimate: int) -> None:
        self.settle(estimate, 0)

    def stop(self, reason: str) -> None:
        """Record why the run stopped early. The first reason wins."""
        with self._lock:
            if not self.stopped_reason:
                self.stopped_reason = reason
                logger.info("budget stop: %s (used %d/%d)", reason, self.used, self.total)

    def to_info(self) -> BudgetInfo:
        return BudgetInfo(
            token_used_estimate=self.used,
            token_budget_total=self.total,
            stopped_reason=self.stopped_reason,
        )
