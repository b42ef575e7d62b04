"""Per-user run quotas."""

from __future__ import annotations

import threading
import time
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Protocol

from career_orchestrator.config import QuotaConfig


@dataclass(frozen=True)
class QuotaDecision:
    allowed: bool
    used: int
    limit: int


class QuotaStore(Protocol):
    def check(self, user_id: str, run_type: str) -> QuotaDecision: ...


class MemoryQuotaStore:
    """Sliding-window counter per (user, run type).

    ``check`` both tests and records: an allowed call consumes one unit.
    Run types without a configured limit are always allowed.
    """

    def __init__(self, config: QuotaConfig | None = None, clock=time.monotonic):
        config = config or QuotaConfig()
        self.limits = config.limits
        self.window_seconds = config.window_seconds
        self._clock = clock
        self._calls: dict[tuple[str, str], deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()

    def check(self, user_id: str, run_type: str) -> QuotaDecision:
        limit = self.limits.get(run_type)
        now = self._clock()
        with self._lock:
            calls = self._calls[(user_id, run_type)]
            while calls and now - calls[0] >= self.window_seconds:
                calls.popleft()
            if limit is None:
                calls.append(now)
                return QuotaDecision(allowed=True, used=len(calls), limit=0)
            if len(calls) >= limit:
                return QuotaDecision(allowed=False, used=len(calls), limit=limit)
            calls.append(now)
            return QuotaDecision(allowed=True, used=len(calls), limit=limit)
