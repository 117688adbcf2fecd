from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass, field
from typing import Callable


@dataclass(frozen=True)
class BucketStatus:
    available: int
    capacity: int
    wait_time_s: float

    def to_dict(self) -> dict:
        return {"available": self.available, "capacity": self.capacity, "wait_time_s": self.wait_time_s}


@dataclass
class TokenBucket:
    """
    Token bucket with lazy, stepwise refill.

    Tokens are added in whole ``refill_interval_s`` steps rather than
    continuously, so results are deterministic for a given clock. The refill
    timestamp advances by whole intervals only and keeps sub-interval leftover.

    All state changes happen under a ``threading.Lock`` with no awaits inside,
    which makes the bucket safe to share between asyncio tasks and threads.
    Admission is best-effort: waiters are not queued, so under sustained
    contention a given caller can be starved.
    """

    capacity: float
    refill_rate: float  # tokens per second
    refill_interval_s: float = 1.0
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    def __post_init__(self):
        if self.capacity <= 0:
            raise ValueError("capacity must be positive")
        if self.refill_rate <= 0:
            raise ValueError("refill_rate must be positive")
        if self.refill_interval_s <= 0:
            raise ValueError("refill_interval_s must be positive")
        self._lock = threading.Lock()
        self._tokens = float(self.capacity)
        self._last_refill = self.clock()

    def _refill(self) -> None:
        # caller holds the lock
        now = self.clock()
        elapsed = now - self._last_refill
        if elapsed < self.refill_interval_s:
            return
        intervals = math.floor(elapsed / self.refill_interval_s)
        added = intervals * self.refill_rate * self.refill_interval_s
        # rounding keeps e.g. 6 * (10 / 60) from landing a hair below one token
        self._tokens = min(float(self.capacity), round(self._tokens + added, 9))
        self._last_refill += intervals * self.refill_interval_s

    def _wait_time(self, n: float) -> float:
        if self._tokens >= n:
            return 0.0
        return (n - self._tokens) / self.refill_rate

    def try_consume(self, n: float = 1) -> bool:
        if n <= 0:
            raise ValueError("n must be positive")
        with self._lock:
            self._refill()
            if self._tokens >= n:
                self._tokens -= n
                return True
            return False

    def wait_time(self, n: float = 1) -> float:
        with self._lock:
            self._refill()
            return self._wait_time(n)

    def token_count(self) -> int:
        with self._lock:
            self._refill()
            return math.floor(self._tokens)

    def snapshot(self) -> BucketStatus:
        with self._lock:
            self._refill()
            return BucketStatus(
                available=math.floor(self._tokens),
                capacity=int(self.capacity),
                wait_time_s=self._wait_time(1),
            )

    def reset(self) -> None:
        with self._lock:
            self._tokens = float(self.capacity)
            self._last_refill = self.clock()
