"""Conversion pipeline counters and job timings.

Keys in use:
    conversion.requested / conversion.applied / conversion.stale_dropped
    conversion.decode_failed / conversion.encode_failed
    conversion.duration (timing, seconds)

Tests reset and read the module-level `metrics` directly.
"""

from __future__ import annotations

import time
from collections import Counter, defaultdict
from collections.abc import Iterator
from contextlib import contextmanager
from threading import Lock
from typing import Any


class ConversionMetrics:
    def __init__(self) -> None:
        self._counters: Counter[str] = Counter()
        self._timings: defaultdict[str, list[float]] = defaultdict(list)
        self._lock = Lock()

    def inc(self, key: str, amount: int = 1) -> None:
        with self._lock:
            self._counters[key] += int(amount)

    def count(self, key: str) -> int:
        with self._lock:
            return self._counters[key]

    def record(self, key: str, seconds: float) -> None:
        with self._lock:
            self._timings[key].append(float(seconds))

    @contextmanager
    def timed(self, key: str) -> Iterator[None]:
        # Recorded even when the body raises or returns early.
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record(key, time.perf_counter() - start)

    def mean(self, key: str) -> float | None:
        with self._lock:
            values = self._timings.get(key)
            if not values:
                return None
            return sum(values) / len(values)

    def snapshot(self) -> dict[str, Any]:
        """Counters plus count/mean/max per timing key."""
        with self._lock:
            timings = {
                key: {"count": len(values), "mean": sum(values) / len(values), "max": max(values)}
                for key, values in self._timings.items()
                if values
            }
            return {"counters": dict(self._counters), "timings": timings}

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._timings.clear()


metrics = ConversionMetrics()
