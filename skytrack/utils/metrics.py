"""
Runtime metrics for the tracking service.

Two kinds of measurement:
- timings, kept as a bounded window of recent samples per name
- counters, monotonically increasing event totals per name
"""

import time
from collections import defaultdict, deque
from contextlib import contextmanager
from typing import Deque, Dict, Optional

import numpy as np


class PerformanceMetrics:
    """Latency windows and event counters, keyed by name."""

    def __init__(self, max_samples: int = 10000):
        self.max_samples = max_samples
        self._windows: Dict[str, Deque[float]] = {}
        self._recorded: Dict[str, int] = defaultdict(int)
        self._counters: Dict[str, int] = defaultdict(int)

    def record(self, name: str, seconds: float):
        """Add one timing sample; the oldest sample falls out of a full window."""
        window = self._windows.get(name)
        if window is None:
            window = self._windows[name] = deque(maxlen=self.max_samples)
        window.append(seconds)
        self._recorded[name] += 1

    def increment(self, name: str, amount: int = 1):
        self._counters[name] += amount

    def count(self, name: str) -> int:
        """Current value of a counter (0 if never incremented)."""
        return self._counters.get(name, 0)

    def counters(self, prefix: str = "") -> Dict[str, int]:
        """
        Counters whose name starts with ``prefix``.

        Args:
            prefix: Name prefix such as ``"resolution."``; stripped from the keys

        Returns:
            Counter name (without prefix) -> value
        """
        return {
            name[len(prefix):]: value
            for name, value in self._counters.items()
            if name.startswith(prefix)
        }

    def get_stats(self, name: str) -> Dict[str, float]:
        """
        Summarize the retained window of a timing.

        ``count`` is the number of samples ever recorded, which exceeds the
        window size once old samples have been dropped.

        Returns:
            mean, min, max, p50, p95 and count; empty if nothing was recorded
        """
        window = self._windows.get(name)
        if not window:
            return {}

        samples = np.fromiter(window, dtype=float, count=len(window))
        p50, p95 = np.percentile(samples, [50, 95])
        return {
            "mean": float(samples.mean()),
            "min": float(samples.min()),
            "max": float(samples.max()),
            "p50": float(p50),
            "p95": float(p95),
            "count": self._recorded[name],
        }

    def summary(self) -> Dict[str, object]:
        return {
            "timings": {name: self.get_stats(name) for name in self._windows},
            "counters": dict(self._counters),
        }

    def reset(self):
        """Drop all timings and counters."""
        self._windows.clear()
        self._recorded.clear()
        self._counters.clear()


@contextmanager
def timer(name: str, metrics: Optional[PerformanceMetrics] = None):
    """
    Time the enclosed block and record it under ``name``.

    Example:
        >>> metrics = PerformanceMetrics()
        >>> with timer("ingest", metrics):
        ...     engine.ingest(observation)
        >>> metrics.get_stats("ingest")["p95"]
    """
    started = time.perf_counter()
    try:
        yield
    finally:
        if metrics is not None:
            metrics.record(name, time.perf_counter() - started)
