"""
Latency metrics collection and percentile reporting.
"""
import math
import time
import numpy as np
from dataclasses import dataclass, asdict
from typing import Callable, List, Dict, Sequence

PERCENTILES = (0.50, 0.90, 0.99)


def percentile_index(n: int, fraction: float) -> int:
    """
    Index into a sorted sample of size n for the given fraction.

    floor(n * fraction), clamped to n - 1 so the last element is the highest
    value ever picked.
    """
    if n < 1:
        raise ValueError("cannot take a percentile of an empty sample")
    return min(math.floor(n * fraction), n - 1)


@dataclass
class LatencySummary:
    """Percentiles of one phase, all in milliseconds."""
    count: int
    p0: float
    p50: float
    p90: float
    p99: float
    max: float
    mean: float
    std: float

    def to_dict(self) -> Dict:
        return asdict(self)


def summarize_latencies(samples: Sequence[float]) -> LatencySummary:
    """
    Sort the sample and pick p0/p50/p90/p99 by index (no interpolation).

    Args:
        samples: Per-call latencies in milliseconds

    Returns:
        LatencySummary for the sample
    """
    if len(samples) == 0:
        raise ValueError("no latency samples recorded")

    latencies_array = np.sort(np.asarray(samples, dtype=float))
    n = len(latencies_array)

    p50, p90, p99 = (float(latencies_array[percentile_index(n, f)]) for f in PERCENTILES)

    return LatencySummary(
        count=n,
        p0=float(latencies_array[0]),
        p50=p50,
        p90=p90,
        p99=p99,
        max=float(latencies_array[-1]),
        mean=float(np.mean(latencies_array)),
        std=float(np.std(latencies_array)),
    )


class PerformanceMetrics:
    """Collect and summarize latencies for one benchmark phase."""

    def __init__(self, name: str):
        """
        Initialize metrics collector.

        Args:
            name: Name of the phase (insert, retrieve, ...)
        """
        self.name = name
        self.latencies: List[float] = []
        self.start_time = None
        self.end_time = None

    def record_latency(self, latency_ms: float):
        """Record a latency measurement in milliseconds."""
        self.latencies.append(latency_ms)

    def start(self):
        """Start timing the phase."""
        self.start_time = time.time()

    def end(self):
        """End timing the phase."""
        self.end_time = time.time()

    def summarize(self) -> LatencySummary:
        return summarize_latencies(self.latencies)

    def get_summary(self) -> Dict:
        """
        Get summary statistics.

        Returns:
            Dictionary with phase metrics
        """
        if not self.latencies:
            return {
                'name': self.name,
                'error': 'No latency data collected',
            }

        total_time = None
        if self.start_time is not None and self.end_time is not None:
            total_time = self.end_time - self.start_time

        return {
            'name': self.name,
            'num_requests': len(self.latencies),
            'total_time_sec': total_time,
            'latency_ms': self.summarize().to_dict(),
        }

    def format_percentiles(self) -> str:
        """One-line percentile summary printed after each phase."""
        s = self.summarize()
        return f"\tp0:{s.p0}, p50: {s.p50}, p90: {s.p90}. p99: {s.p99}"


class Timer:
    """Context manager for timing a single call."""

    def __init__(self, clock: Callable[[], float] = time.perf_counter):
        """
        Args:
            clock: Monotonic clock returning seconds
        """
        self.clock = clock
        self.start_time = None
        self.end_time = None
        self.elapsed_ms = None

    def __enter__(self):
        self.start_time = self.clock()
        return self

    def __exit__(self, *args):
        self.end_time = self.clock()
        self.elapsed_ms = (self.end_time - self.start_time) * 1000  # Convert to ms
